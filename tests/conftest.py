"""
Pytest config.

Tests import the local `aclinspector/` package and `main.py` from the repo root. When
pytest is invoked through a global entrypoint without an editable install, the repo root
is not reliably on sys.path during collection, so we pin it here.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()


@pytest.fixture(autouse=True)
def _isolate_inspector_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ACL_* settings from the developer's shell out of unit tests."""
    import os

    for name in list(os.environ):
        if name.startswith("ACL_"):
            monkeypatch.delenv(name, raising=False)
