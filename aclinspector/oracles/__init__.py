"""
Oracle seams (content repository + privilege evaluation).

`base` holds the Protocols the core depends on; `fixture_store` is a YAML-backed
implementation for local development and tests.
"""

from aclinspector.oracles.base import Node, NodeStore, PolicyStore, Privilege, Role

__all__ = ["Node", "NodeStore", "PolicyStore", "Privilege", "Role"]
