"""Inspector configuration (env/ConfigMap driven)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Tuple

from aclinspector.core.node_types import CONTENT_COLLECTION_NODE_TYPE, DOCUMENT_NODE_TYPE, AclTarget


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except Exception:
        return default


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


def split_csv(raw: str) -> List[str]:
    return [x.strip() for x in (raw or "").split(",") if x.strip()]


@dataclass(frozen=True)
class InspectorConfig:
    # Oracle backing store (YAML fixture for local/dev use)
    fixture_path: str = "./acl-fixture.yaml"

    # Node type families
    document_node_type: str = DOCUMENT_NODE_TYPE
    content_collection_node_type: str = CONTENT_COLLECTION_NODE_TYPE

    # Depths (0 = unlimited)
    tree_depth: int = 0
    content_tree_depth: int = 4
    max_tree_depth: int = 0  # host ceiling; 0 disables it

    acl_target: AclTarget = "parent"
    default_roles: Tuple[str, ...] = ()


def load_inspector_config() -> InspectorConfig:
    """
    Load inspector configuration from env.

    Recommended vars:
    - ACL_FIXTURE_PATH=/etc/acl/fixture.yaml
    - ACL_DOCUMENT_NODE_TYPE=Neos.Neos:Document
    - ACL_CONTENT_COLLECTION_NODE_TYPE=Neos.Neos:ContentCollection
    - ACL_TREE_DEPTH=0
    - ACL_CONTENT_TREE_DEPTH=4
    - ACL_MAX_TREE_DEPTH=25
    - ACL_EVALUATE_AGAINST=parent|self
    - ACL_DEFAULT_ROLES=Neos.Neos:Editor,Neos.Neos:Administrator
    """
    acl_target = _env_str("ACL_EVALUATE_AGAINST", "parent").lower()
    if acl_target not in ("parent", "self"):
        acl_target = "parent"

    return InspectorConfig(
        fixture_path=_env_str("ACL_FIXTURE_PATH", "./acl-fixture.yaml"),
        document_node_type=_env_str("ACL_DOCUMENT_NODE_TYPE", DOCUMENT_NODE_TYPE),
        content_collection_node_type=_env_str("ACL_CONTENT_COLLECTION_NODE_TYPE", CONTENT_COLLECTION_NODE_TYPE),
        tree_depth=max(0, _env_int("ACL_TREE_DEPTH", 0)),
        content_tree_depth=max(0, _env_int("ACL_CONTENT_TREE_DEPTH", 4)),
        max_tree_depth=max(0, _env_int("ACL_MAX_TREE_DEPTH", 0)),
        acl_target=acl_target,  # type: ignore[arg-type]
        default_roles=tuple(split_csv(os.getenv("ACL_DEFAULT_ROLES", ""))),
    )
