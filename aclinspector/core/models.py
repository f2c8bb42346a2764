"""Canonical result models for ACL inspection.

Field names are snake_case in Python and camelCase on the wire (aliases), because the
tree payload is consumed by existing UI code that expects the legacy keys
(`nodeIdentifier`, `childNodes`, `editNode`, ...).

Design note:
- `NodeRecord.child_nodes` is None when the node was not expanded. That is a different
  state from an empty list and must survive serialization (see `aclinspector.dump`).
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class BaseModelStrict(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class PermissionSummary(BaseModelStrict):
    edit_node: bool = Field(default=False, alias="editNode")
    remove_node: bool = Field(default=False, alias="removeNode")
    create_node_of_type: bool = Field(default=False, alias="createNodeOfType")
    show_in_tree: bool = Field(default=False, alias="showInTree")


class NodeRecord(BaseModelStrict):
    node_identifier: str = Field(alias="nodeIdentifier")
    node_path: str = Field(alias="nodePath")
    node_label: Optional[str] = Field(default=None, alias="nodeLabel")
    node_type: str = Field(alias="nodeType")
    node_level: int = Field(alias="nodeLevel")
    # role identifier -> summary, in the order roles were supplied
    acl: Dict[str, PermissionSummary] = Field(default_factory=dict)
    child_nodes: Optional[List["NodeRecord"]] = Field(default=None, alias="childNodes")


class PrivilegeMatch(BaseModelStrict):
    privilege: str
    role: str


class PrivilegeCheckResult(BaseModelStrict):
    denied: List[PrivilegeMatch] = Field(default_factory=list)
    abstained: List[PrivilegeMatch] = Field(default_factory=list)
    granted: List[PrivilegeMatch] = Field(default_factory=list)


class AclTreeRequest(BaseModelStrict):
    """Roles to inspect plus how deep the document tree should be loaded."""

    roles: List[str] = Field(default_factory=list)
    # None = use the configured default tree depth
    node_tree_loading_depth: Optional[int] = Field(default=None, ge=0, alias="nodeTreeLoadingDepth")


NodeRecord.model_rebuild()
