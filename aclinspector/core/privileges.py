"""Privilege kinds and the subjects they are evaluated against."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from aclinspector.oracles.base import Node


class PrivilegeKind(str, Enum):
    READ_NODE = "read-node"
    EDIT_NODE = "edit-node"
    REMOVE_NODE = "remove-node"
    CREATE_NODE = "create-node"
    READ_NODE_PROPERTY = "read-node-property"
    EDIT_NODE_PROPERTY = "edit-node-property"
    NODE_TREE = "node-tree"
    # Not node-scoped; never evaluated against a node subject.
    METHOD = "method"
    ENTITY = "entity"
    MODULE = "module"


# The generic node-privilege family (everything that can match a node subject besides read-node).
NODE_PRIVILEGE_FAMILY = frozenset(
    {
        PrivilegeKind.EDIT_NODE,
        PrivilegeKind.REMOVE_NODE,
        PrivilegeKind.CREATE_NODE,
        PrivilegeKind.READ_NODE_PROPERTY,
        PrivilegeKind.EDIT_NODE_PROPERTY,
        PrivilegeKind.NODE_TREE,
    }
)


def applies_to_node_subject(kind: PrivilegeKind) -> bool:
    """Return True if rules of this kind can be evaluated against a node subject."""
    return kind is PrivilegeKind.READ_NODE or kind in NODE_PRIVILEGE_FAMILY


@dataclass(frozen=True)
class NodePrivilegeSubject:
    node: "Node"


@dataclass(frozen=True)
class CreateNodePrivilegeSubject(NodePrivilegeSubject):
    # Type of the node that would be created below `node` (None = any type).
    creation_node_type: Optional[str] = None


def subject_for(kind: PrivilegeKind, node: "Node") -> NodePrivilegeSubject:
    """
    Build the subject a rule of `kind` is matched against.

    create-node rules receive the node's own current type as the creation type.
    """
    if kind is PrivilegeKind.CREATE_NODE:
        return CreateNodePrivilegeSubject(node=node, creation_node_type=node.type_name)
    return NodePrivilegeSubject(node=node)
