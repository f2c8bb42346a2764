"""
Depth-bounded, permission-annotated tree materialization.

Depth semantics (`max_depth`):
- 0: unlimited, every level is expanded down to the natural leaves
- N > 0: a record's children are expanded only while its recursion level is < N;
  records at level N are still listed but carry no `childNodes`

Invariants:
- `child_nodes` is set only when the node was expandable AND the store reports matching
  children; otherwise it stays None (never an empty list).
- Every call returns a fresh list; nothing is shared between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Sequence

from aclinspector.acl.evaluator import AclEvaluator
from aclinspector.core.models import NodeRecord
from aclinspector.core.node_types import CONTENT_COLLECTION_NODE_TYPE, DOCUMENT_NODE_TYPE, AclTarget
from aclinspector.oracles.base import Node, NodeStore, Role

logger = logging.getLogger(__name__)

# Default child filter: the materializer's own document type. `None` means no filter.
_DOCUMENTS = object()


def node_record(node: Node) -> NodeRecord:
    """Build a record from the node's own metadata (acl and children are attached later)."""
    return NodeRecord(
        node_identifier=node.identifier,
        node_path=node.path,
        node_label=node.label,
        node_type=node.type_name,
        node_level=node.depth,
    )


@dataclass
class TreeMaterializer:
    nodes: NodeStore
    evaluator: AclEvaluator
    # Which node the general tree's acl summary is computed against. "parent" keeps the
    # historical behavior: a listed node carries the permissions of the node that owns the listing.
    acl_target: AclTarget = "parent"
    document_node_type: str = DOCUMENT_NODE_TYPE
    content_collection_node_type: str = CONTENT_COLLECTION_NODE_TYPE

    def materialize(
        self,
        root: Node,
        roles: Sequence[Role],
        *,
        max_depth: int = 0,
        node_type_filter: Any = _DOCUMENTS,
        recursion_level: int = 1,
    ) -> List[NodeRecord]:
        if node_type_filter is _DOCUMENTS:
            node_type_filter = self.document_node_type
        out: List[NodeRecord] = []
        expand = max_depth == 0 or recursion_level < max_depth

        for child in self.nodes.get_child_nodes(root, node_type_filter) or []:
            record = node_record(child)
            acl_node = root if self.acl_target == "parent" else child
            record.acl = self.evaluator.summarize(acl_node, roles)

            if expand and self.nodes.has_child_nodes(child, node_type_filter):
                record.child_nodes = self.materialize(
                    child,
                    roles,
                    max_depth=max_depth,
                    node_type_filter=node_type_filter,
                    recursion_level=recursion_level + 1,
                )

            out.append(record)
        return out

    def materialize_content_area(self, node: Node, roles: Sequence[Role], *, max_depth: int = 4) -> List[NodeRecord]:
        """
        Materialize the content below `node`.

        For a document, each content collection directly below it is listed (annotated with
        the collection's own acl), immediately followed by the collection's content as
        siblings in the same flat list. Content is traversed without a type filter.
        """
        if not node.is_of_type(self.document_node_type):
            return self.materialize(node, roles, max_depth=max_depth, node_type_filter=None, recursion_level=1)

        out: List[NodeRecord] = []
        for collection in self.nodes.get_child_nodes(node, self.content_collection_node_type) or []:
            if collection.type_name != self.content_collection_node_type:
                logger.debug("Skipping %s: %s is not exactly a content collection", collection.path, collection.type_name)
                continue
            record = node_record(collection)
            record.acl = self.evaluator.summarize(collection, roles)
            out.append(record)
            out.extend(
                self.materialize(collection, roles, max_depth=max_depth, node_type_filter=None, recursion_level=1)
            )
        return out
