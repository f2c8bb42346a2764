"""
ACL checker service: the composition point used by the CLI and the HTTP server.

Collaborators (node store, policy store) are passed in explicitly; nothing here is a
process-wide singleton.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from aclinspector.acl.evaluator import AclEvaluator
from aclinspector.acl.materializer import TreeMaterializer
from aclinspector.config import InspectorConfig
from aclinspector.core.models import AclTreeRequest, NodeRecord, PermissionSummary, PrivilegeCheckResult
from aclinspector.errors import NodeNotFoundError, RoleNotFoundError
from aclinspector.oracles.base import Node, NodeStore, PolicyStore, Role

logger = logging.getLogger(__name__)


class AclCheckerService:
    def __init__(self, nodes: NodeStore, policy: PolicyStore, config: Optional[InspectorConfig] = None) -> None:
        self.nodes = nodes
        self.policy = policy
        self.config = config or InspectorConfig()
        self.evaluator = AclEvaluator(policy=policy)
        self.materializer = TreeMaterializer(
            nodes=nodes,
            evaluator=self.evaluator,
            acl_target=self.config.acl_target,
            document_node_type=self.config.document_node_type,
            content_collection_node_type=self.config.content_collection_node_type,
        )

    def resolve_roles(self, identifiers: Iterable[str]) -> List[Role]:
        """Resolve role identifiers in order, silently dropping the ones that do not exist."""
        roles: List[Role] = []
        for identifier in identifiers:
            try:
                roles.append(self.policy.get_role(identifier))
            except RoleNotFoundError:
                logger.debug("Ignoring unknown role %s", identifier)
        return roles

    def resolve_entry_node(self) -> Node:
        return self.nodes.resolve_default_entry_node()

    def get_node(self, identifier: str) -> Node:
        node = self.nodes.get_node(identifier)
        if node is None:
            raise NodeNotFoundError(identifier)
        return node

    def effective_depth(self, max_depth: int) -> int:
        """Apply the configured host ceiling to a requested depth (0 = unlimited)."""
        ceiling = self.config.max_tree_depth
        if ceiling <= 0:
            return max_depth
        if max_depth == 0 or max_depth > ceiling:
            logger.warning("Requested tree depth %d exceeds ceiling, clamping to %d", max_depth, ceiling)
            return ceiling
        return max_depth

    def build_acl_tree(self, role_identifiers: Sequence[str], max_depth: int) -> List[NodeRecord]:
        roles = self.resolve_roles(role_identifiers)
        entry = self.resolve_entry_node()
        depth = self.effective_depth(max_depth)
        logger.info("Building ACL tree from %s for %d role(s), depth=%d", entry.path, len(roles), depth)
        return self.materializer.materialize(
            entry,
            roles,
            max_depth=depth,
            node_type_filter=self.config.document_node_type,
        )

    def resolve_request(self, request: AclTreeRequest) -> List[NodeRecord]:
        depth = request.node_tree_loading_depth
        return self.build_acl_tree(request.roles, self.config.tree_depth if depth is None else depth)

    def build_acl_tree_for_content_area(
        self, node: Node, roles: Sequence[Role], max_depth: Optional[int] = None
    ) -> List[NodeRecord]:
        depth = self.config.content_tree_depth if max_depth is None else max_depth
        return self.materializer.materialize_content_area(node, roles, max_depth=self.effective_depth(depth))

    def summarize(self, node: Node, roles: Iterable[Role]) -> Dict[str, PermissionSummary]:
        return self.evaluator.summarize(node, roles)

    def check_privilege_targets(self, node: Node, roles: Iterable[Role]) -> PrivilegeCheckResult:
        return self.evaluator.check_privilege_targets(node, roles)
