"""
Per-node ACL evaluation for a set of roles.

Two questions are answered here:
- `summarize`: the four-permission summary (edit / remove / create / show in tree) per role
- `check_privilege_targets`: which privilege rules of the roles matched the node, bucketed by decision

Every check is scoped to a single role, never the role's composed/inherited role set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable

from aclinspector.core.models import PermissionSummary, PrivilegeCheckResult, PrivilegeMatch
from aclinspector.core.privileges import (
    CreateNodePrivilegeSubject,
    NodePrivilegeSubject,
    PrivilegeKind,
    applies_to_node_subject,
    subject_for,
)
from aclinspector.oracles.base import Node, PolicyStore, Role

logger = logging.getLogger(__name__)


@dataclass
class AclEvaluator:
    policy: PolicyStore

    def summarize(self, node: Node, roles: Iterable[Role]) -> Dict[str, PermissionSummary]:
        """
        Return `{role_identifier: PermissionSummary}` for `node`.

        Keys keep first-occurrence order. A role identifier supplied twice is evaluated twice
        and the later summary replaces the earlier one.
        """
        out: Dict[str, PermissionSummary] = {}
        plain = NodePrivilegeSubject(node=node)
        # NOTE: asks "may this role create a child of the node's *own* type", not "any child".
        create = CreateNodePrivilegeSubject(node=node, creation_node_type=node.type_name)

        for role in roles:
            single = [role]
            out[role.identifier] = PermissionSummary(
                edit_node=self.policy.is_granted_for_roles(single, PrivilegeKind.EDIT_NODE, plain),
                remove_node=self.policy.is_granted_for_roles(single, PrivilegeKind.REMOVE_NODE, plain),
                create_node_of_type=self.policy.is_granted_for_roles(single, PrivilegeKind.CREATE_NODE, create),
                show_in_tree=self.policy.is_granted_for_roles(single, PrivilegeKind.NODE_TREE, plain),
            )
        return out

    def check_privilege_targets(self, node: Node, roles: Iterable[Role]) -> PrivilegeCheckResult:
        """
        Enumerate every node-applicable privilege rule of `roles` that matches `node`.

        A rule reporting several outcomes at once lands in each matching bucket.
        """
        result = PrivilegeCheckResult()

        for role in roles:
            for privilege in role.privileges:
                if not applies_to_node_subject(privilege.kind):
                    continue

                if not privilege.matches_subject(subject_for(privilege.kind, node)):
                    continue

                match = PrivilegeMatch(privilege=privilege.target_identifier, role=role.identifier)
                if privilege.is_denied():
                    result.denied.append(match)
                if privilege.is_abstained():
                    result.abstained.append(match)
                if privilege.is_granted():
                    result.granted.append(match)

        logger.debug(
            "Privilege targets for %s: denied=%d abstained=%d granted=%d",
            node.path,
            len(result.denied),
            len(result.abstained),
            len(result.granted),
        )
        return result
