from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence, runtime_checkable

from aclinspector.core.privileges import NodePrivilegeSubject, PrivilegeKind


@runtime_checkable
class Node(Protocol):
    """
    A node of the external content repository. Read-only from the inspector's side.

    `depth` is repository metadata (distance from the repository root); it is reported as
    `nodeLevel` and is unrelated to the traversal's recursion level.
    """

    @property
    def identifier(self) -> str: ...

    @property
    def path(self) -> str: ...

    @property
    def label(self) -> Optional[str]: ...

    @property
    def type_name(self) -> str: ...

    @property
    def depth(self) -> int: ...

    def is_of_type(self, type_name: str) -> bool: ...


class NodeStore(Protocol):
    """
    Content repository seam.

    `type_filter` is an opaque type-name filter understood by the store; None means
    "all children regardless of type".
    """

    def get_child_nodes(self, node: Node, type_filter: Optional[str]) -> Optional[Sequence[Node]]: ...

    def has_child_nodes(self, node: Node, type_filter: Optional[str]) -> bool: ...

    def get_node(self, identifier: str) -> Optional[Node]: ...

    def resolve_default_entry_node(self) -> Node: ...


class Privilege(Protocol):
    @property
    def target_identifier(self) -> str: ...

    @property
    def kind(self) -> PrivilegeKind: ...

    def matches_subject(self, subject: NodePrivilegeSubject) -> bool: ...

    def is_granted(self) -> bool: ...

    def is_denied(self) -> bool: ...

    def is_abstained(self) -> bool: ...


class Role(Protocol):
    @property
    def identifier(self) -> str: ...

    @property
    def privileges(self) -> Sequence[Privilege]: ...


class PolicyStore(Protocol):
    """Privilege evaluation seam. Implementations may memoize; callers never cache."""

    def get_role(self, identifier: str) -> Role:
        """Return the role or raise `aclinspector.errors.RoleNotFoundError`."""

    def is_granted_for_roles(self, roles: Iterable[Role], kind: PrivilegeKind, subject: NodePrivilegeSubject) -> bool:
        """Decide `kind` for `subject` considering only the given roles (no role inheritance)."""
