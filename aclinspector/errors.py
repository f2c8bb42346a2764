"""Exception types raised by the ACL inspector and its oracles."""

from __future__ import annotations


class AclInspectorError(Exception):
    """Base class for all inspector errors."""


class RoleNotFoundError(AclInspectorError):
    """Raised by a policy store when a role identifier does not resolve."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Role '{identifier}' does not exist")
        self.identifier = identifier


class NodeNotFoundError(AclInspectorError):
    """Raised when a node lookup by identifier finds nothing."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Node '{identifier}' not found")
        self.identifier = identifier


class FixtureError(AclInspectorError):
    """Raised when a fixture file is missing, malformed or has no entry node."""
