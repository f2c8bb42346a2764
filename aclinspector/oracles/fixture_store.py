"""YAML-backed node and policy stores for local development and tests.

A fixture describes node types (with supertypes), sites, a flat list of nodes addressed by
path, and roles carrying privilege rules:

    workspace: live
    node_types:
      Acme:Page: [Neos.Neos:Document]
    sites:
      - {name: acme, online: true}
    nodes:
      - {path: /sites, type: unstructured}
      - {path: /sites/acme, identifier: n-home, type: Acme:Page, label: Home}
    roles:
      Acme:Editor:
        privileges:
          - target: Acme:EditSite
            kind: edit-node
            permission: grant
            matcher: {path: /sites/acme, node_types: [Acme:Page]}

Children are returned in document order. Decisions follow "deny wins, otherwise any grant".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import yaml

from aclinspector.core.privileges import CreateNodePrivilegeSubject, NodePrivilegeSubject, PrivilegeKind
from aclinspector.errors import FixtureError, RoleNotFoundError

logger = logging.getLogger(__name__)

_PERMISSIONS = ("grant", "deny", "abstain")


@dataclass
class NodeTypeRegistry:
    supertypes: Dict[str, List[str]] = field(default_factory=dict)

    def is_a(self, type_name: str, expected: str) -> bool:
        """Transitive, cycle-safe supertype check."""
        seen: Set[str] = set()
        pending = [type_name]
        while pending:
            current = pending.pop()
            if current == expected:
                return True
            if current in seen:
                continue
            seen.add(current)
            pending.extend(self.supertypes.get(current, []))
        return False


@dataclass(frozen=True)
class FixtureNode:
    identifier: str
    path: str
    label: Optional[str]
    type_name: str
    depth: int
    types: NodeTypeRegistry = field(repr=False, compare=False)

    def is_of_type(self, type_name: str) -> bool:
        return self.types.is_a(self.type_name, type_name)


def _parse_type_filter(type_filter: Optional[str]) -> Tuple[List[str], List[str]]:
    """Split "A,B,!C" into (include, exclude)."""
    include: List[str] = []
    exclude: List[str] = []
    for part in (type_filter or "").split(","):
        part = part.strip()
        if not part:
            continue
        if part.startswith("!"):
            exclude.append(part[1:].strip())
        else:
            include.append(part)
    return include, exclude


@dataclass
class FixtureNodeStore:
    types: NodeTypeRegistry
    nodes_by_path: Dict[str, FixtureNode] = field(default_factory=dict)
    children: Dict[str, List[str]] = field(default_factory=dict)
    sites: List[Dict[str, Any]] = field(default_factory=list)
    workspace_name: str = "live"

    def add(self, node: FixtureNode) -> None:
        if node.path in self.nodes_by_path:
            raise FixtureError(f"Duplicate node path: {node.path}")
        parent = _parent_path(node.path)
        if parent != "/" and parent not in self.nodes_by_path:
            raise FixtureError(f"Parent of {node.path} is not defined (declare {parent} first)")
        self.nodes_by_path[node.path] = node
        self.children.setdefault(parent, []).append(node.path)

    def _matches(self, node: FixtureNode, type_filter: Optional[str]) -> bool:
        include, exclude = _parse_type_filter(type_filter)
        if any(node.is_of_type(t) for t in exclude):
            return False
        if include and not any(node.is_of_type(t) for t in include):
            return False
        return True

    def get_child_nodes(self, node: FixtureNode, type_filter: Optional[str]) -> List[FixtureNode]:
        out = []
        for path in self.children.get(node.path, []):
            child = self.nodes_by_path[path]
            if self._matches(child, type_filter):
                out.append(child)
        return out

    def has_child_nodes(self, node: FixtureNode, type_filter: Optional[str]) -> bool:
        return bool(self.get_child_nodes(node, type_filter))

    def get_node(self, identifier: str) -> Optional[FixtureNode]:
        if identifier in self.nodes_by_path:
            return self.nodes_by_path[identifier]
        for node in self.nodes_by_path.values():
            if node.identifier == identifier:
                return node
        return None

    def resolve_default_entry_node(self) -> FixtureNode:
        for site in self.sites:
            if not site.get("online", True):
                continue
            path = f"/sites/{site['name']}"
            node = self.nodes_by_path.get(path)
            if node is None:
                raise FixtureError(f"Site '{site['name']}' has no node at {path}")
            return node
        raise FixtureError(f"No online site in workspace '{self.workspace_name}'")


@dataclass(frozen=True)
class FixturePrivilege:
    target_identifier: str
    kind: PrivilegeKind
    permission: str
    path: Optional[str] = None
    node_types: Tuple[str, ...] = ()
    create_types: Tuple[str, ...] = ()
    types: NodeTypeRegistry = field(default_factory=NodeTypeRegistry, repr=False, compare=False)

    def matches_subject(self, subject: NodePrivilegeSubject) -> bool:
        node = subject.node
        if self.path is not None:
            base = self.path.rstrip("/")
            if node.path != (base or "/") and not node.path.startswith(base + "/"):
                return False
        if self.node_types and not any(node.is_of_type(t) for t in self.node_types):
            return False
        if self.kind is PrivilegeKind.CREATE_NODE and self.create_types:
            created = subject.creation_node_type if isinstance(subject, CreateNodePrivilegeSubject) else None
            if created is not None and not any(self.types.is_a(created, t) for t in self.create_types):
                return False
        return True

    def is_granted(self) -> bool:
        return self.permission == "grant"

    def is_denied(self) -> bool:
        return self.permission == "deny"

    def is_abstained(self) -> bool:
        return self.permission == "abstain"


@dataclass(frozen=True)
class FixtureRole:
    identifier: str
    privileges: Tuple[FixturePrivilege, ...] = ()


@dataclass
class FixturePolicyStore:
    roles: Dict[str, FixtureRole] = field(default_factory=dict)

    def get_role(self, identifier: str) -> FixtureRole:
        role = self.roles.get(identifier)
        if role is None:
            raise RoleNotFoundError(identifier)
        return role

    def is_granted_for_roles(
        self, roles: Iterable[FixtureRole], kind: PrivilegeKind, subject: NodePrivilegeSubject
    ) -> bool:
        granted = False
        for role in roles:
            for privilege in role.privileges:
                if privilege.kind is not kind or not privilege.matches_subject(subject):
                    continue
                if privilege.is_denied():
                    return False
                if privilege.is_granted():
                    granted = True
        return granted


def _parent_path(path: str) -> str:
    parent = path.rstrip("/").rsplit("/", 1)[0]
    return parent or "/"


def _mapping(value: Any, what: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise FixtureError(f"{what} must be a mapping, got {type(value).__name__}")
    return value


def _type_list(value: Any, what: str) -> List[str]:
    """A single type name is shorthand for a one-item list."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
        raise FixtureError(f"{what} must be a type name or a list of type names")
    return [t.strip() for t in value if t.strip()]


def _parse_node(raw: Any, types: NodeTypeRegistry) -> FixtureNode:
    if not isinstance(raw, dict):
        raise FixtureError(f"Node entry must be a mapping, got {raw!r}")
    path = str(raw.get("path") or "").strip()
    if not path.startswith("/") or path == "/":
        raise FixtureError(f"Invalid node path: {path!r}")
    path = path.rstrip("/")
    type_name = str(raw.get("type") or "").strip()
    if not type_name:
        raise FixtureError(f"Node {path} has no type")
    name = path.rsplit("/", 1)[-1]
    return FixtureNode(
        identifier=str(raw.get("identifier") or path),
        path=path,
        label=raw.get("label") or name,
        type_name=type_name,
        depth=len([p for p in path.split("/") if p]),
        types=types,
    )


def _parse_privilege(raw: Any, types: NodeTypeRegistry, role_id: str) -> FixturePrivilege:
    if not isinstance(raw, dict):
        raise FixtureError(f"Privilege entry in role {role_id} must be a mapping, got {raw!r}")
    target = str(raw.get("target") or "").strip()
    if not target:
        raise FixtureError(f"Privilege without target in role {role_id}")
    try:
        kind = PrivilegeKind(str(raw.get("kind") or "").strip())
    except ValueError as e:
        raise FixtureError(f"Unknown privilege kind {raw.get('kind')!r} for {target}") from e
    permission = str(raw.get("permission") or "").strip().lower()
    if permission not in _PERMISSIONS:
        raise FixtureError(f"Permission for {target} must be one of {_PERMISSIONS}, got {permission!r}")

    matcher = raw.get("matcher") or {}
    if not isinstance(matcher, dict):
        raise FixtureError(f"Matcher for {target} must be a mapping")
    return FixturePrivilege(
        target_identifier=target,
        kind=kind,
        permission=permission,
        path=matcher.get("path"),
        node_types=tuple(_type_list(matcher.get("node_types"), f"Matcher node_types for {target}")),
        create_types=tuple(_type_list(matcher.get("create_types"), f"Matcher create_types for {target}")),
        types=types,
    )


def parse_fixture(data: Dict[str, Any]) -> Tuple[FixtureNodeStore, FixturePolicyStore]:
    if not isinstance(data, dict):
        raise FixtureError("Fixture root must be a mapping")

    types = NodeTypeRegistry(
        supertypes={
            str(k): _type_list(v, f"Supertypes of {k}") for k, v in _mapping(data.get("node_types"), "node_types").items()
        }
    )
    nodes = FixtureNodeStore(
        types=types,
        sites=[s for s in (data.get("sites") or []) if isinstance(s, dict) and s.get("name")],
        workspace_name=str(data.get("workspace") or "live"),
    )
    raw_nodes = data.get("nodes") or []
    if not isinstance(raw_nodes, list):
        raise FixtureError("nodes must be a list")
    for raw in raw_nodes:
        nodes.add(_parse_node(raw, types))

    policy = FixturePolicyStore()
    for role_id, raw_role in _mapping(data.get("roles"), "roles").items():
        raw_privileges = _mapping(raw_role, f"Role {role_id}").get("privileges") or []
        if not isinstance(raw_privileges, list):
            raise FixtureError(f"Privileges of role {role_id} must be a list")
        policy.roles[role_id] = FixtureRole(
            identifier=role_id,
            privileges=tuple(_parse_privilege(p, types, role_id) for p in raw_privileges),
        )

    logger.debug("Loaded fixture: %d node(s), %d role(s)", len(nodes.nodes_by_path), len(policy.roles))
    return nodes, policy


def load_fixture(path: str) -> Tuple[FixtureNodeStore, FixturePolicyStore]:
    fixture_path = Path(path)
    if not fixture_path.exists():
        raise FixtureError(f"Fixture not found: {fixture_path}")
    try:
        with open(fixture_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise FixtureError(f"Invalid fixture YAML in {fixture_path}: {e}") from e
    return parse_fixture(data)
