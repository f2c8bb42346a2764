from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

import pytest

from aclinspector.acl.evaluator import AclEvaluator
from aclinspector.acl.materializer import TreeMaterializer
from aclinspector.core.models import NodeRecord
from aclinspector.core.privileges import PrivilegeKind
from aclinspector.dump import tree_to_json_list

DOC = "Neos.Neos:Document"
COLLECTION = "Neos.Neos:ContentCollection"

_SUPERTYPES: Dict[str, Set[str]] = {
    "Neos.Neos:Page": {DOC},
    COLLECTION: {"Neos.Neos:Content"},
    "Acme:Column": {COLLECTION, "Neos.Neos:Content"},
    "Neos.NodeTypes:Text": {"Neos.Neos:Content"},
}


@dataclass(eq=False)
class _Node:
    identifier: str
    type_name: str = "Neos.Neos:Page"
    children: List["_Node"] = field(default_factory=list)
    depth: int = 0
    parent: Optional["_Node"] = field(default=None, repr=False)

    @property
    def path(self) -> str:
        return f"{self.parent.path if self.parent else ''}/{self.identifier}"

    @property
    def label(self) -> str:
        return self.identifier.upper()

    def is_of_type(self, type_name: str) -> bool:
        return type_name == self.type_name or type_name in _SUPERTYPES.get(self.type_name, set())

    def add(self, *children: "_Node") -> "_Node":
        for c in children:
            c.parent = self
            c.depth = self.depth + 1
            self.children.append(c)
        return self


class _Store:
    def get_child_nodes(self, node: _Node, type_filter: Optional[str]) -> List[_Node]:
        return [c for c in node.children if type_filter is None or c.is_of_type(type_filter)]

    def has_child_nodes(self, node: _Node, type_filter: Optional[str]) -> bool:
        return bool(self.get_child_nodes(node, type_filter))

    def get_node(self, identifier: str) -> Optional[_Node]:
        return None

    def resolve_default_entry_node(self) -> _Node:
        raise NotImplementedError


class _NodePolicy:
    """Grants `kind` on the listed node identifiers for every role."""

    def __init__(self, grants: Optional[Set[Tuple[str, PrivilegeKind]]] = None) -> None:
        self.grants = grants or set()

    def get_role(self, identifier: str):  # type: ignore[no-untyped-def]
        raise NotImplementedError

    def is_granted_for_roles(self, roles, kind, subject) -> bool:  # type: ignore[no-untyped-def]
        return bool(list(roles)) and (subject.node.identifier, kind) in self.grants


@dataclass
class _Role:
    identifier: str
    privileges: Tuple = ()


def _materializer(policy: Optional[_NodePolicy] = None, **kwargs) -> TreeMaterializer:  # type: ignore[no-untyped-def]
    return TreeMaterializer(nodes=_Store(), evaluator=AclEvaluator(policy=policy or _NodePolicy()), **kwargs)


def _two_level_tree() -> _Node:
    # root -> a, b ; a -> a1
    return _Node("root").add(_Node("a").add(_Node("a1")), _Node("b"))


def _ids(records: List[NodeRecord]) -> List[str]:
    return [r.node_identifier for r in records]


def test_depth_one_lists_top_level_without_expanding() -> None:
    out = _materializer().materialize(_two_level_tree(), [_Role("Editor")], max_depth=1)

    assert _ids(out) == ["a", "b"]
    # Level 1 is not < max_depth 1, so a1 is never loaded.
    assert out[0].child_nodes is None
    assert out[1].child_nodes is None


def test_depth_zero_expands_to_natural_leaves() -> None:
    out = _materializer().materialize(_two_level_tree(), [_Role("Editor")], max_depth=0)

    assert _ids(out) == ["a", "b"]
    assert _ids(out[0].child_nodes or []) == ["a1"]
    assert out[0].child_nodes[0].child_nodes is None  # type: ignore[index]
    assert out[1].child_nodes is None


def test_positive_depth_stops_expanding_at_level_n() -> None:
    root = _Node("root")
    cur = root
    for name in ("l1", "l2", "l3", "l4"):
        nxt = _Node(name)
        cur.add(nxt)
        cur = nxt

    out = _materializer().materialize(root, [], max_depth=3)

    l1 = out[0]
    l2 = l1.child_nodes[0]  # type: ignore[index]
    l3 = l2.child_nodes[0]  # type: ignore[index]
    assert (l1.node_identifier, l2.node_identifier, l3.node_identifier) == ("l1", "l2", "l3")
    assert l3.child_nodes is None


def test_expandable_node_without_children_has_no_child_nodes_field() -> None:
    root = _Node("root").add(_Node("leaf"))
    out = _materializer().materialize(root, [], max_depth=0)

    assert out[0].child_nodes is None
    dumped = tree_to_json_list(out)
    assert "childNodes" not in dumped[0]


def test_records_use_node_metadata_not_recursion_level() -> None:
    root = _Node("root").add(_Node("a").add(_Node("a1")))
    root.depth = 5
    root.children[0].depth = 6
    root.children[0].children[0].depth = 7

    out = _materializer().materialize(root, [], max_depth=0)

    a = out[0]
    assert (a.node_path, a.node_label, a.node_type, a.node_level) == ("/root/a", "A", "Neos.Neos:Page", 6)
    assert a.child_nodes[0].node_level == 7  # type: ignore[index]


def test_acl_is_computed_against_parent_by_default() -> None:
    policy = _NodePolicy({("root", PrivilegeKind.EDIT_NODE)})
    out = _materializer(policy).materialize(_two_level_tree(), [_Role("Editor")], max_depth=0)

    assert out[0].acl["Editor"].edit_node is True  # a carries root's permissions
    assert out[1].acl["Editor"].edit_node is True
    assert out[0].child_nodes[0].acl["Editor"].edit_node is False  # type: ignore[index]


def test_acl_target_self_evaluates_the_listed_node() -> None:
    policy = _NodePolicy({("root", PrivilegeKind.EDIT_NODE), ("a1", PrivilegeKind.EDIT_NODE)})
    out = _materializer(policy, acl_target="self").materialize(_two_level_tree(), [_Role("Editor")], max_depth=0)

    assert out[0].acl["Editor"].edit_node is False
    assert out[0].child_nodes[0].acl["Editor"].edit_node is True  # type: ignore[index]


def test_acl_has_one_entry_per_role_and_none_without_roles() -> None:
    out = _materializer().materialize(_two_level_tree(), [_Role("A"), _Role("B")], max_depth=1)
    assert list(out[0].acl.keys()) == ["A", "B"]

    out = _materializer().materialize(_two_level_tree(), [], max_depth=1)
    assert out[0].acl == {}


def test_type_filter_applies_to_every_level() -> None:
    root = _Node("root").add(
        _Node("page").add(_Node("main", COLLECTION), _Node("sub")),
        _Node("text", "Neos.NodeTypes:Text"),
    )

    docs = _materializer().materialize(root, [], max_depth=0, node_type_filter=DOC)
    assert _ids(docs) == ["page"]
    assert _ids(docs[0].child_nodes or []) == ["sub"]

    everything = _materializer().materialize(root, [], max_depth=0, node_type_filter=None)
    assert _ids(everything) == ["page", "text"]
    assert _ids(everything[0].child_nodes or []) == ["main", "sub"]


def test_missing_child_enumeration_is_treated_as_empty() -> None:
    class _NullStore(_Store):
        def get_child_nodes(self, node, type_filter):  # type: ignore[no-untyped-def]
            return None

    m = TreeMaterializer(nodes=_NullStore(), evaluator=AclEvaluator(policy=_NodePolicy()))
    assert m.materialize(_two_level_tree(), [], max_depth=0) == []


def test_store_errors_propagate() -> None:
    class _BrokenStore(_Store):
        def has_child_nodes(self, node, type_filter):  # type: ignore[no-untyped-def]
            raise RuntimeError("node was removed")

    m = TreeMaterializer(nodes=_BrokenStore(), evaluator=AclEvaluator(policy=_NodePolicy()))
    with pytest.raises(RuntimeError, match="node was removed"):
        m.materialize(_two_level_tree(), [], max_depth=0)


def test_each_call_returns_a_fresh_forest() -> None:
    m = _materializer()
    tree = _two_level_tree()
    first = m.materialize(tree, [], max_depth=0)
    second = m.materialize(tree, [], max_depth=0)

    assert first == second
    assert first is not second
    assert first[0] is not second[0]


def _document_with_content() -> _Node:
    return _Node("page").add(
        _Node("main", COLLECTION).add(
            _Node("text", "Neos.NodeTypes:Text"),
            _Node("nested", COLLECTION).add(_Node("deep", "Neos.NodeTypes:Text")),
        ),
        _Node("column", "Acme:Column").add(_Node("skipped", "Neos.NodeTypes:Text")),
        _Node("sidebar", COLLECTION),
        _Node("subpage"),
    )


def test_content_area_lists_collections_followed_by_their_content() -> None:
    out = _materializer().materialize_content_area(_document_with_content(), [_Role("Editor")], max_depth=4)

    # Collections and their content share one flat list; subtypes of the collection type
    # and sub-documents are not part of the content area.
    assert _ids(out) == ["main", "text", "nested", "sidebar"]
    assert out[0].child_nodes is None
    assert _ids(out[2].child_nodes or []) == ["deep"]


def test_content_area_collection_acl_is_its_own() -> None:
    policy = _NodePolicy({("main", PrivilegeKind.REMOVE_NODE), ("page", PrivilegeKind.EDIT_NODE)})
    out = _materializer(policy).materialize_content_area(_document_with_content(), [_Role("Editor")], max_depth=4)

    main, text = out[0], out[1]
    assert main.acl["Editor"].remove_node is True
    assert main.acl["Editor"].edit_node is False
    # Content below the collection follows the general (parent) rule.
    assert text.acl["Editor"].remove_node is True


def test_content_area_depth_counts_from_each_collection() -> None:
    out = _materializer().materialize_content_area(_document_with_content(), [], max_depth=1)
    assert _ids(out) == ["main", "text", "nested", "sidebar"]
    assert out[2].child_nodes is None


def test_content_area_of_non_document_lists_all_children() -> None:
    collection = _Node("main", COLLECTION).add(
        _Node("text", "Neos.NodeTypes:Text"), _Node("inner", COLLECTION).add(_Node("deep", "Neos.NodeTypes:Text"))
    )
    out = _materializer().materialize_content_area(collection, [], max_depth=0)

    assert _ids(out) == ["text", "inner"]
    assert _ids(out[1].child_nodes or []) == ["deep"]


def test_default_filter_is_the_configured_document_type() -> None:
    root = _Node("root").add(_Node("page"), _Node("main", COLLECTION), _Node("col", "Acme:Column"))

    default = _materializer().materialize(root, [], max_depth=0)
    assert _ids(default) == ["page"]

    custom = _materializer(document_node_type=COLLECTION).materialize(root, [], max_depth=0)
    assert _ids(custom) == ["main", "col"]
