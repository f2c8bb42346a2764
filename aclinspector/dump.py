"""JSON dump helpers (CLI/HTTP friendly, testable).

We keep printing/response logic out of core modules; this returns plain dicts with the
camelCase keys consumers expect.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

from aclinspector.core.models import NodeRecord, PermissionSummary, PrivilegeCheckResult


def record_to_json_dict(record: NodeRecord) -> Dict[str, Any]:
    # `childNodes` is omitted (not null, not []) for records that were not expanded.
    out = record.model_dump(mode="json", by_alias=True, exclude={"child_nodes"})
    if record.child_nodes is not None:
        out["childNodes"] = tree_to_json_list(record.child_nodes)
    return out


def tree_to_json_list(records: Sequence[NodeRecord]) -> List[Dict[str, Any]]:
    return [record_to_json_dict(r) for r in records]


def summary_to_json_dict(summary: Mapping[str, PermissionSummary]) -> Dict[str, Any]:
    return {role: s.model_dump(mode="json", by_alias=True) for role, s in summary.items()}


def privilege_result_to_json_dict(result: PrivilegeCheckResult) -> Dict[str, Any]:
    return result.model_dump(mode="json", by_alias=True)
