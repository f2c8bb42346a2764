#!/usr/bin/env python3
"""
ACL Inspector - permission-annotated content trees
Shows what a set of roles may do on each node of a content tree.
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

# Configure logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)

#
# NOTE: Keep aclinspector imports lazy (inside functions) so `--help` and `--serve`
# don't load the fixture or the pydantic models up front.
#


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=False))


def _build_service(fixture: Optional[str]):
    from dataclasses import replace

    from aclinspector.acl.service import AclCheckerService
    from aclinspector.config import load_inspector_config
    from aclinspector.oracles.fixture_store import load_fixture

    cfg = load_inspector_config()
    if fixture:
        cfg = replace(cfg, fixture_path=fixture)
    nodes, policy = load_fixture(cfg.fixture_path)
    return AclCheckerService(nodes=nodes, policy=policy, config=cfg)


def show_tree(service, role_ids: List[str], depth: Optional[int]) -> List[Dict[str, Any]]:
    """
    Print the permission-annotated document tree below the default entry node.

    Args:
        role_ids: Role identifiers (unknown ones are ignored)
        depth: Tree loading depth (0 = unlimited, None = configured default)
    """
    from aclinspector.dump import tree_to_json_list

    records = service.build_acl_tree(role_ids, service.config.tree_depth if depth is None else depth)
    payload = tree_to_json_list(records)
    _print_json(payload)
    return payload


def show_node(
    service, node_id: str, role_ids: List[str], depth: Optional[int], *, summary: bool, privileges: bool
) -> Dict[str, Any]:
    """
    Print the content area of a node, or its summary / privilege report.

    Args:
        node_id: Node identifier or path
        summary: Print only the node's own permission summary
        privileges: Print the matching privilege targets per decision
    """
    from aclinspector.dump import privilege_result_to_json_dict, summary_to_json_dict, tree_to_json_list

    node = service.get_node(node_id)
    roles = service.resolve_roles(role_ids)

    payload: Dict[str, Any] = {"node": node.identifier, "path": node.path}
    if summary:
        payload["acl"] = summary_to_json_dict(service.summarize(node, roles))
    if privileges:
        payload["privileges"] = privilege_result_to_json_dict(service.check_privilege_targets(node, roles))
    if not (summary or privileges):
        payload["nodes"] = tree_to_json_list(service.build_acl_tree_for_content_area(node, roles, depth))

    _print_json(payload)
    return payload


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Inspect role permissions over a content tree",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Document tree for two roles, two levels deep
  python main.py --roles Neos.Neos:Editor,Acme:Reviewer --depth 2

  # Content area of a page
  python main.py --roles Neos.Neos:Editor --node /sites/acme/about

  # Which privilege targets matched a node
  python main.py --roles Neos.Neos:Editor --node n-about --privileges
        """,
    )

    parser.add_argument("--roles", "-r", default="", help="Comma-separated role identifiers (default: ACL_DEFAULT_ROLES)")
    parser.add_argument(
        "--depth",
        "-d",
        type=int,
        default=None,
        help="Tree loading depth, 0 = unlimited (default: ACL_TREE_DEPTH / ACL_CONTENT_TREE_DEPTH)",
    )
    parser.add_argument("--node", "-n", metavar="ID", help="Inspect a single node (identifier or path)")
    parser.add_argument("--summary", action="store_true", help="With --node: print the node's permission summary")
    parser.add_argument("--privileges", action="store_true", help="With --node: print matching privilege targets")
    parser.add_argument("--fixture", "-f", help="YAML fixture for nodes and roles (default: ACL_FIXTURE_PATH)")
    parser.add_argument("--serve", action="store_true", help="Run the HTTP server instead of printing JSON")
    parser.add_argument("--host", default="0.0.0.0", help="Server bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8080, help="Server listen port (default: 8080)")

    args = parser.parse_args()

    if args.depth is not None and args.depth < 0:
        parser.error("--depth must be >= 0")
    if (args.summary or args.privileges) and not args.node:
        parser.error("--summary/--privileges require --node")

    try:
        if args.serve:
            if args.fixture:
                os.environ["ACL_FIXTURE_PATH"] = args.fixture
            from aclinspector.api.server import run as run_server

            run_server(host=args.host, port=args.port)
            return

        from aclinspector.config import split_csv

        service = _build_service(args.fixture)
        role_ids = split_csv(args.roles) or list(service.config.default_roles)

        if args.node:
            show_node(service, args.node, role_ids, args.depth, summary=args.summary, privileges=args.privileges)
        else:
            show_tree(service, role_ids, args.depth)

    except KeyboardInterrupt:
        print("\n\n⚠️ Interrupted by user", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
