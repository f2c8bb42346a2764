"""
ACL inspector HTTP server.

Thin JSON surface over `AclCheckerService`: permission-annotated document trees,
content-area trees, single-node summaries and privilege-target reports.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from aclinspector.acl.service import AclCheckerService
from aclinspector.config import InspectorConfig, load_inspector_config, split_csv
from aclinspector.core.models import AclTreeRequest
from aclinspector.dump import privilege_result_to_json_dict, summary_to_json_dict, tree_to_json_list
from aclinspector.errors import FixtureError, NodeNotFoundError
from aclinspector.oracles.base import Node, Role
from aclinspector.oracles.fixture_store import load_fixture

logger = logging.getLogger(__name__)

_service_cache: Dict[InspectorConfig, AclCheckerService] = {}
_service_lock = threading.Lock()


def _get_service() -> AclCheckerService:
    """
    Return a cached service built from env config.

    Loading the fixture per request is wasteful; the cache is keyed by the full config so
    a config change (e.g. a different fixture path in tests) picks up a fresh service.
    """
    cfg = load_inspector_config()

    cached = _service_cache.get(cfg)
    if cached is not None:
        return cached

    with _service_lock:
        cached = _service_cache.get(cfg)
        if cached is not None:
            return cached
        nodes, policy = load_fixture(cfg.fixture_path)
        service = AclCheckerService(nodes=nodes, policy=policy, config=cfg)
        _service_cache[cfg] = service
        return service


def _roles_param(service: AclCheckerService, roles: Optional[str]) -> List[Role]:
    identifiers = split_csv(roles or "") or list(service.config.default_roles)
    return service.resolve_roles(identifiers)


def _node_or_404(service: AclCheckerService, node_id: str) -> Node:
    try:
        return service.get_node(node_id)
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


app = FastAPI(title="ACL inspector")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming HTTP requests."""
    start_time = time.time()
    logger.debug("%s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.debug("%s %s - %d (%.3fs)", request.method, request.url.path, response.status_code, process_time)
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.exception("%s %s - ERROR after %.3fs: %s", request.method, request.url.path, process_time, str(e))
        raise


@app.exception_handler(FixtureError)
async def fixture_error_handler(_request: Request, exc: FixtureError) -> JSONResponse:
    # The oracles are unusable (missing/broken fixture or no entry node).
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.get("/healthz")
def healthz() -> Dict[str, Any]:
    return {"ok": True}


@app.post("/api/v1/acl/tree")
def acl_tree(req: AclTreeRequest) -> Dict[str, Any]:
    service = _get_service()
    if not req.roles and service.config.default_roles:
        req = req.model_copy(update={"roles": list(service.config.default_roles)})
    nodes = service.resolve_request(req)
    return {"ok": True, "nodes": tree_to_json_list(nodes)}


@app.get("/api/v1/acl/nodes/{node_id:path}/content")
def acl_content_tree(
    node_id: str,
    roles: Optional[str] = Query(None, description="Comma-separated role identifiers"),
    depth: Optional[int] = Query(None, ge=0),
) -> Dict[str, Any]:
    service = _get_service()
    node = _node_or_404(service, node_id)
    records = service.build_acl_tree_for_content_area(node, _roles_param(service, roles), depth)
    return {"ok": True, "node": node.identifier, "nodes": tree_to_json_list(records)}


@app.get("/api/v1/acl/nodes/{node_id:path}/summary")
def acl_node_summary(node_id: str, roles: Optional[str] = Query(None)) -> Dict[str, Any]:
    service = _get_service()
    node = _node_or_404(service, node_id)
    summary = service.summarize(node, _roles_param(service, roles))
    return {"ok": True, "node": node.identifier, "acl": summary_to_json_dict(summary)}


@app.get("/api/v1/acl/nodes/{node_id:path}/privileges")
def acl_node_privileges(node_id: str, roles: Optional[str] = Query(None)) -> Dict[str, Any]:
    service = _get_service()
    node = _node_or_404(service, node_id)
    result = service.check_privilege_targets(node, _roles_param(service, roles))
    return {"ok": True, "node": node.identifier, "privileges": privilege_result_to_json_dict(result)}


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    import uvicorn

    log_level = os.getenv("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    logger.info("Starting ACL inspector on %s:%d (log_level=%s)", host, port, log_level)
    uvicorn.run(app, host=host, port=port, log_level=uvicorn_log_level)
