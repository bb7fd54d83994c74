"""
Single entrypoint Lambda that routes HTTP API requests to thin handler modules.

Routes are matched per path segment; ``{name}`` segments are captured and
handed to the handler as ``pathParameters``. An optional ``/api`` prefix is
accepted so ``/api/tickets`` and ``/tickets`` reach the same handlers.
"""

from typing import Callable, Dict, List, Optional, Tuple
import json

from . import health_check, service_info, tickets


def _response(status: int, body: Dict) -> Dict:
    """Format a JSON API Gateway HTTP API response."""
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }


def _route_table() -> Tuple[Tuple[str, str, Callable], ...]:
    # Resolved per call so handlers can be swapped out in tests.
    return (
        ("GET", "/", service_info.lambda_handler),
        ("GET", "/health", health_check.lambda_handler),
        ("POST", "/tickets", tickets.create_handler),
        ("GET", "/tickets", tickets.list_handler),
        ("GET", "/tickets/{id}", tickets.get_handler),
        ("PUT", "/tickets/{id}", tickets.update_handler),
        ("DELETE", "/tickets/{id}", tickets.delete_handler),
    )


def _segments(path: str) -> List[str]:
    parts = [p for p in path.split("/") if p]
    if parts and parts[0] == "api":
        parts = parts[1:]
    return parts


def match_path(template: str, path: str) -> Optional[Dict[str, str]]:
    """Return captured parameters if path fits template, else None."""
    expected = _segments(template)
    actual = _segments(path)
    if len(expected) != len(actual):
        return None
    params: Dict[str, str] = {}
    for want, got in zip(expected, actual):
        if want.startswith("{") and want.endswith("}"):
            params[want[1:-1]] = got
        elif want != got:
            return None
    return params


def lambda_handler(event, context):
    """
    Entry point invoked by API Gateway HTTP API.

    The event contains the HTTP method and path; we route it to the correct
    handler while keeping shared setup (logging, error handling) centralized.
    """
    method = event.get("requestContext", {}).get("http", {}).get("method", "").upper()
    path = event.get("requestContext", {}).get("http", {}).get("path", "")
    route_key = f"{method} {path}"

    path_known = False
    for route_method, template, handler in _route_table():
        params = match_path(template, path)
        if params is None:
            continue
        path_known = True
        if route_method != method:
            continue
        if params:
            event = {**event, "pathParameters": {**(event.get("pathParameters") or {}), **params}}
        return handler(event, context)

    if path_known:
        return _response(405, {"message": "Method not allowed", "route": route_key})
    return _response(404, {"message": "Route not found", "route": route_key})
