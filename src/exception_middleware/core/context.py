"""
Per-request context for the exception middleware.

A RequestContext carries the request metadata used to rebuild the request
URL, plus the response status observed so far. It is created once per HTTP
exchange and stored in the ASGI scope state so downstream handlers can set a
specific error status before raising.
"""

from dataclasses import dataclass
from typing import Any, Mapping

REQUEST_CONTEXT_KEY = "request_context"

STATUS_UNSET = 0
STATUS_OK = 200

DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443}


def build_request_url(scheme: str, host: str, path_base: str, path: str, query: str = "") -> str:
    """
    Compose an absolute request URL.

    Produces ``scheme://host{path_base}{path}?{query}``. The ``?`` is only
    emitted for a non-empty query, and a query given with its leading ``?``
    is accepted as-is.

    Args:
        scheme: URL scheme (``http``, ``https``)
        host: Host, optionally with ``:port``
        path_base: Mount prefix of the application
        path: Request path below the mount prefix
        query: Raw query string

    Returns:
        str: Reconstructed URL
    """
    full_path = f"{path_base}{path}" or "/"
    if not full_path.startswith("/"):
        full_path = f"/{full_path}"

    query = query.lstrip("?")
    url = f"{scheme}://{host}{full_path}"
    if query:
        url = f"{url}?{query}"
    return url


def _header(scope: Mapping[str, Any], name: bytes) -> str | None:
    for key, value in scope.get("headers") or []:
        if key.lower() == name:
            return value.decode("latin-1")
    return None


def _host_from_scope(scope: Mapping[str, Any], scheme: str) -> str:
    host = _header(scope, b"host")
    if host:
        return host

    server = scope.get("server")
    if not server:
        return "localhost"

    name, port = server
    if port is None or DEFAULT_PORTS.get(scheme) == port:
        return name
    return f"{name}:{port}"


@dataclass
class RequestContext:
    """Request metadata and mutable response state for one HTTP exchange."""

    scheme: str
    host: str
    path_base: str = ""
    path: str = "/"
    query_string: str = ""
    status_code: int = STATUS_UNSET
    response_started: bool = False
    response_completed: bool = False

    @classmethod
    def from_scope(cls, scope: Mapping[str, Any]) -> "RequestContext":
        """
        Build a context from an ASGI HTTP scope.

        ``root_path`` becomes the path base. Starlette mounts keep the root
        path inside ``path`` as well, so the prefix is stripped there to
        avoid doubling it in the reconstructed URL.
        """
        scheme = scope.get("scheme") or "http"
        path_base = scope.get("root_path") or ""
        path = scope.get("path") or "/"
        if path_base and path.startswith(path_base):
            path = path[len(path_base):]

        return cls(
            scheme=scheme,
            host=_host_from_scope(scope, scheme),
            path_base=path_base,
            path=path,
            query_string=(scope.get("query_string") or b"").decode("latin-1"),
        )

    @property
    def request_url(self) -> str:
        """Absolute URL of the request."""
        return build_request_url(
            self.scheme,
            self.host,
            self.path_base,
            self.path,
            self.query_string,
        )

    def is_status_unset_or_ok(self) -> bool:
        """True when no status was assigned yet or it is still 200 OK."""
        return self.status_code in (STATUS_UNSET, STATUS_OK)


def attach_request_context(scope: dict, context: RequestContext) -> None:
    """Expose the context through ``request.state.request_context``."""
    scope.setdefault("state", {})[REQUEST_CONTEXT_KEY] = context


def get_attached_context(scope: Mapping[str, Any]) -> RequestContext | None:
    """Return the context stored by the middleware, if any."""
    state = scope.get("state") or {}
    return state.get(REQUEST_CONTEXT_KEY)
