"""
Dependency injection for FastAPI.

Route handlers use these dependencies to reach the per-request context
maintained by the exception middleware.
"""

from fastapi import Request

from exception_middleware.core.context import (
    RequestContext,
    attach_request_context,
    get_attached_context,
)


def get_request_context(request: Request) -> RequestContext:
    """
    Dependency injection for the current request context.

    Handlers set ``status_code`` on the returned context before raising to
    have that status kept on the error response.

    Returns:
        RequestContext: Context attached by the middleware, or a fresh one
        when the middleware is not installed
    """
    context = get_attached_context(request.scope)
    if context is None:
        context = RequestContext.from_scope(request.scope)
        attach_request_context(request.scope, context)
    return context
