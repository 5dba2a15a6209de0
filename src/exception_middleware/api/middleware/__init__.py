"""ASGI middleware components."""

from exception_middleware.api.middleware.exception_middleware import ExceptionMiddleware

__all__ = ["ExceptionMiddleware"]
