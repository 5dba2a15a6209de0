"""
Exception middleware for ASGI applications.

This middleware catches exceptions that escape route handlers anywhere
downstream, so individual endpoints do not need their own handlers. Each
caught exception is turned into an XML error report which is logged and
written as the response body.

Implemented as pure ASGI middleware rather than BaseHTTPMiddleware: the
``http.response.start`` message is held back until the first body chunk so
that a status set downstream is observed but stays replaceable when the
handler raises before writing anything.
"""

import structlog
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from exception_middleware.core.config import Settings, get_settings
from exception_middleware.core.context import (
    RequestContext,
    attach_request_context,
)
from exception_middleware.core.errors import ErrorReport
from exception_middleware.core.logging import LogContext, get_logger, log_error

STATUS_INTERNAL_SERVER_ERROR = 500


class ExceptionMiddleware:
    """
    Middleware to catch, report and respond to unhandled exceptions.

    Successful exchanges pass through untouched. When the downstream
    application raises, the response status becomes 500 unless a non-200
    status was already set, the error report is logged once at error level,
    and the same document is sent as the response body. The exception is
    never re-raised.
    """

    def __init__(
        self,
        app: ASGIApp,
        logger: structlog.stdlib.BoundLogger | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize the middleware.

        Args:
            app: Downstream ASGI application
            logger: Logger receiving error reports (defaults to this module's logger)
            settings: Settings (defaults to the cached application settings)
        """
        self.app = app
        self.logger = logger if logger is not None else get_logger(__name__)
        self.settings = settings if settings is not None else get_settings()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        context = RequestContext.from_scope(scope)
        attach_request_context(scope, context)

        pending_start: Message | None = None

        async def send_wrapper(message: Message) -> None:
            nonlocal pending_start

            if message["type"] == "http.response.start":
                context.status_code = message["status"]
                pending_start = message
                return

            if pending_start is not None:
                await send(pending_start)
                pending_start = None
                context.response_started = True

            if message["type"] == "http.response.body" and not message.get("more_body", False):
                context.response_completed = True

            await send(message)

        with LogContext(request_url=context.request_url, method=scope.get("method")):
            try:
                await self.app(scope, receive, send_wrapper)
            except Exception as exc:
                await self.handle_exception(context, exc, send)
                return

        if pending_start is not None:
            # Start sent without any body; release it as-is.
            await send(pending_start)
            context.response_started = True

    async def handle_exception(self, context: RequestContext, exc: Exception, send: Send) -> None:
        """
        Report an exception raised downstream and write the error response.

        Args:
            context: Context of the failing request
            exc: Exception raised by the downstream application
            send: ASGI send callable of the server
        """
        if context.response_completed:
            # Nothing can be written any more; keep the failure visible.
            log_error(
                self.logger,
                exc,
                "Unhandled error after response completed",
                status_code=context.status_code,
            )
            return

        # A started response has committed its status already.
        if not context.response_started and context.is_status_unset_or_ok():
            context.status_code = STATUS_INTERNAL_SERVER_ERROR

        report = ErrorReport.from_exception(
            context,
            exc,
            max_depth=self.settings.max_cause_depth,
            include_stack_trace=self.settings.include_stack_trace,
        )
        document = report.to_xml()

        self.logger.error(document)

        await self.write_response(context, document, send)

    async def write_response(self, context: RequestContext, document: str, send: Send) -> None:
        """Send ``document`` as the response body, starting the response if needed."""
        body = document.encode("utf-8")

        if not context.response_started:
            await send({
                "type": "http.response.start",
                "status": context.status_code,
                "headers": [
                    (b"content-type", self.settings.error_content_type.encode("latin-1")),
                    (b"content-length", str(len(body)).encode("latin-1")),
                ],
            })
            context.response_started = True

        await send({
            "type": "http.response.body",
            "body": body,
            "more_body": False,
        })
        context.response_completed = True
