"""
Error reports built from unhandled exceptions.

An ErrorReport captures the response status, the request URL, the messages
of the whole cause chain and the stack trace of the outermost exception, and
serializes them to a small XML document:

    <Error statusCode="500">
      <Request>https://example.com/widgets/42</Request>
      <Message>not found
    db timeout</Message>
      <StackTrace>...</StackTrace>
    </Error>
"""

import re
import traceback
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterator

from exception_middleware.core.context import RequestContext

DEFAULT_MAX_CAUSE_DEPTH = 64

# Anything outside the XML 1.0 Char production.
_INVALID_XML_CHARS = re.compile(
    "[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]"
)


def _inner_exception(exc: BaseException) -> BaseException | None:
    if exc.__cause__ is not None:
        return exc.__cause__
    if not exc.__suppress_context__:
        return exc.__context__
    return None


def iter_exception_chain(
    exc: BaseException,
    max_depth: int = DEFAULT_MAX_CAUSE_DEPTH,
) -> Iterator[BaseException]:
    """
    Walk the cause chain of an exception, outermost first.

    Follows ``__cause__`` and, when no explicit cause is set and the context
    is not suppressed, ``__context__``. Stops when no further cause exists,
    when an exception already yielded comes around again, or after
    ``max_depth`` exceptions.

    Args:
        exc: Outermost exception
        max_depth: Maximum number of exceptions to yield

    Yields:
        BaseException: Each exception in the chain
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and len(seen) < max_depth:
        if id(current) in seen:
            return
        seen.add(id(current))
        yield current
        current = _inner_exception(current)


def exception_message(exc: BaseException) -> str:
    """``str(exc)``, or a placeholder when the exception cannot be printed."""
    try:
        return str(exc)
    except Exception:
        return f"<unprintable {type(exc).__name__} object>"


def xml_text(value: str) -> str:
    """Replace characters XML 1.0 cannot carry with U+FFFD."""
    return _INVALID_XML_CHARS.sub("\ufffd", value)


def flatten_messages(exc: BaseException, max_depth: int = DEFAULT_MAX_CAUSE_DEPTH) -> str:
    """Join the messages of the cause chain, one per line."""
    return "\n".join(exception_message(e) for e in iter_exception_chain(exc, max_depth))


def format_stack_trace(exc: BaseException) -> str:
    """Frames of the outermost exception only, without the message line."""
    if exc.__traceback__ is None:
        return ""
    return "".join(traceback.format_tb(exc.__traceback__))


@dataclass(frozen=True)
class ErrorReport:
    """Structured description of an exception caught while serving a request."""

    status_code: int
    request_url: str
    message: str
    stack_trace: str

    @classmethod
    def from_exception(
        cls,
        context: RequestContext,
        exc: BaseException,
        max_depth: int = DEFAULT_MAX_CAUSE_DEPTH,
        include_stack_trace: bool = True,
    ) -> "ErrorReport":
        """
        Build a report for ``exc`` raised while serving ``context``.

        The status is taken from the context as-is; the caller applies the
        status policy first.
        """
        return cls(
            status_code=context.status_code,
            request_url=context.request_url,
            message=flatten_messages(exc, max_depth),
            stack_trace=format_stack_trace(exc) if include_stack_trace else "",
        )

    def to_element(self) -> ET.Element:
        error = ET.Element("Error", {"statusCode": str(self.status_code)})
        ET.SubElement(error, "Request").text = xml_text(self.request_url)
        ET.SubElement(error, "Message").text = xml_text(self.message)
        ET.SubElement(error, "StackTrace").text = xml_text(self.stack_trace)
        return error

    def to_xml(self) -> str:
        """Serialize the report as an XML document without declaration."""
        return ET.tostring(self.to_element(), encoding="unicode")
