"""Unit tests for request context and URL reconstruction."""

import pytest

from conftest import make_scope
from exception_middleware.core.context import (
    STATUS_UNSET,
    RequestContext,
    attach_request_context,
    build_request_url,
    get_attached_context,
)


class TestBuildRequestUrl:
    """Test URL reconstruction."""

    def test_full_url_with_query_prefix(self):
        url = build_request_url("https", "example.com", "/api", "/items", "?id=5")

        assert url == "https://example.com/api/items?id=5"

    def test_query_without_prefix(self):
        url = build_request_url("https", "example.com", "/api", "/items", "id=5")

        assert url == "https://example.com/api/items?id=5"

    def test_no_query_has_no_question_mark(self):
        url = build_request_url("http", "example.com", "", "/widgets/42", "")

        assert url == "http://example.com/widgets/42"

    def test_empty_path_renders_root(self):
        assert build_request_url("http", "example.com", "", "") == "http://example.com/"

    def test_host_with_port(self):
        url = build_request_url("http", "localhost:8000", "", "/health")

        assert url == "http://localhost:8000/health"


class TestRequestContext:
    """Test RequestContext construction from ASGI scopes."""

    def test_from_scope(self):
        scope = make_scope(
            path="/widgets/42",
            query_string=b"expand=parts",
            scheme="https",
            host="example.com",
        )

        context = RequestContext.from_scope(scope)

        assert context.scheme == "https"
        assert context.host == "example.com"
        assert context.path_base == ""
        assert context.path == "/widgets/42"
        assert context.query_string == "expand=parts"
        assert context.status_code == STATUS_UNSET
        assert context.request_url == "https://example.com/widgets/42?expand=parts"

    def test_root_path_not_doubled(self):
        scope = make_scope(path="/api/items", root_path="/api", host="example.com")

        context = RequestContext.from_scope(scope)

        assert context.path_base == "/api"
        assert context.path == "/items"
        assert context.request_url == "http://example.com/api/items"

    def test_root_path_outside_path(self):
        scope = make_scope(path="/items", root_path="/api", host="example.com")

        context = RequestContext.from_scope(scope)

        assert context.request_url == "http://example.com/api/items"

    def test_host_falls_back_to_server(self):
        scope = make_scope(path="/", host=None)
        scope["server"] = ("10.0.0.1", 8080)

        context = RequestContext.from_scope(scope)

        assert context.host == "10.0.0.1:8080"

    def test_default_port_omitted(self):
        scope = make_scope(path="/", host=None, scheme="https")
        scope["server"] = ("10.0.0.1", 443)

        assert RequestContext.from_scope(scope).host == "10.0.0.1"

    @pytest.mark.parametrize(
        "status_code, expected",
        [(0, True), (200, True), (201, False), (404, False), (500, False)],
    )
    def test_is_status_unset_or_ok(self, status_code, expected):
        context = RequestContext(scheme="http", host="example.com", status_code=status_code)

        assert context.is_status_unset_or_ok() is expected

    def test_attach_and_get(self):
        scope = make_scope()
        context = RequestContext.from_scope(scope)

        assert get_attached_context(scope) is None

        attach_request_context(scope, context)

        assert get_attached_context(scope) is context
