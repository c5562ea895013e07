"""Unit tests for URL, header and body construction."""

from urllib.parse import parse_qsl, urlsplit

import pytest

from action_relay.core.errors import MissingRequiredArgumentError
from action_relay.core.models import BodyEncoding, Tool
from action_relay.request_builder import build_request, build_request_body, build_url, validate_arguments
from action_relay.request_builder.builder import join_url, substitute_path

PARAMETERS = {
    "type": "object",
    "properties": {
        "owner": {"type": "string", "in": "path"},
        "state": {"type": "string", "in": "query"},
        "labels": {"type": "array", "in": "query"},
        "per_page": {"type": "integer", "in": "query"},
        "X-Request-Id": {"type": "string", "in": "header"},
    },
    "required": ["owner"],
}


def _tool(method="GET", path="/repos/{owner}/issues", parameters=PARAMETERS, body_schema=None):
    return Tool(
        source_id="src",
        operation_key="op",
        name="Issues",
        method=method,
        path=path,
        parameters=parameters,
        body_schema=body_schema,
    )


class TestSubstitutePath:
    def test_values_are_percent_encoded(self):
        path, consumed = substitute_path("/files/{name}", {"name": "a b/c"})

        assert path == "/files/a%20b%2Fc"
        assert consumed == {"name"}

    def test_unmatched_placeholders_stay_literal(self):
        path, consumed = substitute_path("/users/{id}/posts/{post}", {"id": 7})

        assert path == "/users/7/posts/{post}"
        assert consumed == {"id"}

    def test_booleans_render_lowercase(self):
        assert substitute_path("/flags/{on}", {"on": True})[0] == "/flags/true"


@pytest.mark.parametrize(
    "base, path, expected",
    [
        ("https://api.example.com", "/v1/items", "https://api.example.com/v1/items"),
        ("https://api.example.com/", "/v1/items", "https://api.example.com/v1/items"),
        ("https://api.example.com/", "v1/items", "https://api.example.com/v1/items"),
        ("https://api.example.com/base", "/x", "https://api.example.com/base/x"),
    ],
)
def test_join_url(base, path, expected):
    assert join_url(base, path) == expected


class TestBuildUrl:
    def test_query_in_declared_order_with_repeated_list_keys(self):
        url = build_url(
            "https://api.example.com",
            "/repos/{owner}/issues",
            {"per_page": 50, "labels": ["bug", "ui"], "state": "open", "owner": "octo"},
            PARAMETERS,
        )

        parts = urlsplit(url)
        assert parts.path == "/repos/octo/issues"
        assert parse_qsl(parts.query) == [("state", "open"), ("labels", "bug"), ("labels", "ui"), ("per_page", "50")]

    def test_empty_values_are_omitted(self):
        url = build_url(
            "https://api.example.com",
            "/repos/{owner}/issues",
            {"owner": "octo", "state": "", "labels": [], "per_page": None},
            PARAMETERS,
        )

        assert url == "https://api.example.com/repos/octo/issues"

    def test_undeclared_arguments_are_not_query_parameters(self):
        url = build_url("https://api.example.com", "/search", {"q": "x"}, None)

        assert url == "https://api.example.com/search"


class TestBuildRequestBody:
    def test_declared_body_properties_only(self):
        body = build_request_body(
            {"title": "Bug", "owner": "octo", "extra": 1},
            PARAMETERS,
            {"type": "object", "properties": {"title": {"type": "string"}, "body": {"type": "string"}}},
            path="/repos/{owner}/issues",
        )

        assert body == {"title": "Bug"}

    def test_remaining_arguments_without_body_schema(self):
        body = build_request_body(
            {"owner": "octo", "state": "open", "X-Request-Id": "r1", "title": "Bug", "empty": ""},
            PARAMETERS,
            None,
            path="/repos/{owner}/issues",
        )

        assert body == {"title": "Bug"}

    @pytest.mark.parametrize(
        "body_schema",
        [{"type": "object"}, {"type": "array", "items": {"type": "string"}}, {"type": "object", "properties": {}}],
    )
    def test_body_schema_without_properties_copies_nothing(self, body_schema):
        body = build_request_body({"injected_admin": True, "amount": 20}, PARAMETERS, body_schema, path="/charges")

        assert body is None

    def test_open_body_schema_drops_injected_fields_from_request(self):
        built = build_request(
            "http://mock.billing",
            _tool(method="POST", path="/charges", parameters=None, body_schema={"type": "object"}),
            {"injected_admin": True, "amount": 20},
        )

        assert built.body is None

    def test_empty_body_is_none(self):
        assert build_request_body({"owner": "octo"}, PARAMETERS, None, path="/repos/{owner}/issues") is None


class TestBuildRequest:
    def test_get_has_no_body(self):
        built = build_request(
            "https://api.example.com", _tool(), {"owner": "octo", "title": "ignored", "X-Request-Id": "r1"}
        )

        assert built.method == "GET"
        assert built.body is None
        assert built.headers["X-Request-Id"] == "r1"
        assert "Content-Type" not in built.headers

    def test_post_json_body(self):
        built = build_request("https://api.example.com", _tool(method="post"), {"owner": "octo", "title": "Bug"})

        assert built.method == "POST"
        assert built.body == {"title": "Bug"}
        assert built.headers["Content-Type"] == "application/json"
        assert built.headers["Accept"] == "application/json"

    def test_form_content_type(self):
        built = build_request(
            "https://api.example.com",
            _tool(method="POST"),
            {"owner": "octo", "title": "Bug"},
            body_encoding=BodyEncoding.form,
        )

        assert built.headers["Content-Type"] == "application/x-www-form-urlencoded"

    def test_auth_headers_are_merged_last(self):
        built = build_request(
            "https://api.example.com",
            _tool(),
            {"owner": "octo"},
            auth_headers={"Authorization": "Bearer t", "Accept": "text/plain"},
        )

        assert built.headers["Authorization"] == "Bearer t"
        assert built.headers["Accept"] == "text/plain"

    def test_validation_reports_missing_arguments(self):
        with pytest.raises(MissingRequiredArgumentError) as exc_info:
            build_request("https://api.example.com", _tool(), {"owner": ""}, validate=True)

        assert exc_info.value.missing == ["owner"]

    def test_unvalidated_build_keeps_literal_placeholder(self):
        built = build_request("https://api.example.com", _tool(), {})

        assert built.url == "https://api.example.com/repos/{owner}/issues"


def test_validate_arguments_includes_body_and_path_requirements():
    tool = _tool(
        method="POST",
        path="/orgs/{org}/repos/{owner}",
        body_schema={"type": "object", "properties": {"name": {"type": "string"}}, "required": ["name"]},
    )

    with pytest.raises(MissingRequiredArgumentError) as exc_info:
        validate_arguments(tool, {"owner": "octo"})

    assert exc_info.value.missing == ["name", "org"]
