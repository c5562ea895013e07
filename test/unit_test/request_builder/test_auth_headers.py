import base64

import pytest

from action_relay.core.errors import MissingCredentialError, MissingPassthroughCredentialError
from action_relay.core.models import AuthMode, CapabilitySource
from action_relay.request_builder import build_auth_headers


def _source(mode, **auth_config):
    return CapabilitySource(name="target", auth_mode=mode, auth_config=auth_config)


def test_no_auth():
    assert build_auth_headers(_source(AuthMode.none), {"token": "ignored"}) == {}


def test_bearer():
    assert build_auth_headers(_source(AuthMode.bearer), {"token": "abc"}) == {"Authorization": "Bearer abc"}


def test_bearer_without_token():
    with pytest.raises(MissingCredentialError) as exc_info:
        build_auth_headers(_source(AuthMode.bearer), {})

    assert exc_info.value.fields == ["token"]


class TestApiKey:
    def test_default_header(self):
        assert build_auth_headers(_source(AuthMode.api_key), {"api_key": "k"}) == {"X-API-Key": "k"}

    def test_header_name_from_source_config(self):
        headers = build_auth_headers(_source(AuthMode.api_key, header_name="X-Token"), {"api_key": "k"})

        assert headers == {"X-Token": "k"}

    def test_header_name_from_credentials_wins(self):
        headers = build_auth_headers(
            _source(AuthMode.api_key, header_name="X-Token"), {"api_key": "k", "header_name": "X-Custom"}
        )

        assert headers == {"X-Custom": "k"}


def test_basic():
    headers = build_auth_headers(_source(AuthMode.basic), {"username": "ann", "password": "s3cret"})

    assert headers == {"Authorization": "Basic " + base64.b64encode(b"ann:s3cret").decode()}


def test_basic_requires_both_fields():
    with pytest.raises(MissingCredentialError):
        build_auth_headers(_source(AuthMode.basic), {"username": "ann"})


def test_custom_header():
    headers = build_auth_headers(_source(AuthMode.header, header_name="X-Secret"), {"header_value": "v"})

    assert headers == {"X-Secret": "v"}


def test_custom_header_without_name():
    with pytest.raises(MissingCredentialError):
        build_auth_headers(_source(AuthMode.header), {"header_value": "v"})


class TestPassthrough:
    def test_forwards_principal_token(self):
        headers = build_auth_headers(_source(AuthMode.passthrough), None, passthrough_token="user-token")

        assert headers == {"Authorization": "Bearer user-token"}

    def test_stored_credentials_are_never_used(self):
        with pytest.raises(MissingPassthroughCredentialError):
            build_auth_headers(_source(AuthMode.passthrough), {"token": "service-token"})
