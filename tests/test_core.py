from __future__ import annotations

import pytest
import requests

from fakes import FakeResponse
from pyselas.core import build_headers, call_rpc, check_result, with_credentials
from pyselas.errors import SelasAPIError, SelasTransportError


def test_credentials_are_injected_into_every_call(settings, credentials, session):
    session.route("app_owner_echo", FakeResponse(200, "Hello"))

    response = call_rpc(settings, credentials, "app_owner_echo", {"p_message": "Hello"}, session=session)

    assert response.ok
    assert response.data == "Hello"
    call = session.calls[0]
    assert call["url"] == "https://example.supabase.co/rest/v1/rpc/app_owner_echo"
    assert call["json"] == {
        "p_message": "Hello",
        "p_secret": "s3cr3t",
        "p_app_id": "app-123",
        "p_key": "key-abc",
    }
    assert call["timeout"] == settings.timeout


def test_credentials_override_colliding_params(credentials):
    payload = with_credentials({"p_key": "spoofed", "p_limit": 3}, credentials)
    assert payload["p_key"] == "key-abc"
    assert payload["p_limit"] == 3


def test_caller_params_are_not_mutated(credentials):
    params = {"p_app_user_id": "u1"}
    with_credentials(params, credentials)
    assert params == {"p_app_user_id": "u1"}


def test_headers_carry_the_public_key(settings):
    headers = build_headers(settings)
    assert headers["apikey"] == "anon-key"
    assert headers["Authorization"] == "Bearer anon-key"
    assert headers["Content-Type"] == "application/json"
    assert headers["X-Client-Info"].startswith("pyselas/")


def test_backend_error_is_returned_not_raised(settings, credentials, session):
    session.route(
        "app_owner_add_user_credits",
        FakeResponse(400, {"code": "P0001", "message": "not enough credits", "details": None, "hint": None}),
    )

    data, error = call_rpc(settings, credentials, "app_owner_add_user_credits", {"p_amount": -5}, session=session)

    assert data is None
    assert error.message == "not enough credits"
    assert error.code == "P0001"
    assert error.status_code == 400
    assert str(error) == "[P0001] not enough credits"


def test_non_json_error_body_keeps_raw_text():
    response = check_result(FakeResponse(502, text="Bad Gateway"))
    assert not response.ok
    assert response.error.message == "Bad Gateway"
    assert response.error.status_code == 502


def test_empty_success_body_is_null_data():
    response = check_result(FakeResponse(204))
    assert response.ok
    assert response.data is None


def test_non_json_success_body_raises():
    with pytest.raises(SelasAPIError) as exc_info:
        check_result(FakeResponse(200, text="<html>maintenance</html>"))
    assert exc_info.value.status_code == 200


def test_transport_failure_is_raised_without_retry(settings, credentials, session):
    session.route("app_owner_echo", requests.ConnectionError("unreachable"))

    with pytest.raises(SelasTransportError) as exc_info:
        call_rpc(settings, credentials, "app_owner_echo", session=session)

    assert isinstance(exc_info.value.__cause__, requests.ConnectionError)
    assert session.fns() == ["app_owner_echo"]


def test_secret_is_not_logged(settings, credentials, session, caplog):
    session.route("app_owner_echo", FakeResponse(200, "Hello"))
    with caplog.at_level("DEBUG", logger="selas"):
        call_rpc(settings, credentials, "app_owner_echo", {"p_message": "Hello"}, session=session)
    assert "app_owner_echo" in caplog.text
    assert "s3cr3t" not in caplog.text
