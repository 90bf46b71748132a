"""Tests for the synchronous HTTP transport."""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from azrest.auth import AuthResult, create_default_manager
from azrest.auth.manager import AuthManager
from azrest.client import SyncClient
from azrest.exceptions import AuthError, ConnectionError_
from azrest.models import AuthConfig, Profile, RequestConfig
from azrest.output import OutputManager, set_output


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_profile(
    endpoint: str = "https://management.example.test",
    auth: AuthConfig | None = None,
    max_retries: int = 0,
) -> Profile:
    return Profile(
        name="test",
        endpoint=endpoint,
        auth=auth,
        request=RequestConfig(timeout=5, max_retries=max_retries),
    )


def _static_manager(result: AuthResult) -> AuthManager:
    manager = MagicMock(spec=AuthManager)
    manager.authenticate.return_value = result
    return manager


# ---------------------------------------------------------------------------
# Context manager
# ---------------------------------------------------------------------------


class TestContextManager:
    def test_enter_creates_and_exit_closes_client(self) -> None:
        client = SyncClient(_make_profile())
        assert client._client is None
        with client:
            assert client._client is not None
        assert client._client is None

    def test_enter_authenticates_when_auth_present(self) -> None:
        manager = _static_manager(AuthResult(headers={"Authorization": "Bearer t"}))
        profile = _make_profile(auth=AuthConfig(source="env:X"))
        with SyncClient(profile, auth_manager=manager):
            pass
        manager.authenticate.assert_called_once_with(profile)

    def test_enter_skips_auth_without_config(self) -> None:
        manager = _static_manager(AuthResult())
        with SyncClient(_make_profile(auth=None), auth_manager=manager):
            pass
        manager.authenticate.assert_not_called()

    def test_auth_failure_propagates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AZREST_NO_SUCH_TOKEN", raising=False)
        profile = _make_profile(auth=AuthConfig(source="env:AZREST_NO_SUCH_TOKEN"))
        with pytest.raises(AuthError):
            with SyncClient(profile, auth_manager=create_default_manager()):
                pass


# ---------------------------------------------------------------------------
# execute()
# ---------------------------------------------------------------------------


class TestExecute:
    def test_get_with_api_version(self, recording_transport) -> None:
        recording_transport.body = {"value": []}
        with SyncClient(_make_profile(), transport=recording_transport) as client:
            response = client.execute("GET", "/subscriptions/s/resourcegroups", "2024-11-01")

        assert response.status_code == 200
        assert json.loads(response.content) == {"value": []}
        request = recording_transport.last
        assert request.method == "GET"
        assert request.url.path == "/subscriptions/s/resourcegroups"
        assert request.url.params["api-version"] == "2024-11-01"
        assert request.headers["accept"] == "application/json"
        assert request.content == b""

    def test_put_sends_json_body_and_query(self, recording_transport) -> None:
        with SyncClient(_make_profile(), transport=recording_transport) as client:
            client.execute("PUT", "/things/a", "1", body={"location": "westus"}, query={"$top": "5"})

        request = recording_transport.last
        assert json.loads(request.content) == {"location": "westus"}
        assert request.headers["content-type"] == "application/json"
        assert request.url.params["$top"] == "5"

    def test_status_is_not_interpreted(self, recording_transport) -> None:
        recording_transport.status_code = 404
        recording_transport.body = b"missing"
        with SyncClient(_make_profile(), transport=recording_transport) as client:
            response = client.execute("GET", "/things/a", None)
        assert response.status_code == 404
        assert response.content == b"missing"
        assert "api-version" not in recording_transport.last.url.params

    def test_auth_headers_and_params_injected(self, recording_transport) -> None:
        manager = _static_manager(AuthResult(headers={"Authorization": "Bearer tok"}, params={"sig": "x"}))
        profile = _make_profile(auth=AuthConfig(source="env:X"))
        with SyncClient(profile, auth_manager=manager, transport=recording_transport) as client:
            client.execute("GET", "/things", "1")
        request = recording_transport.last
        assert request.headers["authorization"] == "Bearer tok"
        assert request.url.params["sig"] == "x"

    def test_endpoint_with_base_path(self, recording_transport) -> None:
        profile = _make_profile(endpoint="https://example.test/base")
        with SyncClient(profile, transport=recording_transport) as client:
            client.execute("GET", "/things", "1")
        assert recording_transport.last.url.path == "/base/things"


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestRetry:
    @patch("azrest.client.sync_client.time.sleep")
    def test_retries_server_errors(self, mock_sleep: MagicMock) -> None:
        statuses = iter([503, 502, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(next(statuses), json={})

        profile = _make_profile(max_retries=3)
        with SyncClient(profile, transport=httpx.MockTransport(handler)) as client:
            response = client.execute("GET", "/things", "1")
        assert response.status_code == 200
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2]

    @patch("azrest.client.sync_client.time.sleep")
    def test_last_server_error_is_returned(self, mock_sleep: MagicMock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, content=b"boom")

        with SyncClient(_make_profile(max_retries=1), transport=httpx.MockTransport(handler)) as client:
            response = client.execute("GET", "/things", "1")
        assert response.status_code == 500
        assert mock_sleep.call_count == 1

    @patch("azrest.client.sync_client.time.sleep")
    def test_connection_errors_exhaust_retries(self, mock_sleep: MagicMock) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with SyncClient(_make_profile(max_retries=2), transport=httpx.MockTransport(handler)) as client:
            with pytest.raises(ConnectionError_, match="after 3 attempts"):
                client.execute("GET", "/things", "1")
        assert mock_sleep.call_count == 2

    def test_client_errors_not_retried(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(400, json={"error": {}})

        with SyncClient(_make_profile(max_retries=3), transport=httpx.MockTransport(handler)) as client:
            assert client.execute("GET", "/things", "1").status_code == 400
        assert len(calls) == 1


# ---------------------------------------------------------------------------
# preview()
# ---------------------------------------------------------------------------


class TestPreview:
    def test_prints_request_without_sending(self, recording_transport, capsys: pytest.CaptureFixture[str]) -> None:
        set_output(OutputManager(no_color=True))
        manager = _static_manager(AuthResult(headers={"Authorization": "Bearer secret"}))
        profile = _make_profile(auth=AuthConfig(source="env:X"))
        with SyncClient(profile, auth_manager=manager, transport=recording_transport) as client:
            client.preview("PUT", "/things/a", "2024-01-01", body={"k": "v"}, query={"$top": "1"})

        assert recording_transport.requests == []
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "[dry-run] PUT https://management.example.test/things/a" in captured.err
        assert "Authorization: Bearer ***" in captured.err
        assert "secret" not in captured.err
        assert "Param: api-version=2024-01-01" in captured.err
        assert "Param: $top=1" in captured.err
        assert '"k": "v"' in captured.err
