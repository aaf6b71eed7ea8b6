"""Retry behaviour of B2RequestClient against a mocked endpoint."""

from __future__ import annotations

import httpx
import pytest
import respx

from b2client._http import BlockingTransport, HTTPConfig, JSONBody, run_sync
from b2client.api import B2RequestClient
from b2client.errors import B2APIError, B2ConnectionError, ErrorKind

URL = "https://api.b2.test/b2api/v2/b2_list_buckets"


def _busy(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json={"status": 503, "code": "service_unavailable", "message": "busy"})


def _client(waits: list[float], **config) -> B2RequestClient:
    return B2RequestClient(
        transport=BlockingTransport(HTTPConfig(**config)), sleep_fn=waits.append
    )


class TestServiceBusyRetry:
    @respx.mock
    def test_retries_until_success_with_growing_waits(self, mock_env_clear):
        responses = iter(
            [_busy, _busy, lambda request: httpx.Response(200, json={"buckets": []})]
        )
        route = respx.post(URL).mock(side_effect=lambda request: next(responses)(request))
        waits: list[float] = []

        result = run_sync(_client(waits).send("POST", URL))

        assert result == {"buckets": []}
        assert route.call_count == 3
        assert waits == [10.0, 12.0]

    @respx.mock
    def test_gives_up_after_retry_limit(self, mock_env_clear):
        route = respx.post(URL).mock(side_effect=_busy)
        waits: list[float] = []

        with pytest.raises(B2APIError) as exc_info:
            run_sync(_client(waits).send("POST", URL))

        assert exc_info.value.kind is ErrorKind.SERVICE_UNAVAILABLE
        assert exc_info.value.status == 503
        assert route.call_count == 11
        assert waits == pytest.approx([10.0 * 1.2**n for n in range(10)])

    @respx.mock
    def test_retry_settings_come_from_config(self, mock_env_clear):
        route = respx.post(URL).mock(side_effect=_busy)
        waits: list[float] = []

        with pytest.raises(B2APIError):
            run_sync(_client(waits, retry_limit=2, retry_wait=0.5).send("POST", URL))

        assert route.call_count == 3
        assert waits == pytest.approx([0.5, 0.6])

    @respx.mock
    def test_retried_request_is_identical(self, mock_env_clear):
        bodies: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.content)
            if len(bodies) == 1:
                return _busy(request)
            return httpx.Response(200, json={})

        respx.post(URL).mock(side_effect=handler)
        run_sync(_client([]).send("POST", URL, body=JSONBody({"accountId": "a"})))
        assert len(bodies) == 2
        assert bodies[0] == bodies[1]

    @pytest.mark.parametrize("status,code", [(400, "bad_request"), (401, "bad_auth_token"), (500, "internal_error")])
    def test_other_errors_are_not_retried(self, mock_env_clear, status, code):
        waits: list[float] = []
        with respx.mock:
            route = respx.post(URL).mock(
                return_value=httpx.Response(status, json={"status": status, "code": code, "message": "no"})
            )
            with pytest.raises(B2APIError) as exc_info:
                run_sync(_client(waits).send("POST", URL))

        assert exc_info.value.code == code
        assert route.call_count == 1
        assert waits == []

    @respx.mock
    def test_non_json_error_body(self, mock_env_clear):
        respx.post(URL).mock(return_value=httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(B2APIError) as exc_info:
            run_sync(_client([]).send("POST", URL))

        assert exc_info.value.kind is ErrorKind.UNKNOWN
        assert exc_info.value.message == "Bad Gateway"

    @respx.mock
    def test_connection_failure_is_not_retried(self, mock_env_clear):
        route = respx.post(URL).mock(side_effect=httpx.ConnectError("connection refused"))
        waits: list[float] = []

        with pytest.raises(B2ConnectionError):
            run_sync(_client(waits).send("POST", URL))

        assert route.call_count == 1
        assert waits == []
