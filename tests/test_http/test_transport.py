"""Tests for HttpTransport retry, signing and failure handling.

The session is a MagicMock; ``sleep`` is a MagicMock so backoff delays can be
asserted without waiting.
"""

import pytest
import requests
from structlog.testing import capture_logs

from buda.config import ClientSettings
from buda.exceptions import (
    ApiConnectionError,
    ApiError,
    ApiTimeoutError,
    AuthenticationError,
    ConfigurationError,
    InvalidResponseError,
    RateLimitError,
    ServerError,
)
from buda.http.signer import API_KEY_HEADER, NONCE_HEADER, SIGNATURE_HEADER, RequestSigner
from buda.http.transport import HttpTransport


class TestSuccess:
    def test_returns_json_object(self, transport, session, make_response) -> None:
        session.request.return_value = make_response(200, {"markets": []})
        assert transport.request("GET", "markets") == {"markets": []}

    def test_builds_url_and_passes_timeout(self, transport, session, make_response) -> None:
        session.request.return_value = make_response(200, {"ticker": {}})
        transport.request("get", "markets/BTC-CLP/ticker", params={"limit": 5})

        args, kwargs = session.request.call_args
        assert args == ("GET", "https://www.buda.com/api/v2/markets/BTC-CLP/ticker")
        assert kwargs["params"] == {"limit": 5}
        assert kwargs["timeout"] == 5
        assert kwargs["data"] is None

    def test_body_sent_as_compact_json(self, transport, session, make_response) -> None:
        session.request.return_value = make_response(201, {"quotation": {}})
        transport.request("POST", "markets/BTC-CLP/quotations", body={"quotation": {"amount": "1"}})

        kwargs = session.request.call_args.kwargs
        assert kwargs["data"] == '{"quotation":{"amount":"1"}}'
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_public_request_is_not_signed(self, transport, session, make_response) -> None:
        session.request.return_value = make_response(200, {"markets": []})
        transport.request("GET", "markets")
        assert SIGNATURE_HEADER not in session.request.call_args.kwargs["headers"]


class TestSigning:
    def test_signs_full_path_and_sent_body(
        self, settings, session, sleep, make_response
    ) -> None:
        signer = RequestSigner("k", "s")
        transport = HttpTransport(settings, signer=signer, session=session, sleep=sleep)
        session.request.return_value = make_response(201, {"order": {"id": 1}})

        transport.request(
            "POST", "markets/BTC-CLP/orders", body={"type": "Bid", "amount": "1"}, auth=True
        )

        kwargs = session.request.call_args.kwargs
        headers = kwargs["headers"]
        expected = signer.signature(
            "POST", "/api/v2/markets/BTC-CLP/orders", kwargs["data"], headers[NONCE_HEADER]
        )
        assert headers[SIGNATURE_HEADER] == expected
        assert headers["X-SBTC-APIKEY"] == "k"

    def test_query_string_not_signed(self, settings, session, sleep, make_response) -> None:
        signer = RequestSigner("k", "s")
        transport = HttpTransport(settings, signer=signer, session=session, sleep=sleep)
        session.request.return_value = make_response(200, {"orders": []})

        transport.request("GET", "markets/BTC-CLP/orders", params={"per": 10}, auth=True)

        headers = session.request.call_args.kwargs["headers"]
        expected = signer.signature(
            "GET", "/api/v2/markets/BTC-CLP/orders", None, headers[NONCE_HEADER]
        )
        assert headers[SIGNATURE_HEADER] == expected

    def test_each_retry_gets_a_fresh_nonce(self, transport, session, make_response) -> None:
        session.request.side_effect = [
            make_response(503, {"message": "busy"}),
            make_response(200, {"balance": {}}),
        ]
        transport.request("GET", "balances/BTC", auth=True)

        first, second = (c.kwargs["headers"][NONCE_HEADER] for c in session.request.call_args_list)
        assert int(second) > int(first)

    def test_auth_without_signer_is_configuration_error(
        self, settings, session, sleep
    ) -> None:
        transport = HttpTransport(settings, session=session, sleep=sleep)
        with pytest.raises(ConfigurationError):
            transport.request("GET", "balances/BTC", auth=True)
        session.request.assert_not_called()


class TestRetry:
    def test_429_then_200_succeeds_after_one_retry(
        self, transport, session, sleep, make_response
    ) -> None:
        session.request.side_effect = [
            make_response(429, {"message": "Too many requests"}),
            make_response(200, {"ticker": {"market_id": "BTC-CLP"}}),
        ]

        result = transport.request("GET", "markets/BTC-CLP/ticker")

        assert result == {"ticker": {"market_id": "BTC-CLP"}}
        assert transport.retries_used == 1
        assert session.request.call_count == 2
        sleep.assert_called_once_with(0.5)

    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504])
    @pytest.mark.parametrize("method", ["GET", "POST", "PUT", "DELETE"])
    def test_retryable_statuses_for_all_methods(
        self, transport, session, make_response, status: int, method: str
    ) -> None:
        session.request.side_effect = [
            make_response(status, {}),
            make_response(200, {"ok": True}),
        ]
        assert transport.request(method, "orders/1") == {"ok": True}
        assert transport.retries_used == 1

    def test_backoff_doubles(self, transport, session, sleep, make_response) -> None:
        session.request.side_effect = [make_response(500, {})] * 3 + [
            make_response(200, {"ok": True})
        ]
        transport.request("GET", "markets")
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0, 2.0]
        assert transport.retries_used == 3

    def test_exhausted_retries_raise_last_classified_error(
        self, transport, session, sleep, make_response
    ) -> None:
        session.request.side_effect = [
            make_response(503, {"message": "down"}, headers={"Retry-After": "1"})
        ] * 4

        with pytest.raises(ServerError) as exc_info:
            transport.request("GET", "markets")

        assert session.request.call_count == 4
        assert sleep.call_count == 3
        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "down"
        assert exc_info.value.response_body == {"message": "down"}
        assert exc_info.value.response_headers["Retry-After"] == "1"

    def test_rate_limit_exhausted(self, settings, session, sleep, make_response) -> None:
        no_retry = settings.model_copy(update={"max_retries": 0})
        transport = HttpTransport(no_retry, session=session, sleep=sleep)
        session.request.return_value = make_response(429, {})

        with pytest.raises(RateLimitError):
            transport.request("GET", "markets")
        sleep.assert_not_called()

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_client_errors_not_retried(
        self, transport, session, sleep, make_response, status: int
    ) -> None:
        session.request.return_value = make_response(status, {})
        with pytest.raises(ApiError):
            transport.request("GET", "markets")
        assert session.request.call_count == 1
        sleep.assert_not_called()

    def test_401_invalid_credentials(self, transport, session, make_response) -> None:
        session.request.return_value = make_response(401, {"message": "Invalid credentials"})
        with pytest.raises(AuthenticationError) as exc_info:
            transport.request("GET", "balances/BTC", auth=True)
        assert exc_info.value.message == "Invalid credentials"
        assert exc_info.value.status_code == 401


class TestBodyHandling:
    def test_empty_success_body(self, transport, session, make_response) -> None:
        session.request.return_value = make_response(200)
        with pytest.raises(InvalidResponseError, match="Empty response body"):
            transport.request("GET", "markets")

    def test_non_json_success_body(self, transport, session, make_response) -> None:
        session.request.return_value = make_response(200, text="<html></html>")
        with pytest.raises(InvalidResponseError, match="Invalid response format"):
            transport.request("GET", "markets")

    def test_array_success_body(self, transport, session, make_response) -> None:
        session.request.return_value = make_response(200, [1, 2, 3])
        with pytest.raises(InvalidResponseError):
            transport.request("GET", "markets")

    def test_error_message_in_success_body(self, transport, session, make_response) -> None:
        session.request.return_value = make_response(200, {"message": "some error occurred"})
        with pytest.raises(ApiError) as exc_info:
            transport.request("GET", "markets")
        assert type(exc_info.value) is ApiError
        assert exc_info.value.message == "some error occurred"

    def test_non_json_error_body_uses_default_message(
        self, transport, session, make_response
    ) -> None:
        session.request.return_value = make_response(404, text="Not Found")
        with pytest.raises(ApiError) as exc_info:
            transport.request("GET", "markets/XXX")
        assert exc_info.value.message == "Resource not found"
        assert exc_info.value.response_body == "Not Found"


class TestNetworkFailures:
    def test_timeout(self, transport, session) -> None:
        session.request.side_effect = requests.Timeout("read timed out")
        with pytest.raises(ApiTimeoutError, match="Request timed out"):
            transport.request("GET", "markets")

    def test_connect_timeout_is_timeout(self, transport, session) -> None:
        session.request.side_effect = requests.ConnectTimeout("connect timed out")
        with pytest.raises(ApiTimeoutError):
            transport.request("GET", "markets")

    def test_connection_error(self, transport, session) -> None:
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ApiConnectionError, match="Connection failed"):
            transport.request("GET", "markets")

    def test_other_request_exception(self, transport, session) -> None:
        session.request.side_effect = requests.TooManyRedirects("loop")
        with pytest.raises(ApiError, match="Unexpected error"):
            transport.request("GET", "markets")

    def test_network_errors_not_retried(self, transport, session, sleep) -> None:
        session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ApiConnectionError):
            transport.request("GET", "markets")
        assert session.request.call_count == 1
        sleep.assert_not_called()


class TestSession:
    def test_default_session_is_pooled(self) -> None:
        transport = HttpTransport(ClientSettings(pool_size=4))
        adapter = transport.session.get_adapter("https://www.buda.com/api/v2/")
        assert adapter._pool_maxsize == 4
        transport.close()

    def test_close_closes_session(self, transport, session) -> None:
        transport.close()
        session.close.assert_called_once()


class TestDebugLogging:
    def test_request_headers_logged_with_masked_key(
        self, transport, session, make_response
    ) -> None:
        session.request.return_value = make_response(200, {"balance": {}})
        with capture_logs() as logs:
            transport.request("GET", "balances/BTC", auth=True)

        [entry] = [e for e in logs if e["event"] == "http_request"]
        sent = session.request.call_args.kwargs["headers"]
        assert entry["log_level"] == "debug"
        assert entry["headers"][API_KEY_HEADER] == "********-key"
        assert entry["headers"][NONCE_HEADER] == sent[NONCE_HEADER]
        assert entry["headers"][SIGNATURE_HEADER] == sent[SIGNATURE_HEADER]
        assert sent[API_KEY_HEADER] == "test-api-key"
        assert "test-api-secret" not in repr(logs)

    def test_response_body_truncated(self, transport, session, make_response) -> None:
        session.request.return_value = make_response(200, {"note": "x" * 2000})
        with capture_logs() as logs:
            transport.request("GET", "markets")

        [entry] = [e for e in logs if e["event"] == "http_response"]
        assert entry["status"] == 200
        assert entry["body"].endswith("... (truncated)")
        assert len(entry["body"]) == 1000 + len("... (truncated)")
        assert "duration_ms" in entry

    def test_no_debug_events_when_disabled(
        self, settings, signer, session, sleep, make_response
    ) -> None:
        quiet = settings.model_copy(update={"debug": False})
        transport = HttpTransport(quiet, signer=signer, session=session, sleep=sleep)
        session.request.return_value = make_response(200, {"balance": {}})
        with capture_logs() as logs:
            transport.request("GET", "balances/BTC", auth=True)

        assert not [e for e in logs if e["event"] in ("http_request", "http_response")]

    def test_retry_and_error_events(self, transport, session, make_response) -> None:
        session.request.side_effect = [
            make_response(503, {"message": "busy"}),
            make_response(404, {"message": "gone"}),
        ]
        with capture_logs() as logs, pytest.raises(ApiError):
            transport.request("GET", "markets/XXX")

        events = {e["event"]: e for e in logs}
        assert events["http_retry"]["status"] == 503
        assert events["http_retry"]["delay"] == 0.5
        assert events["http_error"]["error"] == "NotFoundError"
        assert events["http_error"]["message"] == "gone"

