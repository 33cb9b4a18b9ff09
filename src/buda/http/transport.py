"""Blocking HTTP transport with status-based retry and typed failures.

One ``requests.Session`` per transport, mounted with a pooled HTTPAdapter so a
single client can be shared by several threads. Retries happen here, not in
urllib3, so every attempt is re-signed with a fresh nonce.
"""

import threading
import time
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import urlsplit

import requests
from requests.adapters import HTTPAdapter

from buda.config import ClientSettings
from buda.constants import RETRYABLE_METHODS, RETRYABLE_STATUSES
from buda.exceptions import ApiConnectionError, ApiError, ApiTimeoutError, ConfigurationError
from buda.http.classifier import Failure, classify
from buda.http.signer import API_KEY_HEADER, RequestSigner, encode_body
from buda.logging import get_logger, mask_api_key, truncate_body

logger = get_logger(__name__)

USER_AGENT = "buda-python"


class HttpTransport:
    """Executes one API call and returns the JSON object body or raises.

    Args:
        settings: Base URL, timeout and retry policy.
        signer: Required only for ``auth=True`` requests.
        session: Injected session (tests); a pooled one is built otherwise.
        sleep: Backoff sleep function (tests pass a no-op).
    """

    def __init__(
        self,
        settings: ClientSettings,
        signer: RequestSigner | None = None,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._settings = settings
        self._signer = signer
        self._session = session or self._build_session(settings.pool_size)
        self._sleep = sleep
        self._local = threading.local()

    @staticmethod
    def _build_session(pool_size: int) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(
            pool_connections=pool_size,
            pool_maxsize=pool_size,
            max_retries=0,
        )
        session.mount("https://", adapter)
        session.mount("http://", adapter)
        session.headers.update({"Accept": "application/json", "User-Agent": USER_AGENT})
        return session

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def session(self) -> requests.Session:
        return self._session

    @property
    def signer(self) -> RequestSigner | None:
        return self._signer

    def with_signer(self, signer: RequestSigner) -> "HttpTransport":
        """Return a transport that signs with ``signer`` over the same session and pool."""
        return HttpTransport(
            self._settings, signer=signer, session=self._session, sleep=self._sleep
        )

    @property
    def retries_used(self) -> int:
        """Retries consumed by the last call made from the current thread."""
        return getattr(self._local, "retries_used", 0)

    def close(self) -> None:
        self._session.close()

    def build_url(self, path: str) -> str:
        return self._settings.base_url + path.lstrip("/")

    def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
        auth: bool = False,
    ) -> dict[str, Any]:
        """Send a request, retrying retryable statuses with exponential backoff.

        Args:
            method: HTTP verb, any case.
            path: Endpoint path relative to the base URL, e.g. ``markets/BTC-CLP``.
            params: Query parameters. None values must already be dropped.
            body: JSON body for POST/PUT.
            auth: Sign the request with the configured signer.

        Returns:
            The response's JSON object.

        Raises:
            ApiError: or one of its subclasses, classified from the final response.
            ApiConnectionError: the host could not be reached.
            ApiTimeoutError: the request exceeded the configured timeout.
        """
        method = method.upper()
        if auth and self._signer is None:
            raise ConfigurationError("Authenticated request made without credentials")

        url = self.build_url(path)
        data = encode_body(body)
        max_retries = self._settings.max_retries if method in RETRYABLE_METHODS else 0
        self._local.retries_used = 0

        attempt = 0
        while True:
            response = self._send(method, url, params, data, auth)
            if response.status_code in RETRYABLE_STATUSES and attempt < max_retries:
                delay = self._settings.retry_backoff * (
                    self._settings.retry_backoff_factor**attempt
                )
                logger.warning(
                    "http_retry",
                    method=method,
                    path=path,
                    status=response.status_code,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    delay=delay,
                )
                self._sleep(delay)
                attempt += 1
                self._local.retries_used = attempt
                continue

            outcome = classify(
                response.status_code, self._parse_body(response), response.headers
            )
            if isinstance(outcome, Failure):
                logger.warning(
                    "http_error",
                    method=method,
                    path=path,
                    status=outcome.status_code,
                    error=type(outcome.error).__name__,
                    message=outcome.error.message,
                )
            return outcome.unwrap()

    def _send(
        self,
        method: str,
        url: str,
        params: Mapping[str, Any] | None,
        data: str | None,
        auth: bool,
    ) -> requests.Response:
        headers = {"Content-Type": "application/json"} if data else {}
        if auth:
            headers = self._signer.headers(method, urlsplit(url).path, data)

        debug = self._settings.debug
        if debug:
            logger.debug(
                "http_request",
                method=method,
                url=url,
                params=dict(params or {}),
                headers=mask_api_key(headers, API_KEY_HEADER),
                body=data,
            )

        start = time.monotonic()
        try:
            response = self._session.request(
                method,
                url,
                params=params,
                data=data,
                headers=headers,
                timeout=self._settings.timeout,
            )
        # ConnectTimeout is both a Timeout and a ConnectionError; timeouts win
        except requests.Timeout as e:
            error: ApiError = ApiTimeoutError(f"Request timed out: {e}")
            logger.error("http_timeout", method=method, url=url, error=str(e))
            raise error from e
        except requests.ConnectionError as e:
            error = ApiConnectionError(f"Connection failed: {e}")
            logger.error("http_connection_failed", method=method, url=url, error=str(e))
            raise error from e
        except requests.RequestException as e:
            error = ApiError(f"Unexpected error: {e}")
            logger.error("http_request_failed", method=method, url=url, error=str(e))
            raise error from e

        if debug:
            logger.debug(
                "http_response",
                method=method,
                url=url,
                status=response.status_code,
                headers=dict(response.headers),
                body=truncate_body(response.text),
                duration_ms=round((time.monotonic() - start) * 1000, 2),
            )
        return response

    @staticmethod
    def _parse_body(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text
