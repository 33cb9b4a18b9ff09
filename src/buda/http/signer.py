"""HMAC-SHA384 request signing for the authenticated endpoint group.

Signed message layout (single spaces, this order):

    METHOD PATH [BASE64(JSON_BODY)] NONCE

The body segment is present only for a non-empty body. JSON_BODY must be the
exact bytes sent on the wire, so ``encode_body`` is shared with the transport.
"""

import base64
import hashlib
import hmac
import json
import threading
import time
from collections.abc import Mapping
from typing import Any

from buda.exceptions import ConfigurationError

API_KEY_HEADER = "X-SBTC-APIKEY"
NONCE_HEADER = "X-SBTC-NONCE"
SIGNATURE_HEADER = "X-SBTC-SIGNATURE"


def encode_body(body: Mapping[str, Any] | None) -> str | None:
    """Serialize a request body to compact JSON, or None for an empty body."""
    if not body:
        return None
    return json.dumps(body, separators=(",", ":"))


class NonceGenerator:
    """Strictly increasing microsecond nonces.

    Two calls inside the same microsecond, or a clock stepping backwards,
    still produce increasing values: the generator bumps past the last one.
    """

    def __init__(self, clock=time.time_ns) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> str:
        with self._lock:
            candidate = self._clock() // 1000
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return str(candidate)


def build_signature_message(
    method: str, path: str, body: str | None, nonce: str
) -> str:
    components = [method.upper(), path]
    if body:
        components.append(base64.b64encode(body.encode("utf-8")).decode("ascii"))
    components.append(nonce)
    return " ".join(components)


def sign_message(secret: str, message: str) -> str:
    """Lowercase hex HMAC-SHA384 of ``message`` keyed by the raw secret bytes."""
    return hmac.new(
        secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha384
    ).hexdigest()


class RequestSigner:
    """Produces the authentication headers for one request.

    Args:
        api_key: Public API key sent in the clear.
        api_secret: Secret used as the HMAC key. Never sent.
        nonces: Nonce source. One generator per key keeps nonces increasing
            across every request made with that key.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        nonces: NonceGenerator | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("API key is required for authenticated client")
        if not api_secret:
            raise ConfigurationError("API secret is required for authenticated client")
        self._api_key = api_key
        self._api_secret = api_secret
        self._nonces = nonces or NonceGenerator()

    @property
    def api_key(self) -> str:
        return self._api_key

    def signature(self, method: str, path: str, body: str | None, nonce: str) -> str:
        message = build_signature_message(method, path, body, nonce)
        return sign_message(self._api_secret, message)

    def headers(
        self, method: str, path: str, body: str | None, nonce: str | None = None
    ) -> dict[str, str]:
        """Return the auth headers, drawing a fresh nonce unless one is given."""
        nonce = nonce or self._nonces.next()
        return {
            API_KEY_HEADER: self._api_key,
            NONCE_HEADER: nonce,
            SIGNATURE_HEADER: self.signature(method, path, body, nonce),
            "Content-Type": "application/json",
        }
