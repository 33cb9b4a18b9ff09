"""Shared test fixtures for the Buda SDK.

No test touches the network: transports get a MagicMock session whose
``request`` returns canned ``requests.Response`` objects.
"""

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from buda.config import ClientSettings
from buda.http.signer import RequestSigner
from buda.http.transport import HttpTransport

TEST_API_KEY = "test-api-key"
TEST_API_SECRET = "test-api-secret"


def build_response(
    status: int,
    body: Any = None,
    headers: dict[str, str] | None = None,
    text: str | None = None,
) -> requests.Response:
    """Build a real Response with a JSON (or raw text) body."""
    response = requests.Response()
    response.status_code = status
    if body is not None:
        response._content = json.dumps(body).encode("utf-8")
    elif text is not None:
        response._content = text.encode("utf-8")
    else:
        response._content = b""
    response.headers = CaseInsensitiveDict(
        {"Content-Type": "application/json; charset=utf-8", **(headers or {})}
    )
    response.encoding = "utf-8"
    response.url = "https://www.buda.com/api/v2/"
    return response


@pytest.fixture
def make_response() -> Callable[..., requests.Response]:
    return build_response


@pytest.fixture
def settings() -> ClientSettings:
    """ClientSettings with test defaults (no backoff delay, debug logging on)."""
    return ClientSettings(
        base_url="https://www.buda.com/api/v2/",
        timeout=5,
        max_retries=3,
        retry_backoff=0.5,
        debug=True,
    )


@pytest.fixture
def session() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture
def sleep() -> MagicMock:
    return MagicMock()


@pytest.fixture
def signer() -> RequestSigner:
    return RequestSigner(TEST_API_KEY, TEST_API_SECRET)


@pytest.fixture
def transport(
    settings: ClientSettings, signer: RequestSigner, session: MagicMock, sleep: MagicMock
) -> HttpTransport:
    """HttpTransport wired to the mocked session and a no-op sleep."""
    return HttpTransport(settings, signer=signer, session=session, sleep=sleep)
