"""Python SDK for the Buda.com cryptocurrency exchange REST API.

Usage:
    from buda import AuthenticatedClient, PublicClient

    ticker = PublicClient().ticker("BTC-CLP")
    client = AuthenticatedClient(api_key="...", api_secret="...")
    order = client.place_order("BTC-CLP", "Bid", "limit", "0.001", limit="50000000")
"""

from buda.client import AuthenticatedClient, PublicClient
from buda.config import ClientSettings, Credentials
from buda.constants import (
    BalanceEventType,
    Currency,
    Market,
    OrderState,
    OrderType,
    PriceType,
    QuotationType,
    ReportType,
)
from buda.exceptions import (
    ApiConnectionError,
    ApiError,
    ApiTimeoutError,
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
    BudaError,
    ConfigurationError,
    InvalidResponseError,
    NotFoundError,
    RateLimitError,
    ServerError,
    UnprocessableEntityError,
    ValidationError,
)
from buda.logging import setup_logging
from buda.models import OrderRequest

__version__ = "1.0.0"

__all__ = [
    "ApiConnectionError",
    "ApiError",
    "ApiTimeoutError",
    "AuthenticatedClient",
    "AuthenticationError",
    "AuthorizationError",
    "BadRequestError",
    "BalanceEventType",
    "BudaError",
    "ClientSettings",
    "ConfigurationError",
    "Credentials",
    "Currency",
    "InvalidResponseError",
    "Market",
    "NotFoundError",
    "OrderRequest",
    "OrderState",
    "OrderType",
    "PriceType",
    "PublicClient",
    "QuotationType",
    "RateLimitError",
    "ReportType",
    "ServerError",
    "UnprocessableEntityError",
    "ValidationError",
    "setup_logging",
]
