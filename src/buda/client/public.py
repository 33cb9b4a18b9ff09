"""Client for the public (unauthenticated) Buda endpoints.

Each method validates its parameters locally, makes one request through the
transport (plus any retries) and maps the response into a typed record.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any, TypeVar

from buda.client.validation import (
    check_allowed,
    check_positive,
    epoch_seconds,
    format_number,
    normalize_params,
    require,
)
from buda.config import ClientSettings
from buda.constants import Market as MarketId
from buda.constants import QuotationType, ReportType
from buda.http.signer import RequestSigner
from buda.http.transport import HttpTransport
from buda.logging import get_logger
from buda.models import (
    AveragePrice,
    Candlestick,
    Market,
    OrderBook,
    Quotation,
    Ticker,
    Trades,
)

logger = get_logger(__name__)

T = TypeVar("T")


class PublicClient:
    """Market data client.

    Args:
        settings: Connection settings. Loaded from BUDA_* environment
            variables when omitted.
        transport: Pre-built transport (tests, or sharing a pool). A transport
            without a signer is given this client's signer, if it has one.

    Usage:
        with PublicClient() as client:
            ticker = client.ticker("BTC-CLP")
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        transport: HttpTransport | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        signer = self._build_signer()
        if transport is None:
            transport = HttpTransport(self._settings, signer=signer)
        elif signer is not None and transport.signer is None:
            transport = transport.with_signer(signer)
        self._transport = transport

    def _build_signer(self) -> RequestSigner | None:
        return None

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def transport(self) -> HttpTransport:
        return self._transport

    def close(self) -> None:
        """Release pooled connections."""
        self._transport.close()

    def __enter__(self) -> "PublicClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ──────────────────────────────────────────────
    # Request helpers
    # ──────────────────────────────────────────────

    def _get(self, path: str, params: dict[str, Any] | None = None, auth: bool = False) -> dict:
        return self._transport.request("GET", path, params=params, auth=auth)

    def _post(self, path: str, body: dict[str, Any], auth: bool = False) -> dict:
        return self._transport.request("POST", path, body=body, auth=auth)

    def _put(self, path: str, body: dict[str, Any], auth: bool = False) -> dict:
        return self._transport.request("PUT", path, body=body, auth=auth)

    @staticmethod
    def _market_id(market_id: Any) -> str:
        require(market_id=market_id)
        return check_allowed("market_id", market_id, MarketId)

    # ──────────────────────────────────────────────
    # Markets
    # ──────────────────────────────────────────────

    def markets(self) -> list[Market]:
        """Return every market listed by the exchange."""
        logger.info("fetching_markets")
        response = self._get("markets")
        markets = [Market.from_api(m) for m in response.get("markets") or []]
        logger.info("markets_fetched", count=len(markets))
        return markets

    def market_details(self, market_id: MarketId | str) -> Market:
        market_id = self._market_id(market_id)
        logger.info("fetching_market_details", market_id=market_id)
        response = self._get(f"markets/{market_id}")
        return Market.from_api(response.get("market"))

    def ticker(self, market_id: MarketId | str) -> Ticker:
        """Return last price, best ask/bid, 24h volume and price variations."""
        market_id = self._market_id(market_id)
        logger.info("fetching_ticker", market_id=market_id)
        response = self._get(f"markets/{market_id}/ticker")
        return Ticker.from_api(response.get("ticker"))

    def order_book(self, market_id: MarketId | str) -> OrderBook:
        market_id = self._market_id(market_id)
        logger.info("fetching_order_book", market_id=market_id)
        response = self._get(f"markets/{market_id}/order_book")
        return OrderBook.from_api(response.get("order_book"))

    def trades(
        self,
        market_id: MarketId | str,
        timestamp: int | None = None,
        limit: int | None = None,
    ) -> Trades:
        """Return recent trades, newest first.

        Args:
            market_id: Market identifier, e.g. "BTC-CLP".
            timestamp: Only trades older than this epoch-milliseconds value.
            limit: Maximum number of entries.
        """
        market_id = self._market_id(market_id)
        params = normalize_params({"timestamp": timestamp, "limit": limit})
        logger.info("fetching_trades", market_id=market_id, params=params)
        response = self._get(f"markets/{market_id}/trades", params)
        return Trades.from_api(response.get("trades"))

    # ──────────────────────────────────────────────
    # Quotations
    # ──────────────────────────────────────────────

    def quotation(
        self,
        market_id: MarketId | str,
        quotation_type: QuotationType | str,
        amount: Any,
        limit: Any = None,
    ) -> Quotation:
        """Ask the exchange to price a hypothetical trade without placing it."""
        require(market_id=market_id, quotation_type=quotation_type, amount=amount)
        market_id = self._market_id(market_id)
        quotation_type = check_allowed("quotation_type", quotation_type, QuotationType)

        payload = {
            "type": quotation_type,
            "amount": format_number(check_positive("amount", amount)),
        }
        if limit is not None:
            payload["limit"] = format_number(check_positive("limit", limit))

        logger.info(
            "requesting_quotation",
            market_id=market_id,
            quotation_type=quotation_type,
            amount=payload["amount"],
        )
        response = self._post(f"markets/{market_id}/quotations", {"quotation": payload})
        return Quotation.from_api(response.get("quotation"))

    def quotation_market(
        self, market_id: MarketId | str, quotation_type: QuotationType | str, amount: Any
    ) -> Quotation:
        return self.quotation(market_id, quotation_type, amount)

    def quotation_limit(
        self,
        market_id: MarketId | str,
        quotation_type: QuotationType | str,
        amount: Any,
        limit: Any,
    ) -> Quotation:
        require(limit=limit)
        return self.quotation(market_id, quotation_type, amount, limit=limit)

    # ──────────────────────────────────────────────
    # Reports
    # ──────────────────────────────────────────────

    def average_prices_report(
        self,
        market_id: MarketId | str,
        start_at: datetime | int | None = None,
        end_at: datetime | int | None = None,
    ) -> list[AveragePrice]:
        return self._report(
            market_id, ReportType.AVERAGE_PRICES, start_at, end_at, AveragePrice.from_api
        )

    def candlestick_report(
        self,
        market_id: MarketId | str,
        start_at: datetime | int | None = None,
        end_at: datetime | int | None = None,
    ) -> list[Candlestick]:
        return self._report(
            market_id, ReportType.CANDLESTICK, start_at, end_at, Candlestick.from_api
        )

    def _report(
        self,
        market_id: MarketId | str,
        report_type: ReportType,
        start_at: datetime | int | None,
        end_at: datetime | int | None,
        build: Callable[[Any], T],
    ) -> list[T]:
        market_id = self._market_id(market_id)
        report_type_value = check_allowed("report_type", report_type, ReportType)
        params = normalize_params(
            {
                "report_type": report_type_value,
                "from": epoch_seconds(start_at),
                "to": epoch_seconds(end_at),
            }
        )
        logger.info("fetching_report", market_id=market_id, report_type=report_type_value)
        response = self._get(f"markets/{market_id}/reports", params)
        return [build(entry) for entry in response.get("reports") or []]
