"""Typed records built from Buda API responses.

CRITICAL: All monetary values use Decimal. Never use float for prices, amounts, or fees.

Every record is immutable and built by ``from_api`` from one response payload.
Missing optional fields become None; derived values that need a missing input
return None instead of raising.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from buda.constants import ACTIVE_ORDER_STATES, CANCELED_ORDER_STATES, OrderState

# ──────────────────────────────────────────────
# Field parsers
# ──────────────────────────────────────────────


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a wire number (string, int or float) into a Decimal, or None.

    NaN and infinities are treated as malformed and return None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None
    return number if number.is_finite() else None


def parse_timestamp(value: Any, epoch_unit: int = 1) -> datetime | None:
    """Parse a timestamp by inspecting its type.

    Numbers and numeric strings are Unix epoch values (seconds, or another unit
    via ``epoch_unit``, e.g. 1000 for milliseconds). Other strings are ISO-8601.
    Anything malformed returns None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        return _from_epoch(value, epoch_unit)

    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    number = parse_decimal(text)
    if number is not None:
        return _from_epoch(number, epoch_unit)

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _from_epoch(value: int | float | Decimal, epoch_unit: int) -> datetime | None:
    try:
        return datetime.fromtimestamp(float(value) / epoch_unit, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def _mapping(data: Any) -> dict[str, Any]:
    return dict(data) if isinstance(data, Mapping) else {}


def _items(data: Any) -> list[Any] | tuple[Any, ...]:
    return data if isinstance(data, (list, tuple)) else ()


# ──────────────────────────────────────────────
# Values
# ──────────────────────────────────────────────


@dataclass(frozen=True)
class Amount:
    """A quantity paired with its currency code.

    The wire format is either ``{"amount": "1.5", "currency": "BTC"}`` or the
    compact pair ``["1.5", "BTC"]``.
    """

    amount: Decimal
    currency: str | None

    @classmethod
    def from_api(cls, data: Any) -> "Amount | None":
        if isinstance(data, Mapping):
            value, currency = data.get("amount"), data.get("currency")
        elif isinstance(data, (list, tuple)) and len(data) >= 2:
            value, currency = data[0], data[1]
        else:
            return None
        return cls(amount=parse_decimal(value) or Decimal("0"), currency=currency)

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"


@dataclass(frozen=True)
class PaginationMeta:
    current_page: int | None = None
    total_count: int | None = None
    total_pages: int | None = None

    @classmethod
    def from_api(cls, data: Any) -> "PaginationMeta":
        data = _mapping(data)
        return cls(
            current_page=_parse_int(data.get("current_page")),
            total_count=_parse_int(data.get("total_count")),
            total_pages=_parse_int(data.get("total_pages")),
        )

    @property
    def has_next_page(self) -> bool:
        return (
            self.current_page is not None
            and self.total_pages is not None
            and self.current_page < self.total_pages
        )

    @property
    def has_previous_page(self) -> bool:
        return self.current_page is not None and self.current_page > 1


def _parse_int(value: Any) -> int | None:
    number = parse_decimal(value)
    return int(number) if number is not None else None


# ──────────────────────────────────────────────
# Market data
# ──────────────────────────────────────────────


@dataclass(frozen=True)
class Market:
    id: str | None
    name: str | None
    base_currency: str | None
    quote_currency: str | None
    minimum_order_amount: Amount | None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(cls, data: Any) -> "Market":
        data = _mapping(data)
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            base_currency=data.get("base_currency"),
            quote_currency=data.get("quote_currency"),
            minimum_order_amount=Amount.from_api(data.get("minimum_order_amount")),
            raw=data,
        )


@dataclass(frozen=True)
class Ticker:
    market_id: str | None
    last_price: Amount | None
    min_ask: Amount | None
    max_bid: Amount | None
    volume: Amount | None
    price_variation_24h: Decimal | None
    price_variation_7d: Decimal | None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(cls, data: Any) -> "Ticker":
        data = _mapping(data)
        return cls(
            market_id=data.get("market_id"),
            last_price=Amount.from_api(data.get("last_price")),
            min_ask=Amount.from_api(data.get("min_ask")),
            max_bid=Amount.from_api(data.get("max_bid")),
            volume=Amount.from_api(data.get("volume")),
            price_variation_24h=parse_decimal(data.get("price_variation_24h")),
            price_variation_7d=parse_decimal(data.get("price_variation_7d")),
            raw=data,
        )


@dataclass(frozen=True)
class OrderBookEntry:
    price: Decimal
    amount: Decimal

    @classmethod
    def from_api(cls, data: Any) -> "OrderBookEntry":
        if isinstance(data, (list, tuple)) and len(data) >= 2:
            price, amount = data[0], data[1]
        else:
            data = _mapping(data)
            price, amount = data.get("price"), data.get("amount")
        return cls(
            price=parse_decimal(price) or Decimal("0"),
            amount=parse_decimal(amount) or Decimal("0"),
        )

    @property
    def total(self) -> Decimal:
        return self.price * self.amount


@dataclass(frozen=True)
class OrderBook:
    """Asks ascending by price, bids descending, as sent by the exchange."""

    asks: tuple[OrderBookEntry, ...]
    bids: tuple[OrderBookEntry, ...]
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(cls, data: Any) -> "OrderBook":
        data = _mapping(data)
        return cls(
            asks=tuple(OrderBookEntry.from_api(e) for e in _items(data.get("asks"))),
            bids=tuple(OrderBookEntry.from_api(e) for e in _items(data.get("bids"))),
            raw=data,
        )

    @property
    def best_ask(self) -> OrderBookEntry | None:
        return self.asks[0] if self.asks else None

    @property
    def best_bid(self) -> OrderBookEntry | None:
        return self.bids[0] if self.bids else None

    @property
    def spread(self) -> Decimal | None:
        if self.best_ask is None or self.best_bid is None:
            return None
        return self.best_ask.price - self.best_bid.price

    @property
    def spread_percentage(self) -> Decimal | None:
        """(best_ask - best_bid) / best_bid * 100, rounded to 4 decimals."""
        if self.best_ask is None or self.best_bid is None or self.best_bid.price <= 0:
            return None
        pct = (self.best_ask.price - self.best_bid.price) / self.best_bid.price * 100
        return pct.quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Trade:
    """One entry of the trades feed: [timestamp_ms, amount, price, direction, id]."""

    timestamp: datetime | None
    amount: Decimal | None
    price: Decimal | None
    direction: str | None
    id: int | None = None

    @classmethod
    def from_api(cls, data: Any) -> "Trade":
        if isinstance(data, Mapping):
            values = [
                data.get("timestamp"),
                data.get("amount"),
                data.get("price"),
                data.get("direction"),
                data.get("id"),
            ]
        else:
            values = list(_items(data)) + [None] * 5
        return cls(
            timestamp=parse_timestamp(values[0], epoch_unit=1000),
            amount=parse_decimal(_amount_value(values[1])),
            price=parse_decimal(_amount_value(values[2])),
            direction=values[3],
            id=_parse_int(values[4]),
        )


def _amount_value(value: Any) -> Any:
    # Some trade payloads nest amounts as {"amount": ..., "currency": ...}
    if isinstance(value, Mapping):
        return value.get("amount")
    if isinstance(value, (list, tuple)) and value:
        return value[0]
    return value


@dataclass(frozen=True)
class Trades:
    market_id: str | None
    timestamp: datetime | None
    last_timestamp: datetime | None
    entries: tuple[Trade, ...]
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(cls, data: Any) -> "Trades":
        data = _mapping(data)
        return cls(
            market_id=data.get("market_id"),
            timestamp=parse_timestamp(data.get("timestamp"), epoch_unit=1000),
            last_timestamp=parse_timestamp(data.get("last_timestamp"), epoch_unit=1000),
            entries=tuple(Trade.from_api(e) for e in _items(data.get("entries"))),
            raw=data,
        )

    def __iter__(self) -> Iterator[Trade]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class Quotation:
    """Server-side estimate for a hypothetical trade; no order is placed."""

    type: str | None
    amount: Amount | None
    limit: Amount | None
    base_balance_change: Amount | None
    quote_balance_change: Amount | None
    base_exchanged: Amount | None
    quote_exchanged: Amount | None
    fee: Amount | None
    order_amount: Amount | None
    incomplete: bool = False
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(cls, data: Any) -> "Quotation":
        data = _mapping(data)
        return cls(
            type=data.get("type"),
            amount=Amount.from_api(data.get("amount")),
            limit=Amount.from_api(data.get("limit")),
            base_balance_change=Amount.from_api(data.get("base_balance_change")),
            quote_balance_change=Amount.from_api(data.get("quote_balance_change")),
            base_exchanged=Amount.from_api(data.get("base_exchanged")),
            quote_exchanged=Amount.from_api(data.get("quote_exchanged")),
            fee=Amount.from_api(data.get("fee")),
            order_amount=Amount.from_api(data.get("order_amount")),
            incomplete=bool(data.get("incomplete", False)),
            raw=data,
        )


@dataclass(frozen=True)
class AveragePrice:
    """Average-prices report point. Report timestamps are epoch seconds."""

    timestamp: datetime | None
    amount: Decimal | None

    @classmethod
    def from_api(cls, data: Any) -> "AveragePrice":
        data = _mapping(data)
        return cls(
            timestamp=parse_timestamp(data.get("timestamp")),
            amount=parse_decimal(data.get("average", data.get("amount"))),
        )


@dataclass(frozen=True)
class Candlestick:
    timestamp: datetime | None
    open: Decimal | None
    close: Decimal | None
    high: Decimal | None
    low: Decimal | None
    volume: Decimal | None

    @classmethod
    def from_api(cls, data: Any) -> "Candlestick":
        data = _mapping(data)
        return cls(
            timestamp=parse_timestamp(data.get("timestamp")),
            open=parse_decimal(data.get("open")),
            close=parse_decimal(data.get("close")),
            high=parse_decimal(data.get("high")),
            low=parse_decimal(data.get("low")),
            volume=parse_decimal(data.get("volume")),
        )


# ──────────────────────────────────────────────
# Account
# ──────────────────────────────────────────────


@dataclass(frozen=True)
class Balance:
    """Account balance for one currency.

    The exchange keeps amount == available + frozen + pending_withdraw; this is
    not checked locally.
    """

    id: str | None
    account_id: int | None
    amount: Amount | None
    available_amount: Amount | None
    frozen_amount: Amount | None
    pending_withdraw_amount: Amount | None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(cls, data: Any) -> "Balance":
        data = _mapping(data)
        return cls(
            id=data.get("id"),
            account_id=_parse_int(data.get("account_id")),
            amount=Amount.from_api(data.get("amount")),
            available_amount=Amount.from_api(data.get("available_amount")),
            frozen_amount=Amount.from_api(data.get("frozen_amount")),
            pending_withdraw_amount=Amount.from_api(data.get("pending_withdraw_amount")),
            raw=data,
        )

    @property
    def currency(self) -> str | None:
        if self.amount is not None and self.amount.currency:
            return self.amount.currency
        return self.id


@dataclass(frozen=True)
class BalanceEvent:
    id: int | None
    event: str | None
    currencies: tuple[str, ...]
    event_ids: tuple[int, ...]
    created_at: datetime | None
    transaction_type: str | None
    data: dict[str, Any] = field(default_factory=dict, compare=False)

    @classmethod
    def from_api(cls, data: Any) -> "BalanceEvent":
        data = _mapping(data)
        return cls(
            id=_parse_int(data.get("id")),
            event=data.get("event"),
            currencies=tuple(_items(data.get("currencies"))),
            event_ids=tuple(_items(data.get("event_ids"))),
            created_at=parse_timestamp(data.get("created_at")),
            transaction_type=data.get("transaction_type"),
            data=_mapping(data.get("data")),
        )


@dataclass(frozen=True)
class BalanceEvents:
    events: tuple[BalanceEvent, ...]
    total_count: int | None

    @classmethod
    def from_api(cls, data: Any) -> "BalanceEvents":
        data = _mapping(data)
        return cls(
            events=tuple(BalanceEvent.from_api(e) for e in _items(data.get("balance_events"))),
            total_count=_parse_int(data.get("total_count")),
        )

    def __iter__(self) -> Iterator[BalanceEvent]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)


@dataclass(frozen=True)
class Order:
    """An order as last reported by the exchange.

    State transitions are server-driven; the client only observes them.
    """

    id: int | None
    market_id: str | None
    account_id: int | None
    type: str | None
    state: str | None
    price_type: str | None
    created_at: datetime | None
    fee_currency: str | None
    amount: Amount | None
    original_amount: Amount | None
    traded_amount: Amount | None
    total_exchanged: Amount | None
    paid_fee: Amount | None
    limit: Amount | None
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(cls, data: Any) -> "Order":
        data = _mapping(data)
        return cls(
            id=_parse_int(data.get("id")),
            market_id=data.get("market_id"),
            account_id=_parse_int(data.get("account_id")),
            type=data.get("type"),
            state=data.get("state"),
            price_type=data.get("price_type"),
            created_at=parse_timestamp(data.get("created_at")),
            fee_currency=data.get("fee_currency"),
            amount=Amount.from_api(data.get("amount")),
            original_amount=Amount.from_api(data.get("original_amount")),
            traded_amount=Amount.from_api(data.get("traded_amount")),
            total_exchanged=Amount.from_api(data.get("total_exchanged")),
            paid_fee=Amount.from_api(data.get("paid_fee")),
            limit=Amount.from_api(data.get("limit")),
            raw=data,
        )

    @property
    def filled_percentage(self) -> Decimal:
        """Traded share of the original amount, in percent, rounded to 2 decimals."""
        if self.original_amount is None or self.original_amount.amount <= 0:
            return Decimal("0")
        traded = self.traded_amount.amount if self.traded_amount else Decimal("0")
        pct = traded / self.original_amount.amount * 100
        return pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    @property
    def is_active(self) -> bool:
        return self.state in ACTIVE_ORDER_STATES

    @property
    def is_filled(self) -> bool:
        return self.state == OrderState.TRADED

    @property
    def is_canceled(self) -> bool:
        return self.state in CANCELED_ORDER_STATES


@dataclass(frozen=True)
class OrderPage:
    orders: tuple[Order, ...]
    meta: PaginationMeta

    @classmethod
    def from_api(cls, data: Any) -> "OrderPage":
        data = _mapping(data)
        return cls(
            orders=tuple(Order.from_api(o) for o in _items(data.get("orders"))),
            meta=PaginationMeta.from_api(data.get("meta")),
        )

    def __iter__(self) -> Iterator[Order]:
        return iter(self.orders)

    def __len__(self) -> int:
        return len(self.orders)


@dataclass(frozen=True)
class Withdrawal:
    id: int | None
    state: str | None
    currency: str | None
    created_at: datetime | None
    amount: Amount | None
    fee: Amount | None
    withdrawal_data: dict[str, Any] = field(default_factory=dict, compare=False)
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(cls, data: Any) -> "Withdrawal":
        data = _mapping(data)
        return cls(
            id=_parse_int(data.get("id")),
            state=data.get("state"),
            currency=data.get("currency"),
            created_at=parse_timestamp(data.get("created_at")),
            amount=Amount.from_api(data.get("amount")),
            fee=Amount.from_api(data.get("fee")),
            withdrawal_data=_mapping(data.get("withdrawal_data")),
            raw=data,
        )

    @property
    def target_address(self) -> str | None:
        return self.withdrawal_data.get("target_address")


@dataclass(frozen=True)
class Deposit:
    id: int | None
    state: str | None
    currency: str | None
    created_at: datetime | None
    amount: Amount | None
    fee: Amount | None
    deposit_data: dict[str, Any] = field(default_factory=dict, compare=False)
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_api(cls, data: Any) -> "Deposit":
        data = _mapping(data)
        return cls(
            id=_parse_int(data.get("id")),
            state=data.get("state"),
            currency=data.get("currency"),
            created_at=parse_timestamp(data.get("created_at")),
            amount=Amount.from_api(data.get("amount")),
            fee=Amount.from_api(data.get("fee")),
            deposit_data=_mapping(data.get("deposit_data")),
            raw=data,
        )

    @property
    def address(self) -> str | None:
        return self.deposit_data.get("address")


@dataclass(frozen=True)
class TransferPage:
    """A page of withdrawals or deposits."""

    items: tuple[Withdrawal, ...] | tuple[Deposit, ...]
    meta: PaginationMeta

    def __iter__(self) -> Iterator[Withdrawal | Deposit]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


# ──────────────────────────────────────────────
# Requests
# ──────────────────────────────────────────────


@dataclass(frozen=True)
class OrderRequest:
    """Parameters for placing one order.

    ``limit`` is required for limit orders and ignored for market orders.
    Enum members or their plain string values are both accepted.
    """

    market_id: str
    type: str
    price_type: str
    amount: Decimal | float | str
    limit: Decimal | float | str | None = None
