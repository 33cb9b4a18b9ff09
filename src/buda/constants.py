"""Enumerations, allow-lists and limits for the Buda API.

Enums subclass ``str`` so members compare equal to their wire value and can be
dropped straight into paths and payloads.
"""

from enum import Enum

class Currency(str, Enum):
    """Supported currencies."""

    ARS = "ARS"
    BCH = "BCH"
    BTC = "BTC"
    CLP = "CLP"
    COP = "COP"
    ETH = "ETH"
    LTC = "LTC"
    PEN = "PEN"
    USDC = "USDC"


class Market(str, Enum):
    """Tradable pairs, identified as BASE-QUOTE."""

    BTC_ARS = "BTC-ARS"
    BTC_CLP = "BTC-CLP"
    BTC_COP = "BTC-COP"
    BTC_PEN = "BTC-PEN"
    BTC_USDC = "BTC-USDC"

    ETH_ARS = "ETH-ARS"
    ETH_BTC = "ETH-BTC"
    ETH_CLP = "ETH-CLP"
    ETH_COP = "ETH-COP"
    ETH_PEN = "ETH-PEN"

    BCH_ARS = "BCH-ARS"
    BCH_BTC = "BCH-BTC"
    BCH_CLP = "BCH-CLP"
    BCH_COP = "BCH-COP"
    BCH_PEN = "BCH-PEN"

    LTC_ARS = "LTC-ARS"
    LTC_BTC = "LTC-BTC"
    LTC_CLP = "LTC-CLP"
    LTC_COP = "LTC-COP"
    LTC_PEN = "LTC-PEN"

    USDC_ARS = "USDC-ARS"
    USDC_CLP = "USDC-CLP"
    USDC_COP = "USDC-COP"
    USDC_PEN = "USDC-PEN"


class OrderType(str, Enum):
    """Order side. Buda calls a sell an Ask and a buy a Bid."""

    ASK = "Ask"
    BID = "Bid"

class PriceType(str, Enum):
    MARKET = "market"
    LIMIT = "limit"

class OrderState(str, Enum):
    """Server-driven order lifecycle: received -> pending -> traded | canceling -> canceled."""

    RECEIVED = "received"
    PENDING = "pending"
    TRADED = "traded"
    CANCELING = "canceling"
    CANCELED = "canceled"

# Plain values: str-Enum members hash by name, so a set of members misses raw strings
ACTIVE_ORDER_STATES = frozenset({OrderState.RECEIVED.value, OrderState.PENDING.value})
CANCELED_ORDER_STATES = frozenset({OrderState.CANCELING.value, OrderState.CANCELED.value})

class QuotationType(str, Enum):
    BID_GIVEN_SIZE = "bid_given_size"
    BID_GIVEN_EARNED_BASE = "bid_given_earned_base"
    BID_GIVEN_SPENT_QUOTE = "bid_given_spent_quote"
    ASK_GIVEN_SIZE = "ask_given_size"
    ASK_GIVEN_EARNED_QUOTE = "ask_given_earned_quote"
    ASK_GIVEN_SPENT_BASE = "ask_given_spent_base"

class BalanceEventType(str, Enum):
    DEPOSIT_CONFIRM = "deposit_confirm"
    WITHDRAWAL_CONFIRM = "withdrawal_confirm"
    TRANSACTION = "transaction"
    TRANSFER_CONFIRMATION = "transfer_confirmation"

class ReportType(str, Enum):
    AVERAGE_PRICES = "average_prices"
    CANDLESTICK = "candlestick"

# Page-size maxima documented by the exchange
ORDERS_PER_PAGE = 300
TRANSFERS_PER_PAGE = 300

class HttpStatus:
    """HTTP status codes the classifier distinguishes."""

    OK = 200
    CREATED = 201
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    REQUEST_TIMEOUT = 408
    UNPROCESSABLE_ENTITY = 422
    RATE_LIMITED = 429
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504

RETRYABLE_STATUSES = frozenset(
    {
        HttpStatus.REQUEST_TIMEOUT,
        HttpStatus.RATE_LIMITED,
        HttpStatus.INTERNAL_SERVER_ERROR,
        HttpStatus.BAD_GATEWAY,
        HttpStatus.SERVICE_UNAVAILABLE,
        HttpStatus.GATEWAY_TIMEOUT,
    }
)
RETRYABLE_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})
