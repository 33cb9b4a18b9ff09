"""Client for the authenticated Buda endpoints (balances, orders, transfers).

Requests to these endpoints are signed with HMAC-SHA384 by the transport.
Order placement and cancellation are the only state transitions the client
issues; the exchange reports every other order state.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from buda.client.public import PublicClient
from buda.client.validation import (
    check_all_allowed,
    check_allowed,
    check_per_page,
    check_positive,
    format_number,
    normalize_params,
    require,
    wire_value,
)
from buda.config import ClientSettings, Credentials
from buda.constants import (
    ORDERS_PER_PAGE,
    TRANSFERS_PER_PAGE,
    BalanceEventType,
    Currency,
    OrderState,
    OrderType,
    PriceType,
)
from buda.constants import Market as MarketId
from buda.exceptions import ValidationError
from buda.http.signer import RequestSigner
from buda.http.transport import HttpTransport
from buda.logging import get_logger
from buda.models import (
    Balance,
    BalanceEvents,
    Deposit,
    Order,
    OrderPage,
    OrderRequest,
    PaginationMeta,
    TransferPage,
    Withdrawal,
)

logger = get_logger(__name__)


class AuthenticatedClient(PublicClient):
    """Trading and account client. Also exposes every public endpoint.

    Credentials come from ``credentials``, from explicit ``api_key`` /
    ``api_secret`` arguments, or from BUDA_API_KEY / BUDA_API_SECRET.

    Raises:
        ConfigurationError: if the key or secret is empty. Raised before
            any request is attempted.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_secret: str | None = None,
        credentials: Credentials | None = None,
        settings: ClientSettings | None = None,
        transport: HttpTransport | None = None,
    ) -> None:
        if credentials is None:
            if api_key is None and api_secret is None:
                credentials = Credentials()
            else:
                credentials = Credentials(
                    api_key=api_key or "",  # type: ignore[arg-type]
                    api_secret=api_secret or "",  # type: ignore[arg-type]
                )
        # Validates the key pair before any transport exists
        self._signer = RequestSigner(
            credentials.api_key.get_secret_value(),
            credentials.api_secret.get_secret_value(),
        )
        super().__init__(settings=settings, transport=transport)
        logger.info("authenticated_client_initialized")

    def _build_signer(self) -> RequestSigner | None:
        return self._signer

    @property
    def api_key(self) -> str:
        return self._signer.api_key

    @staticmethod
    def _currency(currency: Any) -> str:
        require(currency=currency)
        return check_allowed("currency", currency, Currency)

    # ──────────────────────────────────────────────
    # Balances
    # ──────────────────────────────────────────────

    def balance(self, currency: Currency | str) -> Balance:
        currency = self._currency(currency)
        logger.info("fetching_balance", currency=currency)
        response = self._get(f"balances/{currency}", auth=True)
        return Balance.from_api(response.get("balance"))

    def balance_events(
        self,
        currencies: Iterable[Currency | str],
        event_names: Iterable[BalanceEventType | str],
        page: int | None = None,
        per_page: int | None = None,
        relevant: bool | None = None,
    ) -> BalanceEvents:
        """Return balance history events filtered by currency and event type."""
        currencies = list(currencies or [])
        event_names = list(event_names or [])
        require(currencies=currencies, event_names=event_names)

        params = normalize_params(
            {
                "currencies[]": check_all_allowed("currency", currencies, Currency),
                "event_names[]": check_all_allowed("event", event_names, BalanceEventType),
                "page": page,
                "per": per_page,
                "relevant": relevant,
            }
        )
        logger.info("fetching_balance_events", params=params)
        response = self._get("balance_events", params, auth=True)
        return BalanceEvents.from_api(response)

    # ──────────────────────────────────────────────
    # Orders
    # ──────────────────────────────────────────────

    def place_order(
        self,
        market_id: MarketId | str,
        order_type: OrderType | str,
        price_type: PriceType | str,
        amount: Any,
        limit: Any = None,
    ) -> Order:
        """Place a new order.

        Args:
            market_id: Market identifier, e.g. "BTC-CLP".
            order_type: "Ask" (sell) or "Bid" (buy).
            price_type: "market" or "limit".
            amount: Base-currency amount to trade.
            limit: Limit price. Required for limit orders, ignored for market orders.

        Returns:
            The created order, usually in the received or pending state.
        """
        request = OrderRequest(
            market_id=market_id,
            type=order_type,
            price_type=price_type,
            amount=amount,
            limit=limit,
        )
        return self.place_order_request(request)

    def place_order_request(self, request: OrderRequest) -> Order:
        market_id = self._market_id(request.market_id)
        payload = self._order_payload(request)
        logger.info(
            "placing_order",
            market_id=market_id,
            order_type=payload["type"],
            price_type=payload["price_type"],
            amount=payload["amount"],
            limit=payload.get("limit"),
        )
        response = self._post(f"markets/{market_id}/orders", payload, auth=True)
        return Order.from_api(response.get("order"))

    def _order_payload(self, request: OrderRequest) -> dict[str, str]:
        require(
            market_id=request.market_id,
            order_type=request.type,
            price_type=request.price_type,
            amount=request.amount,
        )
        self._market_id(request.market_id)
        order_type = check_allowed("order_type", request.type, OrderType)
        price_type = check_allowed("price_type", request.price_type, PriceType)
        amount = check_positive("amount", request.amount)

        payload = {
            "type": order_type,
            "price_type": price_type,
            "amount": format_number(amount),
        }
        if price_type == PriceType.LIMIT.value:
            if request.limit is None:
                raise ValidationError("Limit price is required for limit orders")
            payload["limit"] = format_number(check_positive("limit", request.limit))
        return payload

    def orders(
        self,
        market_id: MarketId | str,
        page: int | None = None,
        per_page: int | None = None,
        state: OrderState | str | None = None,
        minimum_exchanged: Decimal | float | None = None,
    ) -> OrderPage:
        """Return one page of the account's orders in a market (max 300 per page)."""
        market_id = self._market_id(market_id)
        check_per_page(per_page, ORDERS_PER_PAGE)
        if state is not None:
            state = check_allowed("state", state, OrderState)

        params = normalize_params(
            {
                "per": per_page,
                "page": page,
                "state": state,
                "minimum_exchanged": minimum_exchanged,
            }
        )
        logger.info("fetching_orders", market_id=market_id, params=params)
        response = self._get(f"markets/{market_id}/orders", params, auth=True)
        return OrderPage.from_api(response)

    def order_details(self, order_id: int | str) -> Order:
        require(order_id=order_id)
        logger.info("fetching_order_details", order_id=order_id)
        response = self._get(f"orders/{order_id}", auth=True)
        return Order.from_api(response.get("order"))

    def cancel_order(self, order_id: int | str) -> Order:
        """Request cancellation. The returned order is usually in the canceling state."""
        require(order_id=order_id)
        logger.info("canceling_order", order_id=order_id)
        response = self._put(
            f"orders/{order_id}", {"state": OrderState.CANCELING.value}, auth=True
        )
        return Order.from_api(response.get("order"))

    def batch_orders(
        self,
        cancel_orders: Iterable[int | str] = (),
        place_orders: Iterable[OrderRequest | Mapping[str, Any]] = (),
    ) -> dict[str, Any]:
        """Cancel and place several orders in one request.

        ``place_orders`` entries may be OrderRequest objects, which are validated
        like ``place_order``, or raw order mappings, which are sent unchanged.
        Returns the raw response body.
        """
        diff: list[dict[str, Any]] = [
            {"mode": "cancel", "order_id": order_id} for order_id in cancel_orders or ()
        ]
        for order in place_orders or ():
            if isinstance(order, OrderRequest):
                entry: dict[str, Any] = self._order_payload(order)
                entry["market_id"] = wire_value(order.market_id)
            else:
                entry = {k: wire_value(v) for k, v in order.items()}
            diff.append({"mode": "place", "order": entry})

        if not diff:
            raise ValidationError("At least one cancel or place operation must be specified")

        logger.info("executing_batch_orders", operations=len(diff))
        return self._post("orders", {"diff": diff}, auth=True)

    # ──────────────────────────────────────────────
    # Transfers
    # ──────────────────────────────────────────────

    def withdrawals(
        self,
        currency: Currency | str,
        page: int | None = None,
        per_page: int | None = None,
        state: str | None = None,
    ) -> TransferPage:
        currency = self._currency(currency)
        check_per_page(per_page, TRANSFERS_PER_PAGE)
        params = normalize_params({"per": per_page, "page": page, "state": state})
        logger.info("fetching_withdrawals", currency=currency, params=params)
        response = self._get(f"currencies/{currency}/withdrawals", params, auth=True)
        return TransferPage(
            items=tuple(Withdrawal.from_api(w) for w in response.get("withdrawals") or []),
            meta=PaginationMeta.from_api(response.get("meta")),
        )

    def deposits(
        self,
        currency: Currency | str,
        page: int | None = None,
        per_page: int | None = None,
        state: str | None = None,
    ) -> TransferPage:
        currency = self._currency(currency)
        check_per_page(per_page, TRANSFERS_PER_PAGE)
        params = normalize_params({"per": per_page, "page": page, "state": state})
        logger.info("fetching_deposits", currency=currency, params=params)
        response = self._get(f"currencies/{currency}/deposits", params, auth=True)
        return TransferPage(
            items=tuple(Deposit.from_api(d) for d in response.get("deposits") or []),
            meta=PaginationMeta.from_api(response.get("meta")),
        )

    def withdrawal(
        self,
        currency: Currency | str,
        amount: Any,
        target_address: str | None,
        amount_includes_fee: bool = True,
        simulate: bool = False,
    ) -> Withdrawal:
        """Create (or, with ``simulate=True``, only price) a withdrawal.

        A target address is required unless simulating.
        """
        currency = self._currency(currency)
        require(amount=amount)
        if not simulate:
            require(target_address=target_address)
        amount_value = format_number(check_positive("amount", amount))

        payload: dict[str, Any] = {
            "amount": amount_value,
            "currency": currency,
            "simulate": simulate,
            "amount_includes_fee": amount_includes_fee,
        }
        if target_address:
            payload["withdrawal_data"] = {"target_address": target_address}

        logger.info(
            "simulating_withdrawal" if simulate else "creating_withdrawal",
            currency=currency,
            amount=amount_value,
            target_address=target_address,
        )
        response = self._post(f"currencies/{currency}/withdrawals", payload, auth=True)
        return Withdrawal.from_api(response.get("withdrawal"))

    def simulate_withdrawal(
        self, currency: Currency | str, amount: Any, amount_includes_fee: bool = True
    ) -> Withdrawal:
        """Return the fee and net amount of a withdrawal without executing it."""
        return self.withdrawal(
            currency, amount, None, amount_includes_fee=amount_includes_fee, simulate=True
        )
