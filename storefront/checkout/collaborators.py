"""
Clients HTTP des collaborateurs externes du checkout (httpx.AsyncClient partagé).

- OrdersClient: POST {COMMERCE_API_URL}{ORDERS_CREATE_PATH}
    corps: {items, shippingInfo, subtotal, taxAmount, shippingAmount, totalAmount, discountAmount}
    succès: {order: {id, orderNumber|order_number}}; échec: {error, details?}
- PaymentsClient: POST {COMMERCE_API_URL}{PAYMENTS_INIT_PATH}
    corps: {orderId, amount, description, email, firstName, lastName}
    succès: {paymentUrl, paymentData}
Les montants partent en nombres JSON. Les réponses sont décodées en JsonNumber (Decimal) pour les flottants
afin de conserver le littéral exact des champs signés par le processeur.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional
import json
import logging

import httpx

from storefront.config import ORDERS_CREATE_PATH, PAYMENTS_INIT_PATH
from storefront.errors import OrderCreationFailed, PaymentInitFailed
from storefront.payments.handoff import JsonNumber
from storefront.cart.models import CartLine
from .models import DerivedTotals, Order, ShippingInfo

logger = logging.getLogger(__name__)


def _json_number(value: Decimal) -> float:
    return float(value)


def _numbers_to_float(data: Any) -> Any:
    if isinstance(data, Decimal):
        return _json_number(data)
    if isinstance(data, dict):
        return {k: _numbers_to_float(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_numbers_to_float(v) for v in data]
    return data


def _decode(response: httpx.Response) -> Dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = json.loads(response.text, parse_float=JsonNumber)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_message(body: Dict[str, Any], fallback: str) -> str:
    """Message collaborateur: "error: details" si les deux sont présents."""
    error = body.get("error")
    details = body.get("details")
    if error and details:
        return f"{error}: {details}"
    return str(error or details or fallback)


def build_order_payload(
    lines: List[CartLine],
    shipping: ShippingInfo,
    totals: DerivedTotals,
    discount_amount: Decimal,
) -> Dict[str, Any]:
    items = [line.model_dump(mode="python", by_alias=True, exclude_none=True) for line in lines]
    return {
        "items": _numbers_to_float(items),
        "shippingInfo": shipping.model_dump(mode="json", by_alias=True),
        "subtotal": _json_number(totals.subtotal),
        "taxAmount": _json_number(totals.tax_amount),
        "shippingAmount": _json_number(totals.shipping_cost),
        "totalAmount": _json_number(totals.grand_total),
        "discountAmount": _json_number(discount_amount),
    }


def build_payment_payload(order: Order, amount: Decimal, shipping: ShippingInfo) -> Dict[str, Any]:
    return {
        "orderId": order.id,
        "amount": _json_number(amount),
        "description": f"Order #{order.order_number or order.id}",
        "email": shipping.email,
        "firstName": shipping.first_name,
        "lastName": shipping.last_name,
    }


class PaymentInitialization:
    def __init__(self, payment_url: str, payment_data: Dict[str, Any]):
        self.payment_url = payment_url
        self.payment_data = payment_data


class _CollaboratorClient:
    def __init__(self, http: httpx.AsyncClient, path: str):
        self.http = http
        self.path = path

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        return await self.http.post(self.path, json=payload)


class OrdersClient(_CollaboratorClient):
    def __init__(self, http: httpx.AsyncClient, path: str = ORDERS_CREATE_PATH):
        super().__init__(http, path)

    async def create_order(self, payload: Dict[str, Any]) -> Order:
        try:
            response = await self._post(payload)
        except httpx.HTTPError as e:
            logger.exception("checkout.orders transport error path=%s", self.path)
            raise OrderCreationFailed("Failed to create order") from e
        body = _decode(response)
        if response.is_error:
            raise OrderCreationFailed(_error_message(body, f"Failed to create order (HTTP {response.status_code})"))
        order = body.get("order")
        if not isinstance(order, dict) or order.get("id") in (None, ""):
            raise OrderCreationFailed("Order service returned no order")
        return Order.model_validate(order)


class PaymentsClient(_CollaboratorClient):
    def __init__(self, http: httpx.AsyncClient, path: str = PAYMENTS_INIT_PATH):
        super().__init__(http, path)

    async def initialize_payment(self, payload: Dict[str, Any], order_id: Optional[str] = None) -> PaymentInitialization:
        try:
            response = await self._post(payload)
        except httpx.HTTPError as e:
            logger.exception("checkout.payments transport error path=%s order_id=%s", self.path, order_id)
            raise PaymentInitFailed("Failed to initialize payment", order_id=order_id) from e
        body = _decode(response)
        if response.is_error:
            raise PaymentInitFailed(
                _error_message(body, f"Failed to initialize payment (HTTP {response.status_code})"),
                order_id=order_id,
            )
        payment_url = body.get("paymentUrl")
        payment_data = body.get("paymentData")
        if not payment_url or not isinstance(payment_data, dict):
            raise PaymentInitFailed("Payment service returned no redirect", order_id=order_id)
        return PaymentInitialization(str(payment_url), payment_data)
