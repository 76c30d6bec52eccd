"""Payment order workflow.

``create_payment`` opens a fixed-amount order with the gateway and links it to
an application record. ``verify_payment`` pulls the gateway's current order
status and writes the mapped value back to the record store. The gateway is
the source of truth, so verification can be repeated as often as needed.
"""
import logging
import threading
import time

from app.config import DEFAULT_CUSTOMER_NAME, FIXED_ORDER_AMOUNT, ORDER_CURRENCY, Settings
from app.errors import GatewayError, PaymentError, PaymentValidationError, StoreError
from app.gateway import CashfreeClient
from app.models import GatewayOrderStatus, PaymentStatus
from app.schemas import (
    PaymentCreateRequest,
    PaymentCreateResponse,
    PaymentVerifyRequest,
    PaymentVerifyResponse,
)
from app.store import RecordStore

logger = logging.getLogger(__name__)

VERIFICATION_FAILED = "Verification failed"

_STATUS_MAP = {
    GatewayOrderStatus.PAID.value: PaymentStatus.COMPLETE,
    GatewayOrderStatus.FAILED.value: PaymentStatus.FAILED,
    GatewayOrderStatus.EXPIRED.value: PaymentStatus.FAILED,
}


class OrderIdClock:
    """Millisecond timestamps that never repeat or go backwards within a process."""

    def __init__(self, clock=time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next_millis(self) -> int:
        with self._lock:
            now = int(self._clock() * 1000)
            if now <= self._last:
                now = self._last + 1
            self._last = now
            return now


_order_clock = OrderIdClock()


def generate_order_id(application_id: str, clock: OrderIdClock = None) -> str:
    clock = clock or _order_clock
    return f"ORD_{application_id}_{clock.next_millis()}"


def build_order_payload(
    application_id: str,
    order_id: str,
    customer_phone,
    customer_name: str = None,
    return_url: str = None,
) -> dict:
    payload = {
        "order_amount": FIXED_ORDER_AMOUNT,
        "order_currency": ORDER_CURRENCY,
        "order_id": order_id,
        "customer_details": {
            "customer_id": f"CUST_{application_id}",
            "customer_phone": str(customer_phone),
            "customer_name": customer_name or DEFAULT_CUSTOMER_NAME,
        },
    }
    if return_url:
        payload["order_meta"] = {"return_url": return_url.format(order_id=order_id)}
    return payload


def read_order_field(order, field: str):
    """Read a string field from a gateway order, rejecting malformed responses."""
    if not isinstance(order, dict):
        raise GatewayError("Invalid response from payment gateway", detail=order)
    value = order.get(field)
    if value is not None and not isinstance(value, str):
        raise GatewayError(f"Invalid {field} in payment gateway response", detail=order)
    return value


def map_gateway_status(gateway_status) -> PaymentStatus:
    """PAID -> COMPLETE, FAILED/EXPIRED -> FAILED, anything else -> PENDING."""
    return _STATUS_MAP.get(gateway_status, PaymentStatus.PENDING)


async def create_payment(
    request: PaymentCreateRequest,
    gateway: CashfreeClient,
    store: RecordStore,
    settings: Settings,
) -> PaymentCreateResponse:
    if not request.application_id or not request.customer_phone:
        raise PaymentValidationError("Missing required fields: applicationId or customerPhone")

    application_id = str(request.application_id)
    order_id = generate_order_id(application_id)
    payload = build_order_payload(
        application_id,
        order_id,
        request.customer_phone,
        request.customer_name,
        settings.return_url,
    )

    order = await gateway.create_order(payload)
    payment_session_id = read_order_field(order, "payment_session_id")
    logger.info("Gateway order %s created for application %s", order_id, application_id)

    # A failure here leaves the gateway order in place; it is not cancelled.
    updated = await store.mark_order_pending(application_id, order_id, FIXED_ORDER_AMOUNT)
    if not updated:
        logger.warning("No application record %s found for order %s", application_id, order_id)

    return PaymentCreateResponse(
        payment_session_id=payment_session_id,
        order_id=order_id,
        amount=FIXED_ORDER_AMOUNT,
    )


async def verify_payment(
    request: PaymentVerifyRequest,
    gateway: CashfreeClient,
    store: RecordStore,
) -> PaymentVerifyResponse:
    order_id = request.order_id
    if not order_id:
        raise PaymentValidationError("Order ID is required")

    logger.info("Verifying order %s", order_id)

    try:
        order = await gateway.get_order(order_id)
        cashfree_status = read_order_field(order, "order_status")
        status = map_gateway_status(cashfree_status)
        records = await store.update_status_by_order_id(order_id, status)
    except (GatewayError, StoreError) as e:
        logger.error("Verification of order %s failed: %s", order_id, e.message)
        raise PaymentError(VERIFICATION_FAILED) from e

    if records:
        logger.info("Order %s marked as %s", order_id, status.value)
    else:
        # Still reported as success; the caller only learns the gateway status.
        logger.warning("Order %s resolved to %s but matched no application record", order_id, status.value)

    return PaymentVerifyResponse(
        status=status,
        cashfree_status=cashfree_status,
        order_id=order_id,
    )
