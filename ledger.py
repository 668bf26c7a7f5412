"""Order ledger: checkout, status transitions and order reads.

Order creation is a single sequential flow. The order row is authoritative
once written; the confirmation email and the cart reset that follow are
best-effort and only ever reported back through ``SideEffect`` results.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Dict, FrozenSet, List, Optional

from databases import Database

import crud
import schemas
from errors import InvalidStatus, NotFound, ValidationError
from notifications import NotificationSkipped, Notifier

logger = logging.getLogger(__name__)


class PaymentMethod(str, Enum):
    COD = "COD"
    EASYPAISA = "EASYPAISA"
    JAZZCASH = "JAZZCASH"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


# Allowed next states per current state. Every status may currently move to
# any other (backwards included); tightening the policy means editing this table.
STATUS_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    status: frozenset(OrderStatus) for status in OrderStatus
}


def can_transition(current: str, new: str) -> bool:
    try:
        return OrderStatus(new) in STATUS_TRANSITIONS.get(OrderStatus(current), frozenset())
    except ValueError:
        return False


OK = "ok"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class SideEffect:
    name: str
    status: str
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == OK


@dataclass
class OrderOutcome:
    """A persisted order plus the outcome of each follow-up effect."""
    order: dict
    side_effects: List[SideEffect] = field(default_factory=list)

    def effect(self, name: str) -> Optional[SideEffect]:
        return next((e for e in self.side_effects if e.name == name), None)


async def best_effort(name: str, action: Callable[[], Awaitable]) -> SideEffect:
    """Run ``action`` and turn any failure into a reported, swallowed result."""
    try:
        await action()
    except NotificationSkipped as e:
        return SideEffect(name, SKIPPED, str(e))
    except Exception as e:
        logger.error(f"❌ {name} failed: {e}")
        return SideEffect(name, FAILED, str(e))
    return SideEffect(name, OK)


def generate_tracking_number() -> str:
    # display identifier only, not a key
    return f"GN-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9].upper()}"


def validate_order(order: schemas.OrderCreate):
    if order.payment_method not in {m.value for m in PaymentMethod}:
        if not order.payment_method:
            raise ValidationError("Payment method required")
        raise ValidationError("Invalid payment method")
    if not order.items:
        raise ValidationError("Order items required")
    if order.total_price is None:
        raise ValidationError("Total price must be valid")
    if not order.shipping_address:
        raise ValidationError("Shipping address required")


async def create_order(
    db: Database,
    order: schemas.OrderCreate,
    notifier: Notifier,
    user_id: Optional[str] = None,
) -> OrderOutcome:
    validate_order(order)

    discount = order.discount_amount or 0.0
    now = datetime.utcnow()
    order_data = {
        "user_id": user_id or "guest",
        "items": [item.model_dump() for item in order.items],
        "total_price": float(order.total_price),
        "discount_amount": float(discount),
        "final_price": float(order.total_price) - float(discount),
        "coupon_code": order.coupon_code,
        "shipping_address": order.shipping_address,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "customer_phone": order.customer_phone,
        "payment_method": order.payment_method,
        "status": OrderStatus.PENDING.value,
        "tracking_number": generate_tracking_number(),
        "created_at": now,
        "updated_at": now,
    }
    db_order = await crud.insert_order(db, order_data)
    logger.info(f"✅ Order {db_order['id']} created ({db_order['tracking_number']}) total={db_order['final_price']}")

    outcome = OrderOutcome(order=db_order)
    outcome.side_effects.append(
        await best_effort("confirmation_email", lambda: notifier.send_order_confirmation(db_order))
    )

    if user_id:
        outcome.side_effects.append(await best_effort("cart_reset", lambda: crud.clear_cart(db, user_id)))
    else:
        outcome.side_effects.append(SideEffect("cart_reset", SKIPPED, "no user id"))

    return outcome


async def update_status(db: Database, order_id: int, new_status: str) -> dict:
    if new_status not in {s.value for s in OrderStatus}:
        raise InvalidStatus("Invalid status")

    order = await crud.get_order_by_id(db, order_id)
    if not order:
        raise NotFound("Order not found")

    if not can_transition(order["status"], new_status):
        raise InvalidStatus(f"Cannot move order from {order['status']} to {new_status}")

    updated = await crud.set_order_status(db, order_id, new_status)
    logger.info(f"📦 Order {order_id} status {order['status']} -> {new_status}")
    return updated


async def get_order_by_id(db: Database, order_id: int) -> dict:
    order = await crud.get_order_by_id(db, order_id)
    if not order:
        raise NotFound("Order not found")
    return order


async def get_user_orders(db: Database, user_id: str) -> List[dict]:
    if not user_id:
        raise ValidationError("User ID required")
    return await crud.get_orders(db, user_id=user_id)


async def get_all_orders(db: Database) -> List[dict]:
    return await crud.get_orders(db)
