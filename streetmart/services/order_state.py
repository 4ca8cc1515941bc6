# streetmart/services/order_state.py
"""
Order state machine.

    pending -> confirmed -> out_for_delivery -> delivered
       |           |
       +-----------+--> cancelled

Only the supplier that owns an order may move it. The status write is a
compare-and-set on the status that was read, so two racing transitions
from the same state cannot both succeed.
"""

import logging
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from sqlalchemy import update
from sqlmodel import Session

from ..config import settings as default_settings, Settings
from ..errors import IllegalTransitionError, NotFoundError, ValidationError, store_errors
from ..models.enums import OrderStatus, Role
from ..models.orders import Order
from ..models.users import User
from ..utils.helpers import as_utc, utcnow
from .catalog import restore_stock
from .event_logger import log_event
from .identity import ensure_role
from .ledger import order_items, serialize_order

logger = logging.getLogger(__name__)

VALID_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}),
    OrderStatus.OUT_FOR_DELIVERY: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATES = frozenset(s for s, nxt in VALID_TRANSITIONS.items() if not nxt)


def allowed_transitions(status: OrderStatus | str) -> FrozenSet[OrderStatus]:
    return VALID_TRANSITIONS[OrderStatus(status)]


def can_transition(current: OrderStatus | str, requested: OrderStatus | str) -> bool:
    return OrderStatus(requested) in allowed_transitions(current)


def _parse_status(value: OrderStatus | str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError as e:
        raise ValidationError(f"Unknown order status {value!r}") from e


def transition(
    session: Session,
    order_id: int,
    actor: User,
    new_status: OrderStatus | str,
    notes: Optional[str] = None,
    eta: Optional[datetime] = None,
    settings: Settings | None = None,
) -> dict:
    """
    Move an order to `new_status`.

    Raises AuthorizationError for non-suppliers, NotFoundError when the
    order is missing or owned by another supplier, IllegalTransitionError
    when the move is not in VALID_TRANSITIONS for the current status.
    """
    settings = settings or default_settings
    ensure_role(actor, Role.SUPPLIER)
    requested = _parse_status(new_status)

    with store_errors():
        try:
            order = session.get(Order, order_id)
            if not order or order.supplier_id != actor.id:
                raise NotFoundError("Order not found or unauthorized")
            # The identity map may hold a status another session has since moved.
            session.refresh(order)

            current = OrderStatus(order.status)
            if not can_transition(current, requested):
                raise IllegalTransitionError(current.value, requested.value)

            now = utcnow()
            values = {"status": requested.value, "updated_at": now}
            if notes:
                values["supplier_notes"] = notes
            if eta:
                values["estimated_delivery_time"] = as_utc(eta)
            if requested is OrderStatus.DELIVERED:
                values["actual_delivery_time"] = now

            result = session.exec(
                update(Order)
                .where(
                    Order.id == order_id,
                    Order.supplier_id == actor.id,
                    Order.status == current.value,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # Lost the race: someone else moved the order after we read it.
                session.rollback()
                session.refresh(order)
                raise IllegalTransitionError(order.status, requested.value)

            if requested is OrderStatus.CANCELLED and settings.restock_on_cancel:
                quantities: Dict[int, int] = {}
                for item in order_items(session, order_id):
                    quantities[item.material_id] = quantities.get(item.material_id, 0) + item.quantity
                restore_stock(session, quantities, f"order {order_id}")

            log_event(
                session,
                "ORDER_STATUS_CHANGED",
                f"Order {order_id}: {current.value} -> {requested.value} by supplier {actor.id}",
            )
            session.commit()
        except Exception:
            session.rollback()
            raise

        session.refresh(order)
        return serialize_order(session, order)
