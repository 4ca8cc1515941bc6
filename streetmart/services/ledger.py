# streetmart/services/ledger.py
"""
Order ledger: read side of the order records.

Orders are written only by the placement engine and the state machine;
this module never mutates them.
"""

from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models.enums import OrderStatus, Role
from ..models.orders import Order, OrderItem
from ..models.users import User
from ..utils.helpers import total_pages
from .identity import role_of, user_summary


def order_items(session: Session, order_id: int) -> List[OrderItem]:
    return session.exec(
        select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
    ).all()


def serialize_order(
    session: Session,
    order: Order,
    vendor: Optional[User] = None,
    supplier: Optional[User] = None,
) -> dict:
    data = order.model_dump()
    data["items"] = [
        {
            "material_id": i.material_id,
            "name": i.name,
            "quantity": i.quantity,
            "unit_price": i.unit_price,
            "unit": i.unit,
        }
        for i in order_items(session, order.id)
    ]
    data["vendor"] = user_summary(vendor or session.get(User, order.vendor_id))
    data["supplier"] = user_summary(supplier or session.get(User, order.supplier_id))
    return data


def list_orders(
    session: Session,
    user: User,
    status: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> dict:
    """
    Orders where `user` is the vendor (vendors) or the supplier (suppliers),
    newest first. `status` of None or "all" means no status filter.
    """
    role = role_of(user)
    if role is Role.VENDOR:
        stmt = select(Order).where(Order.vendor_id == user.id)
    elif role is Role.SUPPLIER:
        stmt = select(Order).where(Order.supplier_id == user.id)
    else:
        raise AuthorizationError(f"Role {role.value} cannot list orders")

    if status and status != "all":
        try:
            stmt = stmt.where(Order.status == OrderStatus(status).value)
        except ValueError as e:
            raise ValidationError(f"Unknown order status {status!r}") from e

    total = session.exec(select(func.count()).select_from(stmt.subquery())).one()
    orders = session.exec(
        stmt.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    return {
        "orders": [serialize_order(session, o) for o in orders],
        "total": total,
        "total_pages": total_pages(total, limit),
        "current_page": page,
    }


def get_order_record(session: Session, order_id: int) -> Order:
    order = session.get(Order, order_id)
    if not order:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def get_order(session: Session, order_id: int, requester: User) -> dict:
    order = get_order_record(session, order_id)
    if requester.id not in (order.vendor_id, order.supplier_id):
        raise AuthorizationError("Unauthorized to view this order")
    return serialize_order(session, order)
