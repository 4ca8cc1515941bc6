# streetmart/services/placement.py
"""
Order placement engine.

One call to `place_order` produces at most one order for one supplier.
Stock checks, stock decrements and the order insert share a single
transaction: either everything is committed or nothing is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from sqlmodel import Session

from ..config import settings as default_settings, Settings
from ..errors import (
    InsufficientStockError,
    MarketplaceError,
    MaterialUnavailableError,
    NotFoundError,
    ValidationError,
    store_errors,
)
from ..models.catalog import Material
from ..models.enums import OrderStatus, PaymentMethod, PaymentStatus, Role
from ..models.orders import Order, OrderItem
from ..models.users import User
from .catalog import decrement_stock
from .event_logger import log_event
from .identity import ensure_role, role_of
from .ledger import serialize_order

logger = logging.getLogger(__name__)


@dataclass
class CartFailure:
    supplier_id: Optional[int]
    material_ids: List[int]
    error: MarketplaceError

    def to_dict(self) -> Dict[str, Any]:
        return {
            "supplier_id": self.supplier_id,
            "material_ids": self.material_ids,
            "error": type(self.error).__name__,
            "detail": self.error.message,
        }


@dataclass
class CartResult:
    orders: List[dict] = field(default_factory=list)
    failures: List[CartFailure] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "orders": self.orders,
            "failures": [f.to_dict() for f in self.failures],
        }


def _line_values(item: Any) -> tuple:
    if isinstance(item, dict):
        return item.get("material_id"), item.get("quantity")
    return getattr(item, "material_id", None), getattr(item, "quantity", None)


def merge_lines(items: Iterable[Any]) -> Dict[int, int]:
    """
    Collapse cart lines into {material_id: quantity}, keeping first-seen
    order. Repeated materials are summed.
    """
    merged: Dict[int, int] = {}
    for item in items:
        material_id, quantity = _line_values(item)
        if material_id is None:
            raise ValidationError("Each item needs a material_id")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationError(f"Quantity for material {material_id} must be an integer >= 1")
        merged[material_id] = merged.get(material_id, 0) + quantity
    return merged


def _check_line(material: Optional[Material], material_id: int, quantity: int, supplier_id: int) -> Material:
    if not material or not material.is_available:
        raise MaterialUnavailableError(material_id, material.name if material else None)
    if material.supplier_id != supplier_id:
        raise ValidationError(
            f"Material {material.name} does not belong to supplier {supplier_id}"
        )
    if quantity < material.min_order_quantity:
        raise ValidationError(
            f"Minimum order quantity for {material.name} is {material.min_order_quantity} {material.unit}"
        )
    if material.stock < quantity:
        raise InsufficientStockError(material_id, material.name, material.stock, quantity)
    return material


def place_order(
    session: Session,
    vendor: User,
    supplier_id: Optional[int],
    items: Iterable[Any],
    delivery_address: Optional[str],
    payment_method: PaymentMethod | str = PaymentMethod.CASH,
    settings: Settings | None = None,
) -> dict:
    """
    Validate a single-supplier cart, decrement stock and write the order.

    Raises:
        AuthorizationError: caller is not a vendor
        ValidationError: missing supplier/items/address, bad quantity,
            material from another supplier, below minimum order quantity
        NotFoundError: supplier does not exist
        MaterialUnavailableError: material missing or not available
        InsufficientStockError: quantity above current stock
        TransientStoreError: store unavailable / lock wait timed out
    """
    settings = settings or default_settings
    ensure_role(vendor, Role.VENDOR)

    items = list(items or [])
    if not supplier_id or not items or not delivery_address or not delivery_address.strip():
        raise ValidationError("Required fields are missing: supplier_id, items, delivery_address")
    lines = merge_lines(items)
    try:
        payment_method = PaymentMethod(payment_method)
    except ValueError as e:
        raise ValidationError(f"Unknown payment method {payment_method!r}") from e

    with store_errors():
        supplier = session.get(User, supplier_id)
        if not supplier or role_of(supplier) is not Role.SUPPLIER:
            raise NotFoundError(f"Supplier {supplier_id} not found")

        try:
            snapshots: List[OrderItem] = []
            subtotal = 0.0

            for material_id, quantity in lines.items():
                material = _check_line(
                    session.get(Material, material_id), material_id, quantity, supplier_id
                )
                if not decrement_stock(session, material_id, quantity):
                    # Another placement got there first; report what is left now.
                    session.refresh(material)
                    if not material.is_available:
                        raise MaterialUnavailableError(material_id, material.name)
                    raise InsufficientStockError(
                        material_id, material.name, material.stock, quantity
                    )

                subtotal += material.unit_price * quantity
                snapshots.append(
                    OrderItem(
                        material_id=material_id,
                        name=material.name,
                        quantity=quantity,
                        unit_price=material.unit_price,
                        unit=material.unit,
                    )
                )

            subtotal = round(subtotal, 2)
            delivery_fee = float(settings.delivery_fee)
            order = Order(
                vendor_id=vendor.id,
                supplier_id=supplier_id,
                subtotal=subtotal,
                delivery_fee=delivery_fee,
                total_amount=round(subtotal + delivery_fee, 2),
                status=OrderStatus.PENDING.value,
                delivery_address=delivery_address.strip(),
                vendor_phone=vendor.phone,
                payment_method=payment_method.value,
                payment_status=PaymentStatus.PENDING.value,
            )
            session.add(order)
            session.flush()

            for snap in snapshots:
                snap.order_id = order.id
                session.add(snap)

            log_event(
                session,
                "ORDER_PLACED",
                f"Order {order.id}: vendor {vendor.id} -> supplier {supplier_id}, "
                f"{len(snapshots)} item(s), total {order.total_amount}",
                metadata={m: q for m, q in lines.items()},
            )
            session.commit()
        except Exception:
            session.rollback()
            raise

        session.refresh(order)
        return serialize_order(session, order, vendor=vendor, supplier=supplier)


def place_cart(
    session: Session,
    vendor: User,
    items: Iterable[Any],
    delivery_address: Optional[str],
    payment_method: PaymentMethod | str = PaymentMethod.CASH,
    settings: Settings | None = None,
) -> CartResult:
    """
    Split a multi-supplier cart by owning supplier and place one order per
    group. Groups are independent: a failed group does not undo or block
    the others.
    """
    ensure_role(vendor, Role.VENDOR)
    items = list(items or [])
    if not items or not delivery_address or not delivery_address.strip():
        raise ValidationError("Required fields are missing: items, delivery_address")
    lines = merge_lines(items)

    groups: Dict[Optional[int], Dict[int, int]] = {}
    with store_errors():
        for material_id, quantity in lines.items():
            material = session.get(Material, material_id)
            supplier_id = material.supplier_id if material else None
            groups.setdefault(supplier_id, {})[material_id] = quantity

    result = CartResult()
    for supplier_id, group in groups.items():
        if supplier_id is None:
            for material_id in group:
                result.failures.append(
                    CartFailure(None, [material_id], MaterialUnavailableError(material_id))
                )
            continue

        group_items = [{"material_id": m, "quantity": q} for m, q in group.items()]
        try:
            order = place_order(
                session,
                vendor,
                supplier_id,
                group_items,
                delivery_address,
                payment_method=payment_method,
                settings=settings,
            )
        except MarketplaceError as e:
            logger.info("Cart group for supplier %s failed: %s", supplier_id, e.message)
            result.failures.append(CartFailure(supplier_id, list(group), e))
            continue
        result.orders.append(order)

    return result
