from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field

from ..utils.helpers import utcnow

from .enums import OrderStatus, PaymentMethod, PaymentStatus


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    vendor_id: int = Field(foreign_key="user.id", index=True)
    supplier_id: int = Field(foreign_key="user.id", index=True)
    subtotal: float = Field(ge=0)
    delivery_fee: float = Field(default=0, ge=0)
    total_amount: float = Field(ge=0)
    status: str = Field(default=OrderStatus.PENDING.value, index=True)
    delivery_address: str
    vendor_phone: str  # snapshot at order time
    supplier_notes: Optional[str] = None
    estimated_delivery_time: Optional[datetime] = None
    actual_delivery_time: Optional[datetime] = None
    payment_method: str = PaymentMethod.CASH.value
    payment_status: str = PaymentStatus.PENDING.value  # recorded, never transitioned here
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)


class OrderItem(SQLModel, table=True):
    """Line snapshot taken at placement; later material edits don't touch it."""

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="order.id", index=True)
    material_id: int = Field(index=True)  # no FK: the snapshot outlives the material
    name: str
    quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)
    unit: str
