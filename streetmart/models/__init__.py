from .enums import (
    Role,
    Category,
    Unit,
    QualityGrade,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from .users import User
from .catalog import Material
from .orders import Order, OrderItem
from .reviews import Review
from .events import Event

__all__ = [
    "Role",
    "Category",
    "Unit",
    "QualityGrade",
    "OrderStatus",
    "PaymentMethod",
    "PaymentStatus",
    "User",
    "Material",
    "Order",
    "OrderItem",
    "Review",
    "Event",
]
