# streetmart/models/enums.py
"""
Closed value sets shared by the models, schemas and services.
"""

from enum import Enum


class Role(str, Enum):
    VENDOR = "vendor"
    SUPPLIER = "supplier"


class Category(str, Enum):
    VEGETABLES = "vegetables"
    DAIRY = "dairy"
    OILS = "oils"
    SPICES = "spices"
    GRAINS = "grains"
    MEAT = "meat"
    OTHERS = "others"


class Unit(str, Enum):
    KG = "kg"
    LITER = "liter"
    PIECE = "piece"
    PACKET = "packet"
    DOZEN = "dozen"


class QualityGrade(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    ONLINE = "online"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
