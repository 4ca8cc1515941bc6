# streetmart/schemas.py
"""
Request bodies accepted by the API routers.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .models.enums import Category, OrderStatus, PaymentMethod, QualityGrade, Unit


class MaterialCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: Category
    unit_price: float = Field(..., ge=0)
    unit: Unit
    stock: int = Field(..., ge=0)
    min_order_quantity: int = Field(1, ge=1)
    image: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    delivery_radius_km: float = Field(..., ge=1, le=100)
    is_available: bool = True
    quality_grade: QualityGrade = QualityGrade.B


class MaterialUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[Category] = None
    unit_price: Optional[float] = Field(None, ge=0)
    unit: Optional[Unit] = None
    stock: Optional[int] = Field(None, ge=0)
    min_order_quantity: Optional[int] = Field(None, ge=1)
    image: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    delivery_radius_km: Optional[float] = Field(None, ge=1, le=100)
    is_available: Optional[bool] = None
    quality_grade: Optional[QualityGrade] = None


class CartLine(BaseModel):
    material_id: int
    quantity: int = Field(..., ge=1)


class PlaceOrderRequest(BaseModel):
    supplier_id: Optional[int] = None
    items: List[CartLine] = Field(default_factory=list)
    delivery_address: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH


class CartCheckoutRequest(BaseModel):
    items: List[CartLine] = Field(default_factory=list)
    delivery_address: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH


class StatusUpdateRequest(BaseModel):
    status: OrderStatus
    supplier_notes: Optional[str] = None
    estimated_delivery_time: Optional[datetime] = None


class ReviewCategories(BaseModel):
    quality: Optional[int] = Field(None, ge=1, le=5)
    delivery: Optional[int] = Field(None, ge=1, le=5)
    service: Optional[int] = Field(None, ge=1, le=5)


class ReviewCreate(BaseModel):
    order_id: int
    supplier_id: Optional[int] = None
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)
    categories: Optional[ReviewCategories] = None
