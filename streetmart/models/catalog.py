from typing import Optional
from datetime import datetime
from sqlalchemy import CheckConstraint
from sqlmodel import SQLModel, Field

from ..utils.helpers import utcnow


class Material(SQLModel, table=True):
    __table_args__ = (CheckConstraint("stock >= 0", name="ck_material_stock_nonneg"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    supplier_id: int = Field(foreign_key="user.id", index=True)
    name: str = Field(max_length=100)
    category: str = Field(index=True)  # Category value
    unit_price: float = Field(ge=0)
    unit: str  # Unit value
    stock: int = Field(ge=0)
    min_order_quantity: int = Field(default=1, ge=1)
    image: Optional[str] = None
    description: Optional[str] = Field(default=None, max_length=500)
    delivery_radius_km: float = Field(ge=1, le=100)
    is_available: bool = True
    quality_grade: str = "B"  # QualityGrade value
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
