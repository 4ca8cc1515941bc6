from typing import Optional
from datetime import datetime
from sqlmodel import SQLModel, Field

from ..utils.helpers import utcnow


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    role: str = Field(index=True)  # Role value: "vendor" | "supplier"
    phone: str
    address: str
    pincode: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    business_name: Optional[str] = None  # suppliers only
    api_token: str = Field(index=True, unique=True)
    is_active: bool = True

    # Denormalized by the rating aggregator
    rating: float = 0.0
    total_ratings: int = 0

    created_at: datetime = Field(default_factory=utcnow)
