# streetmart/services/ratings.py
"""
Reviews and the denormalized supplier rating.

A review is accepted once per delivered order, from that order's vendor.
The supplier's average and count are recomputed from every review of that
supplier in the same transaction as the insert.
"""

import logging
from statistics import mean
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..errors import (
    DuplicateReviewError,
    NotFoundError,
    OrderNotEligibleError,
    ValidationError,
    store_errors,
)
from ..models.enums import OrderStatus, Role
from ..models.orders import Order
from ..models.reviews import Review
from ..models.users import User
from ..utils.helpers import round_half_up, total_pages
from .event_logger import log_event
from .identity import ensure_role, role_of, user_summary

logger = logging.getLogger(__name__)


def serialize_review(
    review: Review,
    vendor: Optional[User] = None,
    supplier: Optional[User] = None,
) -> dict:
    data = review.model_dump(
        exclude={"quality_rating", "delivery_rating", "service_rating"}
    )
    data["categories"] = {
        "quality": review.quality_rating,
        "delivery": review.delivery_rating,
        "service": review.service_rating,
    }
    if vendor is not None:
        data["vendor"] = {"id": vendor.id, "name": vendor.name}
    if supplier is not None:
        data["supplier"] = {
            "id": supplier.id,
            "name": supplier.name,
            "business_name": supplier.business_name,
        }
    return data


def _category(categories, key: str) -> Optional[int]:
    if categories is None:
        return None
    if isinstance(categories, dict):
        value = categories.get(key)
    else:
        value = getattr(categories, key, None)
    if value is not None and not 1 <= value <= 5:
        raise ValidationError(f"{key} rating must be between 1 and 5")
    return value


def supplier_rating(session: Session, supplier_id: int) -> tuple:
    """Full re-scan: (rounded average, count) over all of the supplier's reviews."""
    ratings = session.exec(
        select(Review.rating).where(Review.supplier_id == supplier_id)
    ).all()
    if not ratings:
        return 0.0, 0
    return round_half_up(mean(ratings), 1), len(ratings)


def update_supplier_rating(session: Session, supplier_id: int) -> User:
    supplier = session.get(User, supplier_id)
    if not supplier:
        raise NotFoundError(f"Supplier {supplier_id} not found")
    supplier.rating, supplier.total_ratings = supplier_rating(session, supplier_id)
    session.add(supplier)
    return supplier


def add_review(
    session: Session,
    vendor: User,
    order_id: int,
    rating: int,
    comment: Optional[str] = None,
    categories=None,
    supplier_id: Optional[int] = None,
) -> dict:
    """
    Record a review for a delivered order and refresh the supplier rating.

    Raises OrderNotEligibleError when the order is missing, belongs to
    another vendor or is not delivered; DuplicateReviewError when the order
    already has a review.
    """
    ensure_role(vendor, Role.VENDOR)
    if not order_id or rating is None:
        raise ValidationError("Order ID and rating are required")
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be an integer between 1 and 5")
    if comment is not None and len(comment) > 500:
        raise ValidationError("Comment must be at most 500 characters")

    with store_errors():
        order = session.get(Order, order_id)
        if (
            not order
            or order.vendor_id != vendor.id
            or order.status != OrderStatus.DELIVERED.value
        ):
            raise OrderNotEligibleError(order_id)
        if supplier_id is not None and supplier_id != order.supplier_id:
            raise ValidationError(
                f"Order {order_id} was not supplied by supplier {supplier_id}"
            )

        existing = session.exec(select(Review).where(Review.order_id == order_id)).first()
        if existing:
            raise DuplicateReviewError(order_id)

        review = Review(
            vendor_id=vendor.id,
            supplier_id=order.supplier_id,
            order_id=order_id,
            rating=rating,
            comment=comment,
            quality_rating=_category(categories, "quality"),
            delivery_rating=_category(categories, "delivery"),
            service_rating=_category(categories, "service"),
        )
        try:
            session.add(review)
            session.flush()
            supplier = update_supplier_rating(session, order.supplier_id)
            log_event(
                session,
                "REVIEW_ADDED",
                f"Vendor {vendor.id} rated supplier {supplier.id} {rating}/5 for order {order_id}; "
                f"now {supplier.rating} over {supplier.total_ratings}",
            )
            session.commit()
        except IntegrityError as e:
            # unique(order_id) caught a concurrent submission for the same order
            session.rollback()
            raise DuplicateReviewError(order_id) from e
        except Exception:
            session.rollback()
            raise

        session.refresh(review)
        return serialize_review(review, vendor=vendor, supplier=session.get(User, review.supplier_id))


def rating_distribution(ratings: List[int]) -> Dict[int, int]:
    dist = {i: 0 for i in range(1, 6)}
    for r in ratings:
        dist[r] += 1
    return dist


def list_supplier_reviews(
    session: Session, supplier_id: int, page: int = 1, limit: int = 10
) -> dict:
    supplier = session.get(User, supplier_id)
    if not supplier or role_of(supplier) is not Role.SUPPLIER:
        raise NotFoundError(f"Supplier {supplier_id} not found")

    base = select(Review).where(Review.supplier_id == supplier_id)
    total = session.exec(select(func.count()).select_from(base.subquery())).one()
    reviews = session.exec(
        base.order_by(Review.created_at.desc(), Review.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    ratings = session.exec(
        select(Review.rating).where(Review.supplier_id == supplier_id)
    ).all()
    vendor_ids = {r.vendor_id for r in reviews}
    vendors = (
        {u.id: u for u in session.exec(select(User).where(User.id.in_(vendor_ids))).all()}
        if vendor_ids
        else {}
    )

    return {
        "supplier": user_summary(supplier),
        "reviews": [serialize_review(r, vendor=vendors.get(r.vendor_id)) for r in reviews],
        "total": total,
        "total_pages": total_pages(total, limit),
        "current_page": page,
        "average_rating": round_half_up(mean(ratings), 1) if ratings else 0.0,
        "total_reviews": len(ratings),
        "rating_distribution": rating_distribution(ratings),
    }


def list_vendor_reviews(session: Session, vendor: User) -> List[dict]:
    ensure_role(vendor, Role.VENDOR)
    reviews = session.exec(
        select(Review)
        .where(Review.vendor_id == vendor.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    ).all()
    out = []
    for r in reviews:
        data = serialize_review(r, supplier=session.get(User, r.supplier_id))
        order = session.get(Order, r.order_id)
        data["order"] = (
            {"id": order.id, "total_amount": order.total_amount, "created_at": order.created_at}
            if order
            else None
        )
        out.append(data)
    return out
