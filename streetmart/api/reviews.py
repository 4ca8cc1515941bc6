# streetmart/api/reviews.py

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..database import get_session
from ..models.users import User
from ..schemas import ReviewCreate
from ..services import ratings
from .deps import get_current_user

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.post("", status_code=201)
def add_review(
    body: ReviewCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    review = ratings.add_review(
        session,
        user,
        body.order_id,
        body.rating,
        comment=body.comment,
        categories=body.categories,
        supplier_id=body.supplier_id,
    )
    return {"message": "Review added successfully", "review": review}


@router.get("/supplier/{supplier_id}")
def supplier_reviews(
    supplier_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
):
    return ratings.list_supplier_reviews(session, supplier_id, page=page, limit=limit)


@router.get("/vendor/my-reviews")
def my_reviews(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return ratings.list_vendor_reviews(session, user)
