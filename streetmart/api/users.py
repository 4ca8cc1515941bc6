# streetmart/api/users.py

from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_session
from ..models.users import User
from ..services.identity import get_user, public_profile
from .deps import get_current_user

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return public_profile(user)


@router.get("/{user_id}")
def get_profile(user_id: int, session: Session = Depends(get_session)):
    """
    Public profile. For suppliers this carries the denormalized
    rating / total_ratings maintained by the rating aggregator.
    """
    return public_profile(get_user(session, user_id))
