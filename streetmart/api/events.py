# streetmart/api/events.py

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..database import get_session
from ..models.users import User
from ..services.event_logger import recent_events
from .deps import get_current_user

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("")
def get_events(
    limit: int = Query(100, ge=1, le=1000),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Recent events from the Event table (used as event log).
    Requires a bearer token.
    """
    return recent_events(session, limit=limit)
