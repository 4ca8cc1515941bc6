import json
import logging
import uuid
from typing import Any, Dict, Optional

from sqlmodel import Session, select

from ..models.events import Event
from ..utils.helpers import utcnow

logger = logging.getLogger(__name__)


def log_event(
    session: Session,
    event_type: str,
    description: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> Event:
    """
    Append an audit row to the Event table. The row joins the caller's
    transaction, so it is committed or rolled back together with the action.
    """
    eid = f"EVT-{uuid.uuid4().hex}"
    e = Event(
        event_id=eid,
        event_type=event_type,
        description=description,
        event_date=utcnow(),
        metadata_json=json.dumps(metadata) if metadata else None,
    )
    session.add(e)
    logger.info("%s: %s", event_type, description)
    return e


def recent_events(session: Session, limit: int = 100):
    return session.exec(
        select(Event).order_by(Event.event_date.desc()).limit(limit)
    ).all()
