# streetmart/api/deps.py

from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from ..database import get_session
from ..models.users import User
from ..services.identity import resolve_token

bearer = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    session: Session = Depends(get_session),
) -> User:
    if credentials is None:
        raise HTTPException(status_code=401, detail="No token, authorization denied")
    user = resolve_token(session, credentials.credentials)
    if not user:
        raise HTTPException(status_code=401, detail="Token is not valid")
    return user
