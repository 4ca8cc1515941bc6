# streetmart/services/identity.py
"""
Identity lookup.

Tokens are issued elsewhere; this module only resolves a bearer token to a
user and checks roles.
"""

from typing import Optional

from sqlmodel import Session, select

from ..errors import AuthorizationError, NotFoundError
from ..models.enums import Role
from ..models.users import User


def resolve_token(session: Session, token: str) -> Optional[User]:
    return session.exec(
        select(User).where(User.api_token == token, User.is_active == True)  # noqa: E712
    ).first()


def role_of(user: User) -> Role:
    return Role(user.role)


def ensure_role(user: User, role: Role) -> None:
    if role_of(user) is not role:
        raise AuthorizationError(f"Access denied: requires {role.value} role")


def get_user(session: Session, user_id: int) -> User:
    user = session.get(User, user_id)
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


def user_summary(user: Optional[User]) -> Optional[dict]:
    """Public fields shown next to orders, materials and reviews."""
    if user is None:
        return None
    summary = {"id": user.id, "name": user.name, "phone": user.phone}
    role = role_of(user)
    if role is Role.SUPPLIER:
        summary.update(
            business_name=user.business_name,
            rating=user.rating,
            total_ratings=user.total_ratings,
        )
    elif role is Role.VENDOR:
        summary.update(address=user.address)
    return summary


def public_profile(user: User) -> dict:
    profile = user_summary(user)
    profile.update(
        role=user.role,
        address=user.address,
        location={"lat": user.lat, "lng": user.lng},
    )
    return profile
