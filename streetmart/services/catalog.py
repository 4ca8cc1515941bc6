# streetmart/services/catalog.py

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_, update
from sqlmodel import Session, select

from ..errors import NotFoundError, ValidationError
from ..models.catalog import Material
from ..models.enums import Role
from ..models.users import User
from ..schemas import MaterialCreate, MaterialUpdate
from ..utils.helpers import haversine_km, parse_location, total_pages, utcnow
from .event_logger import log_event
from .identity import ensure_role, user_summary

logger = logging.getLogger(__name__)


def get_material(session: Session, material_id: int) -> Material:
    material = session.get(Material, material_id)
    if not material:
        raise NotFoundError(f"Material {material_id} not found")
    return material


def serialize_material(material: Material, supplier: Optional[User] = None) -> dict:
    data = material.model_dump()
    if supplier is not None:
        data["supplier"] = user_summary(supplier)
        data["supplier"]["location"] = {"lat": supplier.lat, "lng": supplier.lng}
    return data


def _within_radius(material: Material, supplier: User, lat: float, lng: float) -> bool:
    if supplier.lat is None or supplier.lng is None:
        return False
    return haversine_km(lat, lng, supplier.lat, supplier.lng) <= material.delivery_radius_km


def list_materials(
    session: Session,
    category: Optional[str] = None,
    search: Optional[str] = None,
    location: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    """
    Available materials, newest first, with a supplier summary.

    `location` is "lat,lng"; when given, only materials whose supplier lies
    within the material's delivery radius are returned, and pagination is
    applied after that filter.
    """
    try:
        point = parse_location(location)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    stmt = (
        select(Material, User)
        .join(User, User.id == Material.supplier_id)
        .where(Material.is_available == True)  # noqa: E712
    )
    if category and category != "all":
        stmt = stmt.where(Material.category == category)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            or_(Material.name.ilike(pattern), Material.description.ilike(pattern))
        )
    stmt = stmt.order_by(Material.created_at.desc(), Material.id.desc())

    offset = (page - 1) * limit
    if point is None:
        total = session.exec(
            select(func.count()).select_from(stmt.subquery())
        ).one()
        rows = session.exec(stmt.offset(offset).limit(limit)).all()
    else:
        lat, lng = point
        matched = [
            (m, s) for m, s in session.exec(stmt).all() if _within_radius(m, s, lat, lng)
        ]
        total = len(matched)
        rows = matched[offset:offset + limit]

    return {
        "materials": [serialize_material(m, s) for m, s in rows],
        "total": total,
        "total_pages": total_pages(total, limit),
        "current_page": page,
    }


def get_material_detail(session: Session, material_id: int) -> dict:
    material = get_material(session, material_id)
    return serialize_material(material, session.get(User, material.supplier_id))


def list_supplier_materials(session: Session, supplier: User) -> List[Material]:
    ensure_role(supplier, Role.SUPPLIER)
    return session.exec(
        select(Material)
        .where(Material.supplier_id == supplier.id)
        .order_by(Material.created_at.desc(), Material.id.desc())
    ).all()


def _owned_material(session: Session, supplier: User, material_id: int) -> Material:
    material = session.get(Material, material_id)
    if not material or material.supplier_id != supplier.id:
        raise NotFoundError("Material not found or unauthorized")
    return material


def create_material(session: Session, supplier: User, data: MaterialCreate) -> Material:
    ensure_role(supplier, Role.SUPPLIER)
    material = Material(supplier_id=supplier.id, **data.model_dump(mode="json"))
    session.add(material)
    session.flush()
    log_event(
        session,
        "MATERIAL_CREATED",
        f"Supplier {supplier.id} listed {material.name} (stock {material.stock})",
    )
    session.commit()
    session.refresh(material)
    return material


def update_material(
    session: Session, supplier: User, material_id: int, data: MaterialUpdate
) -> Material:
    ensure_role(supplier, Role.SUPPLIER)
    material = _owned_material(session, supplier, material_id)

    changes = data.model_dump(mode="json", exclude_unset=True)
    for key, value in changes.items():
        if value is None:
            continue
        setattr(material, key, value)
    material.updated_at = utcnow()
    session.add(material)
    log_event(
        session,
        "MATERIAL_UPDATED",
        f"Supplier {supplier.id} updated {material.name}: {sorted(changes)}",
    )
    session.commit()
    session.refresh(material)
    return material


def delete_material(session: Session, supplier: User, material_id: int) -> None:
    ensure_role(supplier, Role.SUPPLIER)
    material = _owned_material(session, supplier, material_id)
    session.delete(material)
    log_event(
        session,
        "MATERIAL_DELETED",
        f"Supplier {supplier.id} deleted {material.name}",
    )
    session.commit()


def decrement_stock(session: Session, material_id: int, quantity: int) -> bool:
    """
    Conditional decrement in one statement:
        stock = stock - q WHERE id = ? AND stock >= q AND is_available

    Returns False when no row matched (missing, unavailable or short).
    Does not commit.
    """
    result = session.exec(
        update(Material)
        .where(
            Material.id == material_id,
            Material.stock >= quantity,
            Material.is_available == True,  # noqa: E712
        )
        .values(stock=Material.stock - quantity, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def restore_stock(session: Session, quantities: Dict[int, int], reference: str) -> None:
    """
    Add quantities back to the catalog. Materials deleted since the order
    was placed are skipped. Does not commit.
    """
    for material_id, quantity in quantities.items():
        result = session.exec(
            update(Material)
            .where(Material.id == material_id)
            .values(stock=Material.stock + quantity, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount:
            log_event(
                session,
                "STOCK_RESTORED",
                f"Restored {quantity} of material {material_id} for {reference}",
            )


def current_stock(session: Session, material_ids: Iterable[int]) -> Dict[int, int]:
    ids = list(material_ids)
    if not ids:
        return {}
    rows = session.exec(
        select(Material.id, Material.stock).where(Material.id.in_(ids))
    ).all()
    return {mid: stock for mid, stock in rows}
