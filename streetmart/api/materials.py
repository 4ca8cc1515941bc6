# streetmart/api/materials.py

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from ..database import get_session
from ..models.users import User
from ..schemas import MaterialCreate, MaterialUpdate
from ..services import catalog
from .deps import get_current_user

router = APIRouter(prefix="/api/materials", tags=["materials"])


@router.get("")
def list_materials(
    category: Optional[str] = None,
    search: Optional[str] = None,
    location: Optional[str] = Query(None, description="lat,lng"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
):
    return catalog.list_materials(
        session, category=category, search=search, location=location, page=page, limit=limit
    )


@router.get("/supplier/my-materials")
def my_materials(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return catalog.list_supplier_materials(session, user)


@router.get("/{material_id}")
def get_material(material_id: int, session: Session = Depends(get_session)):
    return catalog.get_material_detail(session, material_id)


@router.post("", status_code=201)
def add_material(
    body: MaterialCreate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    material = catalog.create_material(session, user, body)
    return {
        "message": "Material added successfully",
        "material": catalog.serialize_material(material, user),
    }


@router.put("/{material_id}")
def update_material(
    material_id: int,
    body: MaterialUpdate,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    material = catalog.update_material(session, user, material_id, body)
    return {
        "message": "Material updated successfully",
        "material": catalog.serialize_material(material, user),
    }


@router.delete("/{material_id}")
def delete_material(
    material_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    catalog.delete_material(session, user, material_id)
    return {"message": "Material deleted successfully"}
