# streetmart/api/orders.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlmodel import Session

from ..database import get_session
from ..models.enums import Role
from ..models.users import User
from ..schemas import CartCheckoutRequest, PlaceOrderRequest, StatusUpdateRequest
from ..services import ledger, order_state, placement
from ..services.identity import ensure_role
from .deps import get_current_user

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("/place", status_code=201)
def place_order(
    body: PlaceOrderRequest,
    request: Request,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    order = placement.place_order(
        session,
        user,
        body.supplier_id,
        body.items,
        body.delivery_address,
        payment_method=body.payment_method,
        settings=request.app.state.settings,
    )
    return {"message": "Order placed successfully", "order": order}


@router.post("/cart", status_code=201)
def checkout_cart(
    body: CartCheckoutRequest,
    request: Request,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """
    Split a multi-supplier cart into one order per supplier.

    Groups succeed or fail independently; when every group fails, the first
    failure is raised as the response error.
    """
    result = placement.place_cart(
        session,
        user,
        body.items,
        body.delivery_address,
        payment_method=body.payment_method,
        settings=request.app.state.settings,
    )
    if not result.orders and result.failures:
        raise result.failures[0].error
    return result.to_dict()


@router.get("/vendor/my-orders")
def vendor_orders(
    request: Request,
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_role(user, Role.VENDOR)
    limit = limit or request.app.state.settings.default_page_size
    return ledger.list_orders(session, user, status=status, page=page, limit=limit)


@router.get("/supplier/my-orders")
def supplier_orders(
    request: Request,
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_role(user, Role.SUPPLIER)
    limit = limit or request.app.state.settings.default_page_size
    return ledger.list_orders(session, user, status=status, page=page, limit=limit)


@router.patch("/{order_id}/status")
def update_status(
    order_id: int,
    body: StatusUpdateRequest,
    request: Request,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    order = order_state.transition(
        session,
        order_id,
        user,
        body.status,
        notes=body.supplier_notes,
        eta=body.estimated_delivery_time,
        settings=request.app.state.settings,
    )
    return {"message": "Order status updated successfully", "order": order}


@router.get("/{order_id}")
def get_order(
    order_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return ledger.get_order(session, order_id, user)
