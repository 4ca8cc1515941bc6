from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from conftest import advance, deliver, make_material, place, stock_of
from streetmart.errors import (
    AuthorizationError,
    IllegalTransitionError,
    NotFoundError,
    ValidationError,
)
from streetmart.models import Event, Order, OrderStatus, User
from streetmart.services import order_state
from streetmart.utils.helpers import as_utc, utcnow


ALL_STATUSES = [s.value for s in OrderStatus]


@pytest.fixture
def order(session, vendor, supplier, settings):
    m1 = make_material(session, supplier, "Onions", unit_price=20, stock=10)
    return place(session, vendor, supplier, (m1, 2), settings=settings)


def test_transition_table():
    assert order_state.allowed_transitions("pending") == {
        OrderStatus.CONFIRMED,
        OrderStatus.CANCELLED,
    }
    assert order_state.allowed_transitions("confirmed") == {
        OrderStatus.OUT_FOR_DELIVERY,
        OrderStatus.CANCELLED,
    }
    assert order_state.allowed_transitions("out_for_delivery") == {OrderStatus.DELIVERED}
    assert order_state.allowed_transitions("delivered") == set()
    assert order_state.allowed_transitions("cancelled") == set()
    assert order_state.TERMINAL_STATES == {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


@pytest.mark.parametrize("target", ALL_STATUSES)
def test_from_pending_only_confirm_or_cancel(session, supplier, order, target):
    if target in ("confirmed", "cancelled"):
        updated = order_state.transition(session, order["id"], supplier, target)
        assert updated["status"] == target
    else:
        with pytest.raises(IllegalTransitionError) as exc:
            order_state.transition(session, order["id"], supplier, target)
        assert exc.value.current == "pending"
        assert exc.value.requested == target
        assert "Cannot transition from pending to" in exc.value.message


@pytest.mark.parametrize("terminal", ["delivered", "cancelled"])
def test_terminal_states_allow_nothing(session, supplier, order, terminal):
    if terminal == "delivered":
        deliver(session, supplier, order["id"])
    else:
        advance(session, supplier, order["id"], "cancelled")

    for target in ALL_STATUSES:
        with pytest.raises(IllegalTransitionError):
            order_state.transition(session, order["id"], supplier, target)


def test_confirmed_to_out_for_delivery(session, supplier, order):
    advance(session, supplier, order["id"], "confirmed")
    updated = order_state.transition(session, order["id"], supplier, "out_for_delivery")
    assert updated["status"] == "out_for_delivery"


def test_vendor_cannot_transition(session, vendor, supplier, order):
    advance(session, supplier, order["id"], "confirmed")
    with pytest.raises(AuthorizationError):
        order_state.transition(session, order["id"], vendor, "out_for_delivery")
    assert session.get(Order, order["id"]).status == "confirmed"


def test_foreign_supplier_sees_not_found(session, other_supplier, order):
    with pytest.raises(NotFoundError) as exc:
        order_state.transition(session, order["id"], other_supplier, "confirmed")
    assert "not found or unauthorized" in exc.value.message


def test_unknown_order(session, supplier):
    with pytest.raises(NotFoundError):
        order_state.transition(session, 9999, supplier, "confirmed")


def test_unknown_status(session, supplier, order):
    with pytest.raises(ValidationError):
        order_state.transition(session, order["id"], supplier, "shipped")


def test_notes_eta_and_delivery_stamp(session, supplier, order):
    eta = datetime(2030, 1, 1, 18, 30, tzinfo=timezone.utc)
    updated = order_state.transition(
        session, order["id"], supplier, "confirmed", notes="Packed by 5pm", eta=eta
    )
    assert updated["supplier_notes"] == "Packed by 5pm"
    assert as_utc(updated["estimated_delivery_time"]) == eta
    assert updated["actual_delivery_time"] is None

    before = utcnow() - timedelta(seconds=1)
    updated = advance(session, supplier, order["id"], "out_for_delivery", "delivered")
    assert as_utc(updated["actual_delivery_time"]) >= before
    assert as_utc(updated["updated_at"]) >= before
    assert updated["supplier_notes"] == "Packed by 5pm"


def test_naive_eta_is_taken_as_utc(session, supplier, order):
    updated = order_state.transition(
        session, order["id"], supplier, "confirmed", eta=datetime(2030, 1, 1, 12, 0)
    )
    assert as_utc(updated["estimated_delivery_time"]) == datetime(
        2030, 1, 1, 12, 0, tzinfo=timezone.utc
    )


def test_cancel_does_not_restock_by_default(session, supplier, order, settings):
    material_id = order["items"][0]["material_id"]
    assert stock_of(session, material_id) == 8
    advance(session, supplier, order["id"], "cancelled", settings=settings)
    assert stock_of(session, material_id) == 8


def test_cancel_restocks_when_enabled(session, supplier, order, settings):
    settings.restock_on_cancel = True
    material_id = order["items"][0]["material_id"]
    advance(session, supplier, order["id"], "confirmed", "cancelled", settings=settings)
    assert stock_of(session, material_id) == 10
    restored = session.exec(select(Event).where(Event.event_type == "STOCK_RESTORED")).all()
    assert len(restored) == 1


def test_stale_status_loses_the_race(db, session, supplier, order):
    order_id = order["id"]
    with db.session() as a, db.session() as b:
        a_supplier = a.get(User, supplier.id)
        b_supplier = b.get(User, supplier.id)
        # b has already read the order as pending
        assert b.get(Order, order_id).status == "pending"

        order_state.transition(a, order_id, a_supplier, "confirmed")

        with pytest.raises(IllegalTransitionError) as exc:
            order_state.transition(b, order_id, b_supplier, "confirmed")
        assert exc.value.current == "confirmed"

    session.expire_all()
    assert session.get(Order, order_id).status == "confirmed"
    changes = session.exec(
        select(Event).where(Event.event_type == "ORDER_STATUS_CHANGED")
    ).all()
    assert len(changes) == 1


def test_stale_read_does_not_block_a_legal_move(db, session, supplier, order):
    order_id = order["id"]
    with db.session() as a, db.session() as b:
        a_supplier = a.get(User, supplier.id)
        b_supplier = b.get(User, supplier.id)
        assert b.get(Order, order_id).status == "pending"

        order_state.transition(a, order_id, a_supplier, "confirmed")

        # b still caches "pending", but confirmed -> out_for_delivery is legal
        updated = order_state.transition(b, order_id, b_supplier, "out_for_delivery")
        assert updated["status"] == "out_for_delivery"


def test_stale_read_reports_the_current_status(db, session, supplier, order):
    order_id = order["id"]
    with db.session() as a, db.session() as b:
        a_supplier = a.get(User, supplier.id)
        b_supplier = b.get(User, supplier.id)
        assert b.get(Order, order_id).status == "pending"

        deliver(a, a_supplier, order_id)

        with pytest.raises(IllegalTransitionError) as exc:
            order_state.transition(b, order_id, b_supplier, "confirmed")
        assert exc.value.current == "delivered"
        assert exc.value.message == "Cannot transition from delivered to confirmed"
