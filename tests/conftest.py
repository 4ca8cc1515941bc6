import itertools

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from streetmart.config import Settings
from streetmart.database import Database
from streetmart.main import create_app
from streetmart.models import Material, Role, User
from streetmart.services import order_state, placement

_tokens = itertools.count(1)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        db_timeout_seconds=30,
        seed_demo_data=False,
        restock_on_cancel=False,
    )


@pytest.fixture
def db(settings):
    database = Database(settings.database_url, timeout=settings.db_timeout_seconds)
    database.open()
    yield database
    database.close()


@pytest.fixture
def session(db):
    with db.session() as s:
        yield s


def make_user(session: Session, role: Role, name: str = "user", **kw) -> User:
    user = User(
        name=name,
        role=role.value,
        phone=kw.pop("phone", "9000000000"),
        address=kw.pop("address", "Market Road"),
        api_token=kw.pop("api_token", f"token-{next(_tokens)}"),
        business_name=kw.pop("business_name", f"{name} Traders" if role is Role.SUPPLIER else None),
        **kw,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_material(
    session: Session,
    supplier: User,
    name: str = "Onions",
    unit_price: float = 20,
    stock: int = 10,
    **kw,
) -> Material:
    material = Material(
        supplier_id=supplier.id,
        name=name,
        category=kw.pop("category", "vegetables"),
        unit_price=unit_price,
        unit=kw.pop("unit", "kg"),
        stock=stock,
        delivery_radius_km=kw.pop("delivery_radius_km", 10),
        **kw,
    )
    session.add(material)
    session.commit()
    session.refresh(material)
    return material


def stock_of(session: Session, material_id: int) -> int:
    material = session.get(Material, material_id)
    session.refresh(material)
    return material.stock


def place(session, vendor, supplier, *lines, settings=None, address="12 Chandni Chowk"):
    items = [{"material_id": m.id, "quantity": q} for m, q in lines]
    return placement.place_order(session, vendor, supplier.id, items, address, settings=settings)


def advance(session, supplier, order_id, *statuses, settings=None):
    order = None
    for status in statuses:
        order = order_state.transition(session, order_id, supplier, status, settings=settings)
    return order


def deliver(session, supplier, order_id, settings=None):
    return advance(
        session,
        supplier,
        order_id,
        "confirmed",
        "out_for_delivery",
        "delivered",
        settings=settings,
    )


@pytest.fixture
def supplier(session):
    return make_user(session, Role.SUPPLIER, name="Ravi", lat=28.61, lng=77.21)


@pytest.fixture
def other_supplier(session):
    return make_user(session, Role.SUPPLIER, name="Meena", lat=19.07, lng=72.87)


@pytest.fixture
def vendor(session):
    return make_user(session, Role.VENDOR, name="Chotu", phone="9111111111")


@pytest.fixture
def other_vendor(session):
    return make_user(session, Role.VENDOR, name="Pappu", phone="9222222222")


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def api_session(client):
    with client.app.state.db.session() as s:
        yield s


def auth(user: User) -> dict:
    return {"Authorization": f"Bearer {user.api_token}"}
