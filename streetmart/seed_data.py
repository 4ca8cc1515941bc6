from sqlmodel import Session, select

from .models.catalog import Material
from .models.enums import Category, QualityGrade, Role, Unit
from .models.users import User


def seed_demo_data(session: Session) -> None:
    """
    Seeds demo suppliers, vendors and materials.
    Skips seeding if the User table is non-empty.
    """
    # Skip if already seeded
    if session.exec(select(User)).first():
        return

    # === Suppliers ===
    suppliers = [
        User(name="Ravi Kumar", role=Role.SUPPLIER.value, phone="9000000001",
             address="Azadpur Mandi, Delhi", pincode="110033", lat=28.7100, lng=77.1700,
             business_name="Ravi Fresh Produce", api_token="demo-supplier-ravi"),
        User(name="Meena Shah", role=Role.SUPPLIER.value, phone="9000000002",
             address="Crawford Market, Mumbai", pincode="400001", lat=18.9477, lng=72.8342,
             business_name="Shah Dairy & Oils", api_token="demo-supplier-meena"),
    ]
    session.add_all(suppliers)

    # === Vendors ===
    vendors = [
        User(name="Chotu Chaat Corner", role=Role.VENDOR.value, phone="9100000001",
             address="Chandni Chowk, Delhi", pincode="110006", lat=28.6506, lng=77.2303,
             api_token="demo-vendor-chotu"),
        User(name="Vada Pav Express", role=Role.VENDOR.value, phone="9100000002",
             address="Dadar West, Mumbai", pincode="400028", lat=19.0178, lng=72.8478,
             api_token="demo-vendor-vadapav"),
    ]
    session.add_all(vendors)
    session.flush()

    ravi, meena = suppliers

    # === Materials ===
    materials = [
        Material(supplier_id=ravi.id, name="Onions", category=Category.VEGETABLES.value,
                 unit_price=30, unit=Unit.KG.value, stock=500, min_order_quantity=5,
                 delivery_radius_km=25, quality_grade=QualityGrade.A.value),
        Material(supplier_id=ravi.id, name="Potatoes", category=Category.VEGETABLES.value,
                 unit_price=20, unit=Unit.KG.value, stock=800, min_order_quantity=5,
                 delivery_radius_km=25, quality_grade=QualityGrade.B.value),
        Material(supplier_id=ravi.id, name="Green Chillies", category=Category.VEGETABLES.value,
                 unit_price=60, unit=Unit.KG.value, stock=80, delivery_radius_km=25,
                 quality_grade=QualityGrade.A.value),
        Material(supplier_id=ravi.id, name="Chaat Masala", category=Category.SPICES.value,
                 unit_price=45, unit=Unit.PACKET.value, stock=200, delivery_radius_km=40,
                 quality_grade=QualityGrade.B.value),
        Material(supplier_id=meena.id, name="Paneer", category=Category.DAIRY.value,
                 unit_price=320, unit=Unit.KG.value, stock=40, min_order_quantity=2,
                 delivery_radius_km=15, quality_grade=QualityGrade.A.value),
        Material(supplier_id=meena.id, name="Groundnut Oil", category=Category.OILS.value,
                 unit_price=180, unit=Unit.LITER.value, stock=150, delivery_radius_km=30,
                 quality_grade=QualityGrade.B.value),
        Material(supplier_id=meena.id, name="Pav Buns", category=Category.GRAINS.value,
                 unit_price=36, unit=Unit.DOZEN.value, stock=120, delivery_radius_km=10,
                 quality_grade=QualityGrade.B.value),
        Material(supplier_id=meena.id, name="Eggs", category=Category.OTHERS.value,
                 unit_price=84, unit=Unit.DOZEN.value, stock=0, is_available=False,
                 delivery_radius_km=10, quality_grade=QualityGrade.C.value),
    ]
    session.add_all(materials)

    session.commit()
