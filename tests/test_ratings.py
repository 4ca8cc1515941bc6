import pytest
from sqlmodel import select

from conftest import advance, deliver, make_material, make_user, place
from streetmart.errors import (
    AuthorizationError,
    DuplicateReviewError,
    NotFoundError,
    OrderNotEligibleError,
    ValidationError,
)
from streetmart.models import Review, Role, User
from streetmart.services import ratings


@pytest.fixture
def material(session, supplier):
    return make_material(session, supplier, "Onions", unit_price=20, stock=100)


def delivered_order(session, vendor, supplier, material):
    order = place(session, vendor, supplier, (material, 1))
    deliver(session, supplier, order["id"])
    return order


def test_average_of_five_three_four(session, vendor, supplier, material):
    for rating in (5, 3, 4):
        order = delivered_order(session, vendor, supplier, material)
        ratings.add_review(session, vendor, order["id"], rating)

    refreshed = session.get(User, supplier.id)
    session.refresh(refreshed)
    assert refreshed.rating == 4.0
    assert refreshed.total_ratings == 3


def test_average_rounds_half_up(session, vendor, supplier, material):
    for rating in (4, 4, 5, 4):  # mean 4.25
        order = delivered_order(session, vendor, supplier, material)
        ratings.add_review(session, vendor, order["id"], rating)
    assert ratings.supplier_rating(session, supplier.id) == (4.3, 4)


def test_review_requires_delivered_status(session, vendor, supplier, material):
    order = place(session, vendor, supplier, (material, 1))
    for status in ("confirmed", "out_for_delivery"):
        with pytest.raises(OrderNotEligibleError):
            ratings.add_review(session, vendor, order["id"], 5)
        advance(session, supplier, order["id"], status)

    with pytest.raises(OrderNotEligibleError):
        ratings.add_review(session, vendor, order["id"], 5)

    advance(session, supplier, order["id"], "delivered")
    review = ratings.add_review(session, vendor, order["id"], 5, comment="Fresh stock")
    assert review["rating"] == 5
    assert review["comment"] == "Fresh stock"


def test_cancelled_order_cannot_be_reviewed(session, vendor, supplier, material):
    order = place(session, vendor, supplier, (material, 1))
    advance(session, supplier, order["id"], "cancelled")
    with pytest.raises(OrderNotEligibleError):
        ratings.add_review(session, vendor, order["id"], 4)


def test_second_review_for_same_order_conflicts(session, vendor, supplier, material):
    order = delivered_order(session, vendor, supplier, material)
    ratings.add_review(session, vendor, order["id"], 5)

    with pytest.raises(DuplicateReviewError):
        ratings.add_review(session, vendor, order["id"], 1)

    assert len(session.exec(select(Review)).all()) == 1
    supplier = session.get(User, supplier.id)
    session.refresh(supplier)
    assert supplier.rating == 5.0
    assert supplier.total_ratings == 1


def test_only_the_orders_vendor_can_review(session, vendor, other_vendor, supplier, material):
    order = delivered_order(session, vendor, supplier, material)
    with pytest.raises(OrderNotEligibleError):
        ratings.add_review(session, other_vendor, order["id"], 5)
    with pytest.raises(AuthorizationError):
        ratings.add_review(session, supplier, order["id"], 5)


@pytest.mark.parametrize("rating", [0, 6, None])
def test_rating_bounds(session, vendor, supplier, material, rating):
    order = delivered_order(session, vendor, supplier, material)
    with pytest.raises(ValidationError):
        ratings.add_review(session, vendor, order["id"], rating)


def test_category_ratings_and_bounds(session, vendor, supplier, material):
    order = delivered_order(session, vendor, supplier, material)
    with pytest.raises(ValidationError):
        ratings.add_review(session, vendor, order["id"], 4, categories={"quality": 9})

    review = ratings.add_review(
        session, vendor, order["id"], 4, categories={"quality": 5, "delivery": 3}
    )
    assert review["categories"] == {"quality": 5, "delivery": 3, "service": None}


def test_supplier_id_must_match_order(session, vendor, supplier, other_supplier, material):
    order = delivered_order(session, vendor, supplier, material)
    with pytest.raises(ValidationError):
        ratings.add_review(session, vendor, order["id"], 4, supplier_id=other_supplier.id)
    review = ratings.add_review(session, vendor, order["id"], 4, supplier_id=supplier.id)
    assert review["supplier_id"] == supplier.id


def test_ratings_are_per_supplier(session, vendor, supplier, other_supplier, material):
    other_material = make_material(session, other_supplier, "Oil", stock=10)
    ratings.add_review(session, vendor, delivered_order(session, vendor, supplier, material)["id"], 2)
    ratings.add_review(
        session, vendor, delivered_order(session, vendor, other_supplier, other_material)["id"], 5
    )
    assert ratings.supplier_rating(session, supplier.id) == (2.0, 1)
    assert ratings.supplier_rating(session, other_supplier.id) == (5.0, 1)


def test_list_supplier_reviews(session, vendor, other_vendor, supplier, material):
    for who, rating in ((vendor, 5), (other_vendor, 3), (vendor, 5)):
        order = delivered_order(session, who, supplier, material)
        ratings.add_review(session, who, order["id"], rating)

    listing = ratings.list_supplier_reviews(session, supplier.id, page=1, limit=2)
    assert listing["total"] == 3
    assert listing["total_pages"] == 2
    assert len(listing["reviews"]) == 2
    assert listing["average_rating"] == 4.3
    assert listing["total_reviews"] == 3
    assert listing["rating_distribution"] == {1: 0, 2: 0, 3: 1, 4: 0, 5: 2}
    assert listing["reviews"][0]["vendor"]["name"] in ("Chotu", "Pappu")


def test_list_reviews_for_supplier_without_reviews(session, supplier):
    listing = ratings.list_supplier_reviews(session, supplier.id)
    assert listing["average_rating"] == 0.0
    assert listing["total_reviews"] == 0
    assert listing["reviews"] == []


def test_list_reviews_unknown_supplier(session, vendor):
    with pytest.raises(NotFoundError):
        ratings.list_supplier_reviews(session, vendor.id)


def test_vendor_reviews(session, vendor, supplier, material):
    order = delivered_order(session, vendor, supplier, material)
    ratings.add_review(session, vendor, order["id"], 4)
    mine = ratings.list_vendor_reviews(session, vendor)
    assert len(mine) == 1
    assert mine[0]["order"]["total_amount"] == order["total_amount"]
    assert mine[0]["supplier"]["business_name"] == "Ravi Traders"


def test_new_supplier_starts_unrated(session):
    fresh = make_user(session, Role.SUPPLIER, name="New")
    assert fresh.rating == 0.0
    assert fresh.total_ratings == 0
