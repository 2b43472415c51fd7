"""Shared fixtures for the marketplace tests: parties, listings and orders."""

from datetime import UTC, datetime

import pytest
from marketplace.order.placement import PlaceOrder
from marketplace.order.service import OrderLifecycle
from marketplace.parties.profile import Profile
from marketplace.parties.ranch import Ranch
from marketplace.shared.clock import FixedClock, set_clock
from marketplace.shared.locks import RowLocks, set_row_locks
from marketplace.stock.product import Product
from protean import current_domain

NOW = datetime(2025, 3, 14, 9, 30, tzinfo=UTC)


@pytest.fixture()
def clock():
    fixed = FixedClock(NOW)
    set_clock(fixed)
    return fixed


@pytest.fixture()
def row_locks():
    locks = RowLocks(timeout=5.0)
    set_row_locks(locks)
    return locks


@pytest.fixture()
def lifecycle(clock, row_locks):
    return OrderLifecycle()


@pytest.fixture()
def seller():
    profile = Profile(
        id="profile-seller",
        first_name="Rosa",
        middle_name="Elena",
        last_name="Quintero",
        ci_number="V-12345678",
        email="rosa@hatoelsol.example",
        phone="+58 414 555 0101",
    )
    current_domain.repository_for(Profile).add(profile)
    return profile


@pytest.fixture()
def buyer():
    profile = Profile(
        id="profile-buyer",
        first_name="Luis",
        last_name="Pernalete",
        ci_number="V-87654321",
        email="luis@example.com",
        address="Calle 5, Barinas",
    )
    current_domain.repository_for(Profile).add(profile)
    return profile


@pytest.fixture()
def ranch(seller):
    record = Ranch(
        id="ranch-1",
        profile_id=seller.id,
        name="Hato El Sol",
        legal_name="Agropecuaria El Sol C.A.",
        tax_id="J-40123456-7",
        address="Km 12 via Sabaneta, Barinas",
        phone="+58 273 555 0000",
    )
    current_domain.repository_for(Ranch).add(record)
    return record


@pytest.fixture()
def make_product(ranch):
    def _make(product_id="prod-1", quantity=5, price=850.0, **overrides):
        defaults = {
            "id": product_id,
            "ranch_id": ranch.id,
            "title": "Brahman heifers",
            "animal_type": "cattle",
            "breed": "Brahman",
            "price": price,
            "currency": "USD",
            "quantity": quantity,
        }
        defaults.update(overrides)
        product = Product(**defaults)
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def product(make_product):
    return make_product()


@pytest.fixture()
def place_order(clock, buyer):
    def _place(product, quantity=1, **overrides):
        fields = {
            "product_id": product.id,
            "buyer_profile_id": buyer.id,
            "quantity": quantity,
            "delivery_method": "buyer_transport",
            "pickup_location": "ranch",
        }
        fields.update(overrides)
        return current_domain.process(PlaceOrder(**fields), asynchronous=False)

    return _place
