"""Shared BDD fixtures and step definitions for the order lifecycle."""

import pytest
from marketplace.order.order import Order
from marketplace.parties.ranch import Ranch
from marketplace.reviews.submission import SubmitOrderReview
from marketplace.stock.product import Product
from protean import current_domain
from pytest_bdd import given, parsers, then


@pytest.fixture()
def orders():
    """Order ids by the name the scenario gives them."""
    return {}


@pytest.fixture()
def outcome():
    """Container for the error raised by the last When step."""
    return {"exc": None}


def _order(orders, name):
    return current_domain.repository_for(Order).get(orders[name])


def _listing(listing):
    return current_domain.repository_for(Product).get(listing.id)


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a listing with {quantity:d} head available"), target_fixture="listing")
def _(make_product, quantity):
    return make_product(quantity=quantity)


@given(parsers.cfparse('a pending order "{name}" for {quantity:d} head'))
def _(listing, place_order, orders, name, quantity):
    orders[name] = place_order(listing, quantity=quantity)


@given(parsers.cfparse('order "{name}" was accepted'))
def _(lifecycle, orders, name):
    lifecycle.accept(orders[name])


@given(parsers.cfparse('order "{name}" was rejected'))
def _(lifecycle, orders, name):
    lifecycle.reject(orders[name])


@given(parsers.cfparse('order "{name}" was delivered'))
def _(lifecycle, orders, name):
    lifecycle.mark_delivered(orders[name])


@given(
    parsers.cfparse(
        'the buyer rated order "{name}" with {product_rating:d} stars for the animals'
        " and {seller_rating:d} for the seller"
    )
)
def _(buyer, orders, name, product_rating, seller_rating):
    command = SubmitOrderReview(
        order_id=orders[name],
        profile_id=buyer.id,
        product_rating=product_rating,
        seller_rating=seller_rating,
    )
    current_domain.process(command, asynchronous=False)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('order "{name}" is "{status}"'))
def _(orders, name, status):
    assert _order(orders, name).status == status


@then(parsers.cfparse('order "{name}" has a receipt'))
def _(orders, name):
    order = _order(orders, name)
    assert order.receipt_number.startswith("CORRALX-")
    assert order.receipt["receipt_number"] == order.receipt_number


@then(parsers.cfparse('the seller notes of order "{name}" read "{notes}"'))
def _(orders, name, notes):
    assert _order(orders, name).seller_notes == notes


@then(parsers.cfparse("the listing has {quantity:d} head available"))
def _(listing, quantity):
    assert _listing(listing).quantity == quantity


@then(parsers.cfparse('the listing is "{status}"'))
def _(listing, status):
    assert _listing(listing).status == status


@then(parsers.cfparse('the transition fails with "{kind}"'))
def _(outcome, kind):
    assert outcome["exc"] is not None
    assert outcome["exc"].kind == kind


@then(parsers.cfparse("the listing is rated {average:f} from {count:d} review"))
@then(parsers.cfparse("the listing is rated {average:f} from {count:d} reviews"))
def _(listing, average, count):
    stored = _listing(listing)
    assert (stored.average_rating, stored.review_count) == (average, count)


@then(parsers.cfparse("the ranch is rated {average:f} from {count:d} reviews"))
def _(ranch, average, count):
    stored = current_domain.repository_for(Ranch).get(ranch.id)
    assert (stored.average_rating, stored.review_count) == (average, count)
