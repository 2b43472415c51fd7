"""Integration tests for the Orders API endpoints."""

import inspect
import threading

import pytest
from fastapi.testclient import TestClient
from marketplace.api import create_app, order_router
from marketplace.order.order import Order, OrderStatus
from marketplace.stock.product import Product
from protean import current_domain


@pytest.fixture()
def client(lifecycle):
    return TestClient(create_app())


def _place(client, product, buyer, quantity=1, **extra):
    payload = {
        "product_id": product.id,
        "buyer_profile_id": buyer.id,
        "quantity": quantity,
        "delivery_method": "buyer_transport",
    }
    payload.update(extra)
    response = client.post("/orders", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["order_id"]


class TestPlaceOrderEndpoint:
    def test_place_order(self, client, product, buyer):
        order_id = _place(client, product, buyer, quantity=2)

        order = current_domain.repository_for(Order).get(order_id)
        assert order.status == OrderStatus.PENDING.value
        assert order.total_price == 1700.0

    def test_domain_validation_errors_are_structured(self, client, product, buyer):
        response = client.post(
            "/orders",
            json={
                "product_id": product.id,
                "buyer_profile_id": buyer.id,
                "quantity": 1,
                "delivery_method": "platform_delivery",
            },
        )
        assert response.status_code == 422
        body = response.json()
        assert body["kind"] == "validation_error"
        assert "delivery_address" in body["errors"]

    def test_request_schema_rejects_unknown_delivery_method(self, client, product, buyer):
        response = client.post(
            "/orders",
            json={
                "product_id": product.id,
                "buyer_profile_id": buyer.id,
                "quantity": 1,
                "delivery_method": "drone",
            },
        )
        assert response.status_code == 422


class TestLifecycleEndpoints:
    def test_full_lifecycle(self, client, product, buyer):
        order_id = _place(client, product, buyer, quantity=2)

        response = client.put(f"/orders/{order_id}/accept")
        assert response.status_code == 200
        assert response.json()["status"] == "accepted"
        assert response.json()["receipt_number"]

        assert client.put(f"/orders/{order_id}/deliver").json()["status"] == "delivered"
        assert client.put(f"/orders/{order_id}/complete").json()["status"] == "completed"
        assert current_domain.repository_for(Product).get(product.id).quantity == 3

    def test_reject_with_reason(self, client, product, buyer):
        order_id = _place(client, product, buyer)
        response = client.put(f"/orders/{order_id}/reject", json={"reason": "Herd already sold"})
        assert response.status_code == 200
        assert response.json()["seller_notes"] == "Reason: Herd already sold"

    def test_cancel_without_body(self, client, product, buyer):
        order_id = _place(client, product, buyer)
        response = client.put(f"/orders/{order_id}/cancel")
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

    def test_invalid_transition_is_a_conflict(self, client, product, buyer):
        order_id = _place(client, product, buyer)
        response = client.put(f"/orders/{order_id}/complete")

        assert response.status_code == 409
        body = response.json()
        assert body["kind"] == "invalid_transition"
        assert body["context"]["status"] == "pending"
        assert body["context"]["action"] == "complete"

    def test_insufficient_stock_is_a_conflict(self, client, make_product, buyer):
        product = make_product(quantity=4)
        first = _place(client, product, buyer, quantity=3)
        second = _place(client, product, buyer, quantity=3)
        client.put(f"/orders/{first}/accept")

        response = client.put(f"/orders/{second}/accept")

        assert response.status_code == 409
        body = response.json()
        assert body["kind"] == "insufficient_stock"
        assert body["context"]["available"] == 1
        assert body["context"]["requested"] == 3

    def test_accepting_for_a_delisted_product_is_a_conflict(self, client, product, buyer):
        order_id = _place(client, product, buyer)
        repo = current_domain.repository_for(Product)
        repo._dao.delete(repo.get(product.id))

        response = client.put(f"/orders/{order_id}/accept")

        assert response.status_code == 409
        body = response.json()
        assert body["kind"] == "insufficient_stock"
        assert body["context"]["available"] == 0

    def test_unknown_order(self, client):
        response = client.put("/orders/does-not-exist/accept")
        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"


class TestReadEndpoints:
    def test_get_order(self, client, product, buyer):
        order_id = _place(client, product, buyer)
        response = client.get(f"/orders/{order_id}")
        assert response.status_code == 200
        assert response.json()["order_id"] == order_id

    def test_list_orders_for_seller(self, client, product, buyer, seller):
        order_id = _place(client, product, buyer)
        response = client.get("/orders", params={"profile_id": seller.id, "role": "seller"})
        assert response.status_code == 200
        assert [order["order_id"] for order in response.json()] == [order_id]

    def test_receipt_before_acceptance(self, client, product, buyer):
        order_id = _place(client, product, buyer)
        response = client.get(f"/orders/{order_id}/receipt")
        assert response.status_code == 409
        assert response.json()["kind"] == "receipt_unavailable"

    def test_receipt_after_acceptance(self, client, product, buyer):
        order_id = _place(client, product, buyer)
        number = client.put(f"/orders/{order_id}/accept").json()["receipt_number"]

        response = client.get(f"/orders/{order_id}/receipt")

        assert response.status_code == 200
        assert response.json()["receipt"]["receipt_number"] == number


class TestReviewEndpoint:
    def test_reviews_from_both_parties_complete_the_order(self, client, product, buyer, seller):
        order_id = _place(client, product, buyer)
        client.put(f"/orders/{order_id}/accept")
        client.put(f"/orders/{order_id}/deliver")

        response = client.post(
            f"/orders/{order_id}/reviews",
            json={"profile_id": buyer.id, "product_rating": 5, "seller_rating": 5},
        )
        assert response.json()["status"] == "delivered"

        response = client.post(f"/orders/{order_id}/reviews", json={"profile_id": seller.id, "buyer_rating": 4})
        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert current_domain.repository_for(Product).get(product.id).average_rating == 5.0


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestLockingRoutes:
    @pytest.mark.parametrize("suffix", ["accept", "reject", "deliver", "complete", "cancel", "receipt", "reviews"])
    def test_lock_taking_routes_run_in_the_threadpool(self, suffix):
        endpoints = [route.endpoint for route in order_router.routes if route.path == f"/orders/{{order_id}}/{suffix}"]
        assert endpoints
        assert not any(inspect.iscoroutinefunction(endpoint) for endpoint in endpoints)

    def test_concurrent_accepts_over_http_cannot_oversell(self, client, product, buyer):
        first = _place(client, product, buyer, quantity=3)
        second = _place(client, product, buyer, quantity=3)
        codes = []
        start = threading.Barrier(2)

        def accept(order_id):
            start.wait(5)
            codes.append(client.put(f"/orders/{order_id}/accept").status_code)

        threads = [threading.Thread(target=accept, args=(order_id,)) for order_id in (first, second)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(30)

        assert sorted(codes) == [200, 409]
        assert current_domain.repository_for(Product).get(product.id).quantity == 2
