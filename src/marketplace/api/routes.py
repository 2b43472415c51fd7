"""FastAPI routes for the marketplace — order placement, lifecycle and reviews."""

from fastapi import APIRouter, Query
from protean.utils.globals import current_domain

from marketplace.api.schemas import (
    ErrorResponse,
    OrderIdResponse,
    OrderResponse,
    PlaceOrderRequest,
    ReasonRequest,
    ReceiptResponse,
    SubmitReviewRequest,
)
from marketplace.order.order import Order
from marketplace.order.placement import PlaceOrder
from marketplace.order.service import OrderLifecycle
from marketplace.reviews.submission import SubmitOrderReview, settle_order_reviews

_CONFLICT = {409: {"model": ErrorResponse}, 503: {"model": ErrorResponse}}

order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest) -> OrderIdResponse:
    command = PlaceOrder(**body.model_dump(exclude_none=True))
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(
    profile_id: str,
    role: str = Query(default="buyer", pattern="^(buyer|seller)$"),
    status: str | None = None,
) -> list[OrderResponse]:
    orders = current_domain.repository_for(Order).for_profile(profile_id, role=role, status=status)
    return [OrderResponse.from_order(order) for order in orders]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str) -> OrderResponse:
    order = current_domain.repository_for(Order).get(order_id)
    return OrderResponse.from_order(order)


# Routes that take row locks are plain functions so they run in the threadpool
@order_router.put("/{order_id}/accept", response_model=OrderResponse, responses=_CONFLICT)
def accept_order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(OrderLifecycle().accept(order_id))


@order_router.put("/{order_id}/reject", response_model=OrderResponse, responses=_CONFLICT)
def reject_order(order_id: str, body: ReasonRequest | None = None) -> OrderResponse:
    reason = body.reason if body else None
    return OrderResponse.from_order(OrderLifecycle().reject(order_id, reason=reason))


@order_router.put("/{order_id}/deliver", response_model=OrderResponse, responses=_CONFLICT)
def mark_order_delivered(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(OrderLifecycle().mark_delivered(order_id))


@order_router.put("/{order_id}/complete", response_model=OrderResponse, responses=_CONFLICT)
def complete_order(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(OrderLifecycle().complete(order_id))


@order_router.put("/{order_id}/cancel", response_model=OrderResponse, responses=_CONFLICT)
def cancel_order(order_id: str, body: ReasonRequest | None = None) -> OrderResponse:
    reason = body.reason if body else None
    return OrderResponse.from_order(OrderLifecycle().cancel(order_id, reason=reason))


@order_router.get("/{order_id}/receipt", response_model=ReceiptResponse, responses=_CONFLICT)
def get_receipt(order_id: str) -> ReceiptResponse:
    return ReceiptResponse(order_id=order_id, receipt=OrderLifecycle().receipt(order_id))


@order_router.post("/{order_id}/reviews", response_model=OrderResponse, responses=_CONFLICT)
def submit_review(order_id: str, body: SubmitReviewRequest) -> OrderResponse:
    command = SubmitOrderReview(order_id=order_id, **body.model_dump(exclude_none=True))
    return OrderResponse.from_order(settle_order_reviews(command))
