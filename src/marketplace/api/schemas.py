"""Pydantic request/response schemas for the Orders API.

These are external contracts (anti-corruption layer), separate from the
internal Protean commands.
"""

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field

DeliveryMethodCode = Literal["buyer_transport", "seller_transport", "external_delivery", "platform_delivery"]
PickupLocationCode = Literal["ranch", "other"]


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
class PlaceOrderRequest(BaseModel):
    product_id: str
    buyer_profile_id: str
    quantity: int = Field(ge=1)
    delivery_method: DeliveryMethodCode
    pickup_location: PickupLocationCode = "ranch"
    conversation_id: str | None = None
    unit_price: float | None = Field(default=None, ge=0)
    pickup_address: str | None = Field(default=None, max_length=500)
    delivery_address: str | None = Field(default=None, max_length=500)
    pickup_notes: str | None = Field(default=None, max_length=1000)
    delivery_cost: float | None = Field(default=None, ge=0)
    delivery_cost_currency: str | None = Field(default=None, min_length=3, max_length=3)
    delivery_provider: str | None = Field(default=None, max_length=255)
    delivery_tracking_number: str | None = Field(default=None, max_length=255)
    expected_pickup_date: date | None = None
    buyer_notes: str | None = Field(default=None, max_length=1000)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "prod-001",
                    "buyer_profile_id": "profile-042",
                    "quantity": 3,
                    "delivery_method": "buyer_transport",
                    "pickup_location": "ranch",
                }
            ]
        }
    }


class ReasonRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class SubmitReviewRequest(BaseModel):
    profile_id: str
    product_rating: int | None = Field(default=None, ge=1, le=5)
    product_comment: str | None = Field(default=None, max_length=1000)
    seller_rating: int | None = Field(default=None, ge=1, le=5)
    seller_comment: str | None = Field(default=None, max_length=1000)
    buyer_rating: int | None = Field(default=None, ge=1, le=5)
    buyer_comment: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str


class OrderResponse(BaseModel):
    order_id: str
    status: str
    product_id: str
    ranch_id: str
    buyer_profile_id: str
    seller_profile_id: str
    conversation_id: str | None = None
    quantity: int
    unit_price: float
    total_price: float
    currency: str | None = None
    delivery_method: str
    pickup_location: str | None = None
    pickup_address: str | None = None
    delivery_address: str | None = None
    pickup_notes: str | None = None
    delivery_cost: float | None = None
    delivery_cost_currency: str | None = None
    delivery_provider: str | None = None
    delivery_tracking_number: str | None = None
    expected_pickup_date: date | None = None
    actual_pickup_date: date | None = None
    buyer_notes: str | None = None
    seller_notes: str | None = None
    receipt_number: str | None = None
    created_at: datetime | None = None
    accepted_at: datetime | None = None
    rejected_at: datetime | None = None
    delivered_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            order_id=str(order.id),
            status=order.status,
            product_id=str(order.product_id),
            ranch_id=str(order.ranch_id),
            buyer_profile_id=str(order.buyer_profile_id),
            seller_profile_id=str(order.seller_profile_id),
            conversation_id=str(order.conversation_id) if order.conversation_id else None,
            quantity=order.quantity,
            unit_price=order.unit_price,
            total_price=order.total_price,
            currency=order.currency,
            delivery_method=order.delivery_method,
            pickup_location=order.pickup_location,
            pickup_address=order.pickup_address,
            delivery_address=order.delivery_address,
            pickup_notes=order.pickup_notes,
            delivery_cost=order.delivery_cost,
            delivery_cost_currency=order.delivery_cost_currency,
            delivery_provider=order.delivery_provider,
            delivery_tracking_number=order.delivery_tracking_number,
            expected_pickup_date=order.expected_pickup_date,
            actual_pickup_date=order.actual_pickup_date,
            buyer_notes=order.buyer_notes,
            seller_notes=order.seller_notes,
            receipt_number=order.receipt_number,
            created_at=order.created_at,
            accepted_at=order.accepted_at,
            rejected_at=order.rejected_at,
            delivered_at=order.delivered_at,
            completed_at=order.completed_at,
            cancelled_at=order.cancelled_at,
        )


class ReceiptResponse(BaseModel):
    order_id: str
    receipt: dict


class ErrorResponse(BaseModel):
    kind: str
    message: str
    context: dict | None = None
