"""Order aggregate (CQRS) — a buyer's purchase of livestock from a ranch.

The aggregate holds the order record and applies transitions planned by
``marketplace.order.lifecycle``. It never decides on its own whether a
transition is legal: the planner does, from a snapshot, and the aggregate
records the resulting field changes and raises the matching event.

State Machine (6 states):
    PENDING → ACCEPTED → DELIVERED → COMPLETED
    PENDING → REJECTED
    PENDING | ACCEPTED | DELIVERED → CANCELLED
    REJECTED, COMPLETED, CANCELLED → (terminal)
"""

import json
from datetime import datetime
from enum import Enum

from protean.fields import Date, DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace
from marketplace.order.events import (
    OrderAccepted,
    OrderCancelled,
    OrderCompleted,
    OrderDelivered,
    OrderPlaced,
    OrderRejected,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class DeliveryMethod(Enum):
    BUYER_TRANSPORT = "buyer_transport"
    SELLER_TRANSPORT = "seller_transport"
    EXTERNAL_DELIVERY = "external_delivery"
    PLATFORM_DELIVERY = "platform_delivery"


class PickupLocation(Enum):
    RANCH = "ranch"
    OTHER = "other"


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    """A purchase agreement between a buyer profile and the selling ranch."""

    # Parties and listing
    product_id = Identifier(required=True)
    ranch_id = Identifier(required=True)
    buyer_profile_id = Identifier(required=True)
    seller_profile_id = Identifier(required=True)
    conversation_id = Identifier()

    # Commercial terms, fixed at placement
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    total_price = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")

    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)

    # Logistics
    delivery_method = String(choices=DeliveryMethod, required=True)
    pickup_location = String(choices=PickupLocation, default=PickupLocation.RANCH.value)
    pickup_address = Text()
    delivery_address = Text()
    pickup_notes = Text()
    delivery_cost = Float(default=0.0, min_value=0.0)
    delivery_cost_currency = String(max_length=3)
    delivery_provider = String(max_length=255)
    delivery_tracking_number = String(max_length=255)
    expected_pickup_date = Date()
    actual_pickup_date = Date()

    # Free text from each party
    buyer_notes = Text()
    seller_notes = Text()

    # Receipt, issued once at acceptance
    receipt_number = String(max_length=100)
    receipt_data = Text()  # JSON snapshot, see marketplace.order.receipt

    # Timestamps
    created_at = DateTime()
    updated_at = DateTime()
    accepted_at = DateTime()
    rejected_at = DateTime()
    delivered_at = DateTime()
    completed_at = DateTime()
    cancelled_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        product_id,
        ranch_id,
        buyer_profile_id,
        seller_profile_id,
        quantity,
        unit_price,
        currency,
        delivery_method,
        placed_at: datetime,
        pickup_location=PickupLocation.RANCH.value,
        order_id=None,
        **logistics,
    ):
        """Create a pending order. ``logistics`` carries the optional delivery fields."""
        identity = {"id": order_id} if order_id else {}
        order = cls(
            **identity,
            product_id=product_id,
            ranch_id=ranch_id,
            buyer_profile_id=buyer_profile_id,
            seller_profile_id=seller_profile_id,
            quantity=quantity,
            unit_price=unit_price,
            total_price=quantity * unit_price,
            currency=currency,
            status=OrderStatus.PENDING.value,
            delivery_method=delivery_method,
            pickup_location=pickup_location,
            created_at=placed_at,
            updated_at=placed_at,
            **logistics,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                product_id=str(product_id),
                buyer_profile_id=str(buyer_profile_id),
                seller_profile_id=str(seller_profile_id),
                quantity=quantity,
                unit_price=unit_price,
                total_price=order.total_price,
                currency=currency,
                delivery_method=delivery_method,
                placed_at=placed_at,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def record(self, transition) -> None:
        """Apply a planned transition's field changes and raise its event."""
        for field_name, value in transition.changes.items():
            setattr(self, field_name, value)
        self.updated_at = transition.at
        self.raise_(self._event_for(transition))

    def _event_for(self, transition):
        target = transition.target
        if target is OrderStatus.ACCEPTED:
            return OrderAccepted(
                order_id=str(self.id),
                product_id=str(self.product_id),
                quantity=self.quantity,
                receipt_number=self.receipt_number,
                accepted_at=self.accepted_at,
            )
        if target is OrderStatus.REJECTED:
            return OrderRejected(order_id=str(self.id), reason=transition.reason, rejected_at=self.rejected_at)
        if target is OrderStatus.DELIVERED:
            return OrderDelivered(order_id=str(self.id), delivered_at=self.delivered_at)
        if target is OrderStatus.COMPLETED:
            return OrderCompleted(
                order_id=str(self.id),
                product_id=str(self.product_id),
                ranch_id=str(self.ranch_id) if self.ranch_id else None,
                completed_at=self.completed_at,
            )
        return OrderCancelled(
            order_id=str(self.id),
            previous_status=transition.source.value,
            reason=transition.reason,
            stock_released=transition.releases_stock,
            cancelled_at=self.cancelled_at,
        )

    # -------------------------------------------------------------------
    # Receipt
    # -------------------------------------------------------------------
    def attach_receipt(self, receipt: dict) -> bool:
        """Store the receipt snapshot unless one is already attached."""
        if self.receipt_data:
            return False
        self.receipt_data = json.dumps(receipt)
        return True

    @property
    def receipt(self) -> dict | None:
        return json.loads(self.receipt_data) if self.receipt_data else None

    @property
    def current_status(self) -> OrderStatus:
        return OrderStatus(self.status)
