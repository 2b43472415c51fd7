"""Domain events for the Order aggregate.

Events are immutable facts raised by each lifecycle transition and committed
in the same unit of work as the order (and stock) changes they describe.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A buyer placed an order for a livestock listing."""

    __version__ = 1

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    buyer_profile_id = Identifier(required=True)
    seller_profile_id = Identifier(required=True)
    quantity = Integer(required=True)
    unit_price = Float(required=True)
    total_price = Float(required=True)
    currency = String(required=True)
    delivery_method = String(required=True)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderAccepted:
    """The seller accepted the order; stock was reserved and a receipt issued."""

    __version__ = 1

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    receipt_number = String(required=True)
    accepted_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderRejected:
    """The seller turned the order down."""

    __version__ = 1

    order_id = Identifier(required=True)
    reason = Text()
    rejected_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderDelivered:
    """The buyer confirmed pickup or delivery of the animals."""

    __version__ = 1

    order_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCompleted:
    """The transaction was closed; ratings are recomputed after commit."""

    __version__ = 1

    order_id = Identifier(required=True)
    product_id = Identifier(required=True)
    ranch_id = Identifier()
    completed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    """Either party cancelled the order before completion."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = Text()
    stock_released = Boolean(default=False)
    cancelled_at = DateTime(required=True)
