"""PlaceOrder — a buyer places an order on a livestock listing.

Prices and currency are taken from the listing unless the buyer and seller
agreed on a different unit price (usually in chat, hence ``conversation_id``).
Placement checks availability but does not touch stock: the quantity is only
taken out of stock when the seller accepts.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Date, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from marketplace.config import get_settings
from marketplace.domain import marketplace
from marketplace.order.order import DeliveryMethod, Order, PickupLocation
from marketplace.parties.ranch import Ranch
from marketplace.shared.clock import get_clock
from marketplace.shared.lookup import find_or_none
from marketplace.stock.product import Product

logger = structlog.get_logger(__name__)

# Methods that carry the animals to the buyer
_NEEDS_DELIVERY_ADDRESS = {
    DeliveryMethod.SELLER_TRANSPORT.value,
    DeliveryMethod.EXTERNAL_DELIVERY.value,
    DeliveryMethod.PLATFORM_DELIVERY.value,
}


@marketplace.command(part_of="Order")
class PlaceOrder:
    product_id = Identifier(required=True)
    buyer_profile_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    delivery_method = String(required=True, choices=DeliveryMethod)
    pickup_location = String(required=True, choices=PickupLocation)
    order_id = Identifier()
    conversation_id = Identifier()
    unit_price = Float(min_value=0.0)
    pickup_address = String(max_length=500)
    delivery_address = String(max_length=500)
    pickup_notes = String(max_length=1000)
    delivery_cost = Float(min_value=0.0)
    delivery_cost_currency = String(max_length=3)
    delivery_provider = String(max_length=255)
    delivery_tracking_number = String(max_length=255)
    expected_pickup_date = Date()
    buyer_notes = Text()
    placed_at = DateTime()


def resolve_delivery_provider(delivery_method: str, requested: str | None) -> str | None:
    """Platform deliveries default to the platform's own carrier."""
    if requested:
        return requested
    if delivery_method == DeliveryMethod.PLATFORM_DELIVERY.value:
        return get_settings().platform_delivery_provider
    return None


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        now = command.placed_at or get_clock().now()

        try:
            product = current_domain.repository_for(Product).get(command.product_id)
        except ObjectNotFoundError:
            raise ValidationError({"product_id": ["Product does not exist"]}) from None

        ranch = find_or_none(Ranch, product.ranch_id)
        if ranch is None:
            raise ValidationError({"product_id": ["Product is not offered by any ranch"]})
        if str(ranch.profile_id) == str(command.buyer_profile_id):
            raise ValidationError({"product_id": ["You cannot place an order on your own product"]})
        if product.quantity < command.quantity:
            raise ValidationError({"quantity": ["Requested quantity exceeds the product's availability"]})

        if command.pickup_location == PickupLocation.OTHER.value and not command.pickup_address:
            raise ValidationError({"pickup_address": ["Pickup address is required when picking up elsewhere"]})
        if command.delivery_method in _NEEDS_DELIVERY_ADDRESS and not command.delivery_address:
            raise ValidationError({"delivery_address": ["Delivery address is required for this delivery method"]})
        if command.expected_pickup_date and command.expected_pickup_date < now.date():
            raise ValidationError({"expected_pickup_date": ["Expected pickup date cannot be in the past"]})

        unit_price = command.unit_price if command.unit_price is not None else product.price

        order = Order.place(
            order_id=command.order_id,
            product_id=product.id,
            ranch_id=product.ranch_id,
            buyer_profile_id=command.buyer_profile_id,
            seller_profile_id=ranch.profile_id,
            quantity=command.quantity,
            unit_price=unit_price,
            currency=product.currency,
            delivery_method=command.delivery_method,
            pickup_location=command.pickup_location,
            placed_at=now,
            conversation_id=command.conversation_id,
            pickup_address=command.pickup_address,
            delivery_address=command.delivery_address,
            pickup_notes=command.pickup_notes,
            delivery_cost=command.delivery_cost or 0.0,
            delivery_cost_currency=command.delivery_cost_currency or product.currency,
            delivery_provider=resolve_delivery_provider(command.delivery_method, command.delivery_provider),
            delivery_tracking_number=command.delivery_tracking_number,
            expected_pickup_date=command.expected_pickup_date,
            buyer_notes=command.buyer_notes,
        )
        current_domain.repository_for(Order).add(order)

        logger.info(
            "order_placed",
            order_id=str(order.id),
            product_id=str(product.id),
            buyer_profile_id=str(command.buyer_profile_id),
            quantity=command.quantity,
            total_price=order.total_price,
        )
        return str(order.id)
