"""Domain events for the Product aggregate's stock and rating."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Product")
class StockReserved:
    """Units were taken out of the sellable quantity for an accepted order."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier()
    quantity = Integer(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    status = String(required=True)
    reserved_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class StockReleased:
    """Units went back to the sellable quantity after an order was cancelled."""

    __version__ = 1

    product_id = Identifier(required=True)
    order_id = Identifier()
    quantity = Integer(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)
    status = String(required=True)
    released_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class ProductRatingRecomputed:
    """The product's average rating was recomputed from approved reviews."""

    __version__ = 1

    product_id = Identifier(required=True)
    average_rating = Float(required=True)
    review_count = Integer(required=True)
    recomputed_at = DateTime(required=True)
