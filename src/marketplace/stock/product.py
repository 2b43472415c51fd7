"""Product aggregate — the sellable stock of a livestock listing.

Only the slice of the catalogue listing the order lifecycle depends on lives
here: the sellable quantity and availability status (the "product stock"),
the descriptive fields copied into receipts, and the aggregate rating.

Stock Model:
    quantity:       units currently sellable, never negative
    status:         active | sold | paused | expired
    sold_by_orders: True when an order transition drove the quantity to zero;
                    only then may a release flip ``sold`` back to ``active``
"""

from datetime import datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Boolean, Float, Identifier, Integer, String

from marketplace.domain import marketplace
from marketplace.errors import InsufficientStock
from marketplace.stock.events import ProductRatingRecomputed, StockReleased, StockReserved


class ProductStatus(Enum):
    ACTIVE = "active"
    SOLD = "sold"
    PAUSED = "paused"
    EXPIRED = "expired"


@marketplace.aggregate
class Product:
    ranch_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    animal_type = String(max_length=50)
    breed = String(max_length=100)
    price = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="USD")
    quantity = Integer(default=0, min_value=0)
    status = String(choices=ProductStatus, default=ProductStatus.ACTIVE.value)
    sold_by_orders = Boolean(default=False)
    average_rating = Float(default=0.0)
    review_count = Integer(default=0)

    def reserve(self, amount: int, at: datetime, order_id=None) -> None:
        """Take ``amount`` units out of stock; mark the product sold when depleted."""
        if amount <= 0:
            raise ValidationError({"quantity": ["Reserved quantity must be positive"]})
        if amount > self.quantity:
            raise InsufficientStock(
                f"Product {self.id} has {self.quantity} units available, {amount} requested",
                product_id=str(self.id),
                available=self.quantity,
                requested=amount,
            )

        previous = self.quantity
        self.quantity = previous - amount
        if self.quantity <= 0 and self.status != ProductStatus.SOLD.value:
            self.status = ProductStatus.SOLD.value
            self.sold_by_orders = True

        self.raise_(
            StockReserved(
                product_id=str(self.id),
                order_id=str(order_id) if order_id else None,
                quantity=amount,
                previous_quantity=previous,
                new_quantity=self.quantity,
                status=self.status,
                reserved_at=at,
            )
        )

    def release(self, amount: int, at: datetime, order_id=None) -> None:
        """Return ``amount`` units to stock, reverting a depletion-caused ``sold``."""
        if amount <= 0:
            raise ValidationError({"quantity": ["Released quantity must be positive"]})

        previous = self.quantity
        self.quantity = previous + amount
        if self.status == ProductStatus.SOLD.value and self.sold_by_orders and self.quantity > 0:
            self.status = ProductStatus.ACTIVE.value
            self.sold_by_orders = False

        self.raise_(
            StockReleased(
                product_id=str(self.id),
                order_id=str(order_id) if order_id else None,
                quantity=amount,
                previous_quantity=previous,
                new_quantity=self.quantity,
                status=self.status,
                released_at=at,
            )
        )

    def record_rating(self, average: float, count: int, at: datetime) -> None:
        self.average_rating = average
        self.review_count = count
        self.raise_(
            ProductRatingRecomputed(
                product_id=str(self.id),
                average_rating=average,
                review_count=count,
                recomputed_at=at,
            )
        )
