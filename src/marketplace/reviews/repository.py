"""Repository for the Review aggregate."""

from marketplace.domain import marketplace
from marketplace.reviews.review import Review


@marketplace.repository(part_of=Review)
class ReviewRepository:
    def for_order(self, order_id) -> list[Review]:
        return self._dao.query.filter(order_id=str(order_id)).all().items

    def approved_for_product(self, product_id) -> list[Review]:
        return self._dao.query.filter(product_id=str(product_id), is_approved=True).all().items

    def approved_for_ranch(self, ranch_id) -> list[Review]:
        return self._dao.query.filter(ranch_id=str(ranch_id), is_approved=True).all().items
