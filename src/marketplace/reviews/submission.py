"""SubmitOrderReview — each party rates the other once the animals changed hands.

The buyer rates the animals (a product review) and the seller (a ranch
review) in one submission; the seller rates the buyer. A party reviews an
order at most once. When both parties have reviewed a delivered order,
``settle_order_reviews`` closes it through the regular ``complete``
transition, which in turn recomputes the product and ranch ratings.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, Text
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import InvalidTransition
from marketplace.order.order import Order, OrderStatus
from marketplace.order.service import OrderLifecycle
from marketplace.reviews.review import Review
from marketplace.shared.clock import get_clock
from marketplace.shared.locks import get_row_locks, row_key

logger = structlog.get_logger(__name__)

_REVIEWABLE = {OrderStatus.DELIVERED.value, OrderStatus.COMPLETED.value}


@marketplace.command(part_of="Review")
class SubmitOrderReview:
    order_id = Identifier(required=True)
    profile_id = Identifier(required=True)
    product_rating = Integer(min_value=1, max_value=5)
    product_comment = Text()
    seller_rating = Integer(min_value=1, max_value=5)
    seller_comment = Text()
    buyer_rating = Integer(min_value=1, max_value=5)
    buyer_comment = Text()
    submitted_at = DateTime()


def has_reviewed(reviews, profile_id) -> bool:
    return any(str(review.profile_id) == str(profile_id) for review in reviews)


def both_parties_reviewed(order, reviews) -> bool:
    return has_reviewed(reviews, order.buyer_profile_id) and has_reviewed(reviews, order.seller_profile_id)


@marketplace.command_handler(part_of=Review)
class SubmitOrderReviewHandler:
    @handle(SubmitOrderReview)
    def submit_order_review(self, command):
        now = command.submitted_at or get_clock().now()
        order = current_domain.repository_for(Order).get(command.order_id)
        if order.status not in _REVIEWABLE:
            raise ValidationError({"order_id": ["Only delivered orders can be reviewed"]})

        repo = current_domain.repository_for(Review)
        if has_reviewed(repo.for_order(order.id), command.profile_id):
            raise ValidationError({"review": ["You have already reviewed this order"]})

        author = str(command.profile_id)
        if author == str(order.buyer_profile_id):
            reviews = self._buyer_reviews(command, order, now)
        elif author == str(order.seller_profile_id):
            reviews = self._seller_reviews(command, order, now)
        else:
            raise ValidationError({"profile_id": ["Only the buyer or the seller can review this order"]})

        for review in reviews:
            repo.add(review)

        logger.info("order_reviewed", order_id=str(order.id), profile_id=author, reviews=len(reviews))
        return [str(review.id) for review in reviews]

    def _buyer_reviews(self, command, order, now):
        missing = {
            name: ["This rating is required"]
            for name in ("product_rating", "seller_rating")
            if getattr(command, name) is None
        }
        if missing:
            raise ValidationError(missing)

        return [
            Review.submit(
                order_id=order.id,
                profile_id=command.profile_id,
                product_id=order.product_id,
                ranch_id=order.ranch_id,
                rating=command.product_rating,
                comment=command.product_comment,
                submitted_at=now,
            ),
            Review.submit(
                order_id=order.id,
                profile_id=command.profile_id,
                ranch_id=order.ranch_id,
                rating=command.seller_rating,
                comment=command.seller_comment,
                submitted_at=now,
            ),
        ]

    def _seller_reviews(self, command, order, now):
        if command.buyer_rating is None:
            raise ValidationError({"buyer_rating": ["This rating is required"]})

        return [
            Review.submit(
                order_id=order.id,
                profile_id=command.profile_id,
                subject_profile_id=order.buyer_profile_id,
                rating=command.buyer_rating,
                comment=command.buyer_comment,
                submitted_at=now,
            )
        ]


def settle_order_reviews(command: SubmitOrderReview, lifecycle=None) -> Order:
    """Record a party's review and complete the order once both have reviewed."""
    with get_row_locks().hold(row_key("order", command.order_id)):
        current_domain.process(command, asynchronous=False)

    order = current_domain.repository_for(Order).get(command.order_id)
    reviews = current_domain.repository_for(Review).for_order(order.id)
    if order.status != OrderStatus.DELIVERED.value or not both_parties_reviewed(order, reviews):
        return order

    try:
        return (lifecycle or OrderLifecycle()).complete(order.id)
    except InvalidTransition:
        # Completed concurrently by the other party's submission
        return current_domain.repository_for(Order).get(order.id)
