"""Review aggregate — a rating left by one party of an order.

A delivered order produces up to three reviews:
    - buyer → product (product_id and ranch_id set)
    - buyer → seller  (ranch_id set, no product_id)
    - seller → buyer  (subject_profile_id set)

Product and ranch averages are computed from approved reviews only; see
``marketplace.reviews.rating``.
"""

from datetime import datetime
from enum import Enum

from protean.fields import Boolean, DateTime, Identifier, Integer, Text

from marketplace.domain import marketplace
from marketplace.reviews.events import ReviewSubmitted


class ReviewSubject(Enum):
    PRODUCT = "product"
    RANCH = "ranch"
    BUYER = "buyer"


@marketplace.aggregate
class Review:
    order_id = Identifier(required=True)
    profile_id = Identifier(required=True)  # Author
    product_id = Identifier()
    ranch_id = Identifier()
    subject_profile_id = Identifier()
    rating = Integer(required=True, min_value=1, max_value=5)
    comment = Text()
    is_verified_purchase = Boolean(default=False)
    is_approved = Boolean(default=False)
    created_at = DateTime()

    @classmethod
    def submit(
        cls,
        order_id,
        profile_id,
        rating,
        submitted_at: datetime,
        product_id=None,
        ranch_id=None,
        subject_profile_id=None,
        comment=None,
        is_verified_purchase=True,
        is_approved=True,
    ):
        """Record a review. Reviews tied to a completed purchase are approved on submission."""
        review = cls(
            order_id=order_id,
            profile_id=profile_id,
            product_id=product_id,
            ranch_id=ranch_id,
            subject_profile_id=subject_profile_id,
            rating=rating,
            comment=comment,
            is_verified_purchase=is_verified_purchase,
            is_approved=is_approved,
            created_at=submitted_at,
        )

        review.raise_(
            ReviewSubmitted(
                review_id=str(review.id),
                order_id=str(order_id),
                profile_id=str(profile_id),
                subject=review.subject.value,
                product_id=str(product_id) if product_id else None,
                ranch_id=str(ranch_id) if ranch_id else None,
                subject_profile_id=str(subject_profile_id) if subject_profile_id else None,
                rating=rating,
                submitted_at=submitted_at,
            )
        )
        return review

    @property
    def subject(self) -> ReviewSubject:
        if self.subject_profile_id:
            return ReviewSubject.BUYER
        if self.product_id:
            return ReviewSubject.PRODUCT
        return ReviewSubject.RANCH
