"""Domain events for the Review aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Review")
class ReviewSubmitted:
    """A party of a delivered order rated the other party (or the animals)."""

    __version__ = 1

    review_id = Identifier(required=True)
    order_id = Identifier(required=True)
    profile_id = Identifier(required=True)
    subject = String(required=True)  # product | ranch | buyer
    product_id = Identifier()
    ranch_id = Identifier()
    subject_profile_id = Identifier()
    rating = Integer(required=True)
    submitted_at = DateTime(required=True)
