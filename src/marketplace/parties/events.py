"""Domain events for the Ranch aggregate."""

from protean.fields import DateTime, Float, Identifier, Integer

from marketplace.domain import marketplace


@marketplace.event(part_of="Ranch")
class RanchRatingRecomputed:
    """The ranch's average rating was recomputed from approved reviews."""

    __version__ = 1

    ranch_id = Identifier(required=True)
    average_rating = Float(required=True)
    review_count = Integer(required=True)
    recomputed_at = DateTime(required=True)
