"""Ranch aggregate — the selling entity behind a seller profile.

Maintained by the profile services; the order lifecycle reads it for the
receipt's seller block and writes only its aggregate rating.
"""

from datetime import datetime

from protean.fields import Float, Identifier, Integer, String, Text

from marketplace.domain import marketplace
from marketplace.parties.events import RanchRatingRecomputed


@marketplace.aggregate
class Ranch:
    profile_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    legal_name = String(max_length=255)
    tax_id = String(max_length=30)
    address = Text()
    phone = String(max_length=30)
    email = String(max_length=254)
    average_rating = Float(default=0.0)
    review_count = Integer(default=0)

    def record_rating(self, average: float, count: int, at: datetime) -> None:
        self.average_rating = average
        self.review_count = count
        self.raise_(
            RanchRatingRecomputed(
                ranch_id=str(self.id),
                average_rating=average,
                review_count=count,
                recomputed_at=at,
            )
        )
