"""Rating aggregation — product and ranch averages from approved reviews.

Runs after an order's completion has been committed, never inside it. Each
average is written under the row lock of the product or ranch it updates:
product rows are shared with stock mutations, and a rating write must not
clobber a quantity decremented in between.
"""

from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from marketplace.parties.ranch import Ranch
from marketplace.reviews.review import Review
from marketplace.shared.clock import Clock, get_clock
from marketplace.shared.locks import RowLocks, get_row_locks, row_key
from marketplace.stock.product import Product

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RatingSummary:
    average: float | None
    count: int


def summarize(reviews) -> RatingSummary:
    """Arithmetic mean of the approved ratings."""
    ratings = [review.rating for review in reviews if review.is_approved]
    if not ratings:
        return RatingSummary(average=None, count=0)
    return RatingSummary(average=sum(ratings) / len(ratings), count=len(ratings))


class RatingAggregator:
    def __init__(self, locks: RowLocks | None = None, clock: Clock | None = None) -> None:
        self._locks = locks
        self._clock = clock

    @property
    def locks(self) -> RowLocks:
        return self._locks or get_row_locks()

    @property
    def clock(self) -> Clock:
        return self._clock or get_clock()

    def recompute(self, product_id=None, ranch_id=None) -> dict[str, RatingSummary]:
        """Recompute the product and/or ranch averages.

        An aggregate with no approved reviews keeps its stored average.
        """
        reviews = current_domain.repository_for(Review)
        results = {}
        if product_id:
            results["product"] = self._store(Product, product_id, summarize(reviews.approved_for_product(product_id)))
        if ranch_id:
            results["ranch"] = self._store(Ranch, ranch_id, summarize(reviews.approved_for_ranch(ranch_id)))
        return results

    def _store(self, aggregate_cls, identifier, summary: RatingSummary) -> RatingSummary:
        kind = aggregate_cls.__name__.lower()
        if summary.count == 0:
            logger.debug("rating_unchanged", kind=kind, row_id=str(identifier))
            return summary

        with self.locks.hold(row_key(kind, identifier)):
            repo = current_domain.repository_for(aggregate_cls)
            record = repo.get(identifier)
            record.record_rating(summary.average, summary.count, at=self.clock.now())
            repo.add(record)

        logger.info(
            "rating_recomputed",
            kind=kind,
            row_id=str(identifier),
            average_rating=summary.average,
            review_count=summary.count,
        )
        return summary
