"""OrderLifecycle — the entry point for every order transition.

For each call the service:
    1. reads the order to learn which rows the transition touches,
    2. takes the order row lock, plus the product row lock when stock may move,
    3. processes the transition command synchronously (one unit of work),
    4. releases the locks once the unit of work has committed,
    5. after ``complete``, recomputes ratings outside the transaction.

Two accepts racing on one order therefore serialize on the order lock, and
the loser re-reads a non-pending order inside the handler and fails with
InvalidTransition. Two accepts on different orders of one product serialize
on the product lock, and the second one sees the decremented quantity.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from marketplace.errors import AggregationFailure, OrderLifecycleError, PersistenceFailure, ReceiptUnavailable
from marketplace.order.lifecycle import STOCK_ACTIONS, Action, RecomputeRatings, Transition
from marketplace.order.order import Order
from marketplace.order.transitions import (
    AcceptOrder,
    CancelOrder,
    CompleteOrder,
    MarkOrderDelivered,
    RegenerateReceipt,
    RejectOrder,
)
from marketplace.reviews.rating import RatingAggregator
from marketplace.shared.clock import Clock, get_clock
from marketplace.shared.locks import RowLocks, get_row_locks, row_key
from marketplace.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)

_COMMANDS = {
    Action.ACCEPT: AcceptOrder,
    Action.REJECT: RejectOrder,
    Action.MARK_DELIVERED: MarkOrderDelivered,
    Action.COMPLETE: CompleteOrder,
    Action.CANCEL: CancelOrder,
}

# Errors that already describe the outcome and reach the caller unchanged
_PASSTHROUGH = (OrderLifecycleError, ValidationError, ObjectNotFoundError)


class OrderLifecycle:
    def __init__(
        self,
        clock: Clock | None = None,
        locks: RowLocks | None = None,
        ratings: RatingAggregator | None = None,
    ) -> None:
        self._clock = clock
        self._locks = locks
        self._ratings = ratings

    @property
    def clock(self) -> Clock:
        return self._clock or get_clock()

    @property
    def locks(self) -> RowLocks:
        return self._locks or get_row_locks()

    @property
    def ratings(self) -> RatingAggregator:
        return self._ratings or RatingAggregator(locks=self.locks, clock=self.clock)

    # -------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------
    def accept(self, order_id) -> Order:
        return self._transition(Action.ACCEPT, order_id)

    def reject(self, order_id, reason: str | None = None) -> Order:
        return self._transition(Action.REJECT, order_id, reason=reason)

    def mark_delivered(self, order_id) -> Order:
        return self._transition(Action.MARK_DELIVERED, order_id)

    def complete(self, order_id) -> Order:
        return self._transition(Action.COMPLETE, order_id)

    def cancel(self, order_id, reason: str | None = None) -> Order:
        return self._transition(Action.CANCEL, order_id, reason=reason)

    # -------------------------------------------------------------------
    # Receipt
    # -------------------------------------------------------------------
    def receipt(self, order_id) -> dict:
        """Return the receipt of an accepted order, regenerating it once if missing."""
        order = current_domain.repository_for(Order).get(order_id)
        if order.accepted_at is None:
            raise ReceiptUnavailable(
                "The receipt is available once the order has been accepted",
                order_id=str(order_id),
                status=order.status,
            )
        if order.receipt:
            return order.receipt

        with self.locks.hold(row_key("order", order_id)):
            return self._process(RegenerateReceipt(order_id=str(order_id)), order_id, "regenerate_receipt")

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _transition(self, action: Action, order_id, reason: str | None = None) -> Order:
        add_context(order_id=str(order_id), action=action.value)
        try:
            repo = current_domain.repository_for(Order)
            current = repo.get(order_id)

            fields = {"order_id": str(order_id), "occurred_at": self.clock.now()}
            if action in (Action.REJECT, Action.CANCEL):
                fields["reason"] = reason
            command = _COMMANDS[action](**fields)

            keys = [row_key("order", order_id)]
            if action in STOCK_ACTIONS:
                keys.append(row_key("product", current.product_id))

            with self.locks.hold(*keys):
                transition = self._process(command, order_id, action.value)

            logger.info(
                "order_transition_committed",
                from_status=transition.source.value,
                to_status=transition.target.value,
            )

            for intent in transition.intents_of(RecomputeRatings):
                self._recompute_ratings(transition, intent)

            return repo.get(order_id)
        finally:
            clear_context()

    def _process(self, command, order_id, action: str):
        try:
            return current_domain.process(command, asynchronous=False)
        except _PASSTHROUGH as exc:
            logger.info("order_transition_refused", order_id=str(order_id), action=action, error=str(exc))
            raise
        except Exception as exc:
            logger.error("order_transition_failed", order_id=str(order_id), action=action, exc_info=True)
            raise PersistenceFailure(
                f"Could not {action.replace('_', ' ')} order {order_id}: {exc}",
                order_id=str(order_id),
                action=action,
            ) from exc

    def _recompute_ratings(self, transition: Transition, intent: RecomputeRatings) -> None:
        try:
            self.ratings.recompute(product_id=intent.product_id, ranch_id=intent.ranch_id)
        except Exception as exc:
            failure = AggregationFailure(
                f"Rating recompute failed after completing order {transition.order_id}: {exc}",
                order_id=transition.order_id,
                product_id=intent.product_id,
                ranch_id=intent.ranch_id,
            )
            logger.warning("rating_recompute_failed", **failure.to_dict(), exc_info=exc)
