"""Order state machine as a pure planner.

``plan()`` looks at an immutable snapshot of an order and decides what a
transition does: the target status, the field changes to apply, and the side
effects (intents) the executor must carry out in the same unit of work or
after it. It performs no I/O and reads no clock, so every rule of the state
machine can be exercised without a database.

Transitions:
    accept          pending → accepted     (reserve stock, issue receipt)
    reject          pending → rejected
    mark_delivered  accepted → delivered
    complete        delivered → completed  (recompute ratings after commit)
    cancel          pending | accepted | delivered → cancelled
                    (release stock when the order was holding it)
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from marketplace.config import DEFAULT_RECEIPT_PREFIX
from marketplace.errors import InvalidTransition
from marketplace.order.order import OrderStatus
from marketplace.order.receipt import receipt_number_for


class Action(Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    MARK_DELIVERED = "mark_delivered"
    COMPLETE = "complete"
    CANCEL = "cancel"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {
        Action.ACCEPT: OrderStatus.ACCEPTED,
        Action.REJECT: OrderStatus.REJECTED,
        Action.CANCEL: OrderStatus.CANCELLED,
    },
    OrderStatus.ACCEPTED: {
        Action.MARK_DELIVERED: OrderStatus.DELIVERED,
        Action.CANCEL: OrderStatus.CANCELLED,
    },
    OrderStatus.DELIVERED: {
        Action.COMPLETE: OrderStatus.COMPLETED,
        Action.CANCEL: OrderStatus.CANCELLED,
    },
    OrderStatus.REJECTED: {},  # Terminal
    OrderStatus.COMPLETED: {},  # Terminal
    OrderStatus.CANCELLED: {},  # Terminal
}

TERMINAL_STATES = frozenset(status for status, moves in _VALID_TRANSITIONS.items() if not moves)

# States in which the order's quantity has been taken out of stock
STOCK_HOLDING_STATES = frozenset({OrderStatus.ACCEPTED, OrderStatus.DELIVERED})

# Actions that may move stock and therefore need the product row lock
STOCK_ACTIONS = frozenset({Action.ACCEPT, Action.CANCEL})

_TIMESTAMP_FIELDS = {
    OrderStatus.ACCEPTED: "accepted_at",
    OrderStatus.REJECTED: "rejected_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.COMPLETED: "completed_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OrderSnapshot:
    """The fields of an order the state machine decides on."""

    id: str
    product_id: str
    ranch_id: str | None
    status: OrderStatus
    quantity: int
    created_at: datetime | None = None
    receipt_number: str | None = None
    buyer_notes: str | None = None
    seller_notes: str | None = None
    accepted_at: datetime | None = None
    rejected_at: datetime | None = None
    delivered_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    @classmethod
    def of(cls, order) -> "OrderSnapshot":
        return cls(
            id=str(order.id),
            product_id=str(order.product_id),
            ranch_id=str(order.ranch_id) if order.ranch_id else None,
            status=order.current_status,
            quantity=order.quantity,
            created_at=order.created_at,
            receipt_number=order.receipt_number,
            buyer_notes=order.buyer_notes,
            seller_notes=order.seller_notes,
            accepted_at=order.accepted_at,
            rejected_at=order.rejected_at,
            delivered_at=order.delivered_at,
            completed_at=order.completed_at,
            cancelled_at=order.cancelled_at,
        )

    @property
    def holds_stock(self) -> bool:
        return self.status in STOCK_HOLDING_STATES


# ---------------------------------------------------------------------------
# Intents
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class IssueReceipt:
    receipt_number: str


@dataclass(frozen=True)
class ReserveStock:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class ReleaseStock:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class RecomputeRatings:
    product_id: str
    ranch_id: str | None


@dataclass(frozen=True)
class Transition:
    action: Action
    order_id: str
    source: OrderStatus
    target: OrderStatus
    at: datetime
    changes: Mapping[str, Any]
    intents: tuple = ()
    reason: str | None = None

    def intents_of(self, kind: type) -> tuple:
        return tuple(intent for intent in self.intents if isinstance(intent, kind))

    @property
    def releases_stock(self) -> bool:
        return bool(self.intents_of(ReleaseStock))


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------
def allowed_actions(status: OrderStatus) -> frozenset:
    return frozenset(_VALID_TRANSITIONS[status])


def can(status: OrderStatus, action: Action) -> bool:
    return action in _VALID_TRANSITIONS[status]


def append_note(existing: str | None, line: str) -> str:
    """Add ``line`` below the existing notes, never overwriting them."""
    return f"{existing or ''}\n{line}".strip()


def plan(
    order: OrderSnapshot,
    action: Action,
    now: datetime,
    reason: str | None = None,
    receipt_prefix: str = DEFAULT_RECEIPT_PREFIX,
) -> Transition:
    """Decide the outcome of ``action`` on ``order``.

    Raises InvalidTransition when the action is not legal from the order's
    current status. The snapshot is never modified.
    """
    target = _VALID_TRANSITIONS[order.status].get(action)
    if target is None:
        raise InvalidTransition(
            f"Cannot {action.value.replace('_', ' ')} an order that is {order.status.value}",
            order_id=order.id,
            status=order.status.value,
            action=action.value,
        )

    changes: dict[str, Any] = {"status": target.value}
    stamp = _TIMESTAMP_FIELDS[target]
    if getattr(order, stamp) is None:
        changes[stamp] = now

    intents: list = []
    reason = reason.strip() if reason and reason.strip() else None

    if action is Action.ACCEPT:
        number = order.receipt_number or receipt_number_for(order.id, order.created_at or now, receipt_prefix)
        changes["receipt_number"] = number
        intents.append(ReserveStock(product_id=order.product_id, quantity=order.quantity))
        intents.append(IssueReceipt(receipt_number=number))

    elif action is Action.REJECT:
        if reason:
            changes["seller_notes"] = append_note(order.seller_notes, f"Reason: {reason}")

    elif action is Action.MARK_DELIVERED:
        changes["actual_pickup_date"] = now.date()

    elif action is Action.COMPLETE:
        intents.append(RecomputeRatings(product_id=order.product_id, ranch_id=order.ranch_id))

    elif action is Action.CANCEL:
        if reason:
            changes["buyer_notes"] = append_note(order.buyer_notes, f"Cancellation reason: {reason}")
        if order.holds_stock:
            intents.append(ReleaseStock(product_id=order.product_id, quantity=order.quantity))

    return Transition(
        action=action,
        order_id=order.id,
        source=order.status,
        target=target,
        at=now,
        changes=changes,
        intents=tuple(intents),
        reason=reason,
    )