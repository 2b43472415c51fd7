"""Error taxonomy of the order lifecycle.

Every error carries a machine-readable ``kind`` and a human message so the
request layer can answer with a structured body instead of a stack trace.

- InvalidTransition: the action is not legal from the order's current state.
- InsufficientStock: accepting would drive the product quantity negative.
- PersistenceFailure: the unit of work could not be committed (retryable).
- LockTimeout: a row lock could not be acquired in time (retryable).
- AggregationFailure: rating recompute failed after a committed completion.
  Logged only, never raised to callers of a transition.
- ReceiptUnavailable: the receipt was requested before the order was accepted.
"""

from typing import Any


class OrderLifecycleError(Exception):
    kind = "order_lifecycle_error"
    retryable = False

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        payload = {"kind": self.kind, "message": self.message}
        if self.context:
            payload["context"] = {key: _plain(value) for key, value in self.context.items()}
        return payload


class InvalidTransition(OrderLifecycleError):
    kind = "invalid_transition"


class InsufficientStock(OrderLifecycleError):
    kind = "insufficient_stock"


class PersistenceFailure(OrderLifecycleError):
    kind = "persistence_failure"
    retryable = True


class LockTimeout(PersistenceFailure):
    kind = "lock_timeout"


class AggregationFailure(OrderLifecycleError):
    kind = "aggregation_failure"


class ReceiptUnavailable(OrderLifecycleError):
    kind = "receipt_unavailable"


def _plain(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return str(value)
