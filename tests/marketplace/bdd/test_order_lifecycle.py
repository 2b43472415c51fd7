"""BDD tests for the order lifecycle: acceptance, rejection, cancellation and completion."""

from marketplace.errors import OrderLifecycleError
from pytest_bdd import parsers, scenarios, when

scenarios("features/order_lifecycle.feature")


def _attempt(outcome, transition, *args, **kwargs):
    try:
        transition(*args, **kwargs)
    except OrderLifecycleError as exc:
        outcome["exc"] = exc


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the seller accepts order "{name}"'))
def _(lifecycle, orders, outcome, name):
    _attempt(outcome, lifecycle.accept, orders[name])


@when(parsers.cfparse('the seller rejects order "{name}" because "{reason}"'))
def _(lifecycle, orders, outcome, name, reason):
    _attempt(outcome, lifecycle.reject, orders[name], reason=reason)


@when(parsers.cfparse('the buyer cancels order "{name}"'))
def _(lifecycle, orders, outcome, name):
    _attempt(outcome, lifecycle.cancel, orders[name])


@when(parsers.cfparse('order "{name}" is completed'))
def _(lifecycle, orders, outcome, name):
    _attempt(outcome, lifecycle.complete, orders[name])
