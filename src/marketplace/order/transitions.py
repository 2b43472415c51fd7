"""Order transitions — commands and handler.

Each command runs in its own unit of work: the handler re-reads the order,
plans the transition, executes the stock and receipt intents, and adds the
order back to its repository. Every check that can fail runs before the order
is added, so a failed transition leaves nothing behind.

The handler does not take row locks itself. OrderLifecycle holds them around
``current_domain.process(...)`` so they cover the whole unit of work,
including the commit.
"""

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, Text
from protean.utils.globals import current_domain

from marketplace.config import get_settings
from marketplace.domain import marketplace
from marketplace.errors import InsufficientStock
from marketplace.order.lifecycle import (
    Action,
    IssueReceipt,
    OrderSnapshot,
    ReleaseStock,
    ReserveStock,
    plan,
)
from marketplace.order.order import Order
from marketplace.order.receipt import build_receipt
from marketplace.parties.profile import Profile
from marketplace.parties.ranch import Ranch
from marketplace.shared.clock import get_clock
from marketplace.shared.lookup import find_or_none
from marketplace.stock.coordinator import StockCoordinator
from marketplace.stock.product import Product

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class AcceptOrder:
    order_id = Identifier(required=True)
    occurred_at = DateTime()


@marketplace.command(part_of="Order")
class RejectOrder:
    order_id = Identifier(required=True)
    reason = Text()
    occurred_at = DateTime()


@marketplace.command(part_of="Order")
class MarkOrderDelivered:
    order_id = Identifier(required=True)
    occurred_at = DateTime()


@marketplace.command(part_of="Order")
class CompleteOrder:
    order_id = Identifier(required=True)
    occurred_at = DateTime()


@marketplace.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = Text()
    occurred_at = DateTime()


@marketplace.command(part_of="Order")
class RegenerateReceipt:
    order_id = Identifier(required=True)


def issue_receipt(order, product=None) -> bool:
    """Build the order's receipt from its current collaborators and attach it."""
    receipt = build_receipt(
        order,
        product=product or find_or_none(Product, order.product_id),
        buyer=find_or_none(Profile, order.buyer_profile_id),
        seller=find_or_none(Profile, order.seller_profile_id),
        ranch=find_or_none(Ranch, order.ranch_id),
    )
    return order.attach_receipt(receipt.as_dict())


@marketplace.command_handler(part_of=Order)
class OrderTransitionHandler:
    @handle(AcceptOrder)
    def accept_order(self, command):
        return self._execute(command, Action.ACCEPT)

    @handle(RejectOrder)
    def reject_order(self, command):
        return self._execute(command, Action.REJECT, reason=command.reason)

    @handle(MarkOrderDelivered)
    def mark_order_delivered(self, command):
        return self._execute(command, Action.MARK_DELIVERED)

    @handle(CompleteOrder)
    def complete_order(self, command):
        return self._execute(command, Action.COMPLETE)

    @handle(CancelOrder)
    def cancel_order(self, command):
        return self._execute(command, Action.CANCEL, reason=command.reason)

    @handle(RegenerateReceipt)
    def regenerate_receipt(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if issue_receipt(order):
            repo.add(order)
            logger.info("receipt_regenerated", order_id=str(order.id), receipt_number=order.receipt_number)
        return order.receipt

    def _execute(self, command, action: Action, reason=None):
        now = command.occurred_at or get_clock().now()
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        transition = plan(
            OrderSnapshot.of(order),
            action,
            now,
            reason=reason,
            receipt_prefix=get_settings().receipt_prefix,
        )
        order.record(transition)

        coordinator = StockCoordinator()
        product = None
        for intent in transition.intents_of(ReserveStock):
            if find_or_none(Product, intent.product_id) is None:
                raise InsufficientStock(
                    f"Product {intent.product_id} is no longer listed",
                    product_id=intent.product_id,
                    available=0,
                    requested=intent.quantity,
                )
            product = coordinator.reserve(intent.product_id, intent.quantity, order_id=order.id, at=now)
        for intent in transition.intents_of(ReleaseStock):
            if find_or_none(Product, intent.product_id) is None:
                logger.warning("stock_release_skipped", order_id=str(order.id), product_id=intent.product_id)
                continue
            coordinator.release(intent.product_id, intent.quantity, order_id=order.id, at=now)
        if transition.intents_of(IssueReceipt):
            issue_receipt(order, product=product)

        repo.add(order)

        logger.info(
            "order_transitioned",
            order_id=str(order.id),
            action=action.value,
            from_status=transition.source.value,
            to_status=transition.target.value,
        )
        return transition
