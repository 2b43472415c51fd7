"""Stock coordinator — serializes every quantity mutation of a product.

All reads-then-writes of ``Product.quantity`` go through reserve()/release()
while the product's row lock is held, so two concurrent orders can never both
act on the same stale quantity. Locking is per product: orders on unrelated
products never contend.

When the mutation is part of a larger unit of work (an order transition), the
caller takes ``locked(product_id)`` *before* the unit of work starts and keeps
it until the commit. The nested acquisition inside reserve()/release() is then
a re-entrant no-op, and no other transaction can read the row in between.
"""

import structlog
from protean.utils.globals import current_domain

from marketplace.shared.clock import Clock, get_clock
from marketplace.shared.locks import RowLocks, get_row_locks, row_key
from marketplace.stock.product import Product

logger = structlog.get_logger(__name__)


class StockCoordinator:
    def __init__(self, locks: RowLocks | None = None, clock: Clock | None = None) -> None:
        self._locks = locks
        self._clock = clock

    @property
    def locks(self) -> RowLocks:
        return self._locks or get_row_locks()

    @property
    def clock(self) -> Clock:
        return self._clock or get_clock()

    def locked(self, product_id, timeout: float | None = None):
        """Context manager holding the product's exclusive row lock."""
        return self.locks.hold(row_key("product", product_id), timeout=timeout)

    def reserve(self, product_id, amount: int, order_id=None, at=None) -> Product:
        """Decrement the product's quantity by ``amount`` and persist it.

        Raises InsufficientStock (and persists nothing) when ``amount`` exceeds
        the quantity currently on sale.
        """
        with self.locked(product_id):
            repo = current_domain.repository_for(Product)
            product = repo.get(product_id)
            product.reserve(amount, at=at or self.clock.now(), order_id=order_id)
            repo.add(product)

        logger.info(
            "stock_reserved",
            product_id=str(product_id),
            order_id=str(order_id) if order_id else None,
            quantity=amount,
            remaining=product.quantity,
            status=product.status,
        )
        return product

    def release(self, product_id, amount: int, order_id=None, at=None) -> Product:
        """Add ``amount`` back to the product's quantity and persist it."""
        with self.locked(product_id):
            repo = current_domain.repository_for(Product)
            product = repo.get(product_id)
            product.release(amount, at=at or self.clock.now(), order_id=order_id)
            repo.add(product)

        logger.info(
            "stock_released",
            product_id=str(product_id),
            order_id=str(order_id) if order_id else None,
            quantity=amount,
            remaining=product.quantity,
            status=product.status,
        )
        return product
