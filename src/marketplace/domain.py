"""Marketplace bounded context — Orders, Product Stock, Receipts and Ratings.

Handles the buyer/seller order lifecycle (CQRS), the per-product stock
coordinator that keeps sellable quantities consistent under concurrent
orders, receipt snapshots issued at acceptance, and rating aggregation
after completion.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)
