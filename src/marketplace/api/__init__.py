"""Marketplace API package."""

from marketplace.api.app import create_app
from marketplace.api.routes import order_router

__all__ = ["create_app", "order_router"]
