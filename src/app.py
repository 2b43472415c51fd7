"""Cattle marketplace FastAPI application.

Web server that processes order commands synchronously via HTTP. Each
request under ``/orders`` runs inside the marketplace domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects an optional [<env>] overlay in marketplace/domain.toml.
from marketplace.api import create_app
from marketplace.domain import marketplace
from marketplace.utils.logging import configure_logging

configure_logging()
marketplace.init()

app = create_app()
