"""FastAPI application factory for the marketplace API."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.api.errors import register_error_handlers
from marketplace.api.routes import order_router
from marketplace.domain import marketplace

_DOMAIN_PREFIXES = ("/orders",)


def create_app() -> FastAPI:
    """Build the API. The domain must already be initialized."""
    app = FastAPI(
        title="Cattle Marketplace API",
        description="Order lifecycle, stock, receipts and ratings",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the marketplace domain context for domain routes."""
        if request.url.path.startswith(_DOMAIN_PREFIXES):
            with marketplace.domain_context():
                return await call_next(request)
        # Health check, docs, etc.
        return await call_next(request)

    register_error_handlers(app)
    app.include_router(order_router)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": marketplace.name})

    return app
