"""FastAPI application factory for the Ordering service."""

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordering.api.errors import install_exception_handlers
from ordering.api.routes import cart_router, checkout_router, order_router, payment_router, promo_router
from ordering.domain import ordering
from ordering.utils.logging import bind_request_context, clear_request_context

logger = structlog.get_logger(__name__)


def create_app(domain=ordering) -> FastAPI:
    app = FastAPI(
        title="Pickup Ordering API",
        description="Carts, checkout, payments and pickup orders",
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
        """Push the ordering domain context and bind request fields for logging."""
        bind_request_context(
            method=request.method,
            path=request.url.path,
            user_id=request.headers.get("x-user-id"),
        )
        try:
            with domain.domain_context():
                response = await call_next(request)
        finally:
            clear_request_context()
        return response

    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(payment_router)
    app.include_router(order_router)
    app.include_router(promo_router)
    install_exception_handlers(app)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": domain.name})

    return app
