"""
Tableside REST API.
Entry point for the FastAPI server.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from shared.config.settings import settings
from shared.config.logging import app_logger as logger
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler
from tableside.core import configure_cors, lifespan, register_middlewares
from tableside.repositories import PersistenceUnavailableError
from tableside.routers.customer import cart_router, orders_router, session_router
from tableside.routers.public import health_router, terminal_router
from tableside.routers.staff import orders_router as staff_orders_router
from tableside.routers.staff import customers_router as staff_customers_router
from tableside.routers.staff import tables_router as staff_tables_router


app = FastAPI(
    title="Tableside API",
    description="Table sessions, QR access, carts and orders for restaurant tables and terminals",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(PersistenceUnavailableError)
async def persistence_unavailable_handler(request: Request, exc: PersistenceUnavailableError):
    """Backend outages that escape a router surface as 503, never as a silent success."""
    logger.error("Persistence unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={"detail": "Backend unavailable. Please try again."},
        headers={"Retry-After": "5"},
    )


register_middlewares(app)
configure_cors(app)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)
app.include_router(terminal_router)
app.include_router(session_router)
app.include_router(cart_router)
app.include_router(orders_router)
app.include_router(staff_tables_router)
app.include_router(staff_orders_router)
app.include_router(staff_customers_router)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tableside.main:app",
        host="0.0.0.0",
        port=settings.api_port,
        reload=settings.debug,
    )
