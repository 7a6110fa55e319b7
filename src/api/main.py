"""FastAPI application main module.

This module defines the main FastAPI application instance and core API
endpoints for the CheckoutRec service. It wires logging, error handling and
the routers, and serves as the entry point for the API server.
"""

from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.dependencies import store_status
from src.api.exceptions import CheckoutRecException
from src.api.logging_config import RequestLoggingMiddleware, setup_logging
from src.api.metrics import metrics_service
from src.api.routes import checkout, recommend
from src.config import get_settings

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL)
    yield


# Create FastAPI application instance
app = FastAPI(
    title=settings.APP_NAME,
    description="Purchase-history recommendations and dynamic fields for checkout",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)
app.include_router(checkout.router)


@app.exception_handler(CheckoutRecException)
async def checkout_rec_exception_handler(
    request: Request, exc: CheckoutRecException
) -> JSONResponse:
    """Render service exceptions as JSON with their status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Returns:
        Dictionary with status key set to "ok".

    Example:
        >>> response = client.get("/ping")
        >>> assert response.json() == {"status": "ok"}
    """
    return {"status": "ok"}


@app.get("/status")
def get_status() -> Dict:
    """Report whether the commerce store is loaded and how large it is."""
    return store_status()


@app.get("/metrics")
def get_metrics() -> Dict:
    """Recommendation call counts and latency."""
    return metrics_service.get_metrics()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
