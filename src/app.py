"""Allocation FastAPI application.

Processes commands synchronously via HTTP. Every request under an
allocation route runs inside the allocation domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay.
import uuid

from allocation.domain import allocation
from allocation.utils.logging import add_context, clear_context
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

allocation.init()

_DOMAIN_PREFIXES = ("/zones", "/pincodes", "/warehouses", "/stock", "/availability")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Allocation API",
    description="Zone-aware warehouse hierarchy, stock ledger and availability resolution",
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
    """Push the allocation domain context and bind a request id for logging."""
    if not request.url.path.startswith(_DOMAIN_PREFIXES):
        # Health check, docs, etc.
        return await call_next(request)

    add_context(request_id=request.headers.get("x-request-id") or str(uuid.uuid4()))
    try:
        with allocation.domain_context():
            response = await call_next(request)
    finally:
        clear_context()
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from allocation.api import (  # noqa: E402
    availability_router,
    catalog_router,
    pincode_router,
    register_error_handlers,
    stock_router,
    warehouse_router,
    zone_router,
)

app.include_router(zone_router)
app.include_router(pincode_router)
app.include_router(warehouse_router)
app.include_router(stock_router)
app.include_router(availability_router)
app.include_router(catalog_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {"allocation": {"name": allocation.name}},
        }
    )
