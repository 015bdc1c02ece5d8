from allocation.api.errors import register_error_handlers
from allocation.api.routes import (
    availability_router,
    catalog_router,
    pincode_router,
    stock_router,
    warehouse_router,
    zone_router,
)

__all__ = [
    "availability_router",
    "catalog_router",
    "pincode_router",
    "register_error_handlers",
    "stock_router",
    "warehouse_router",
    "zone_router",
]
