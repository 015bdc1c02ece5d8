"""Pydantic request/response schemas for the Allocation API.

These are the external contracts. Loosely typed input (quantities sent as
strings, padded pincodes) is coerced here once, before any command is built.
"""

from pydantic import BaseModel, Field, field_validator


def _coerce_int(value):
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return 0
        return int(value)
    return value


def _strip(value):
    return value.strip() if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Zone / Pincode Request Schemas
# ---------------------------------------------------------------------------
class PincodeEntrySchema(BaseModel):
    pincode: str
    city: str | None = None
    state: str | None = None
    district: str | None = None

    strip_pincode = field_validator("pincode", mode="before")(_strip)


class CreateZoneRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    display_name: str = Field(min_length=1, max_length=150)
    description: str | None = Field(default=None, max_length=500)
    pincodes: list[PincodeEntrySchema | str] = Field(min_length=1)


class UpdateZoneRequest(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    display_name: str | None = Field(default=None, max_length=150)
    description: str | None = Field(default=None, max_length=500)


class AddPincodeRequest(PincodeEntrySchema):
    pass


class RegisterPincodeRequest(PincodeEntrySchema):
    pass


class MovePincodeRequest(BaseModel):
    target_zone_id: str


class PincodeStatusRequest(BaseModel):
    is_active: bool


# ---------------------------------------------------------------------------
# Warehouse Request Schemas
# ---------------------------------------------------------------------------
class CreateZonalWarehouseRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    zone_ids: list[str] = Field(min_length=1)
    address: str | None = None
    pincode: str | None = None


class CreateDivisionWarehouseRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    parent_warehouse_id: str
    pincodes: list[str] = Field(min_length=1)
    address: str | None = None
    pincode: str | None = None

    @field_validator("pincodes", mode="before")
    @classmethod
    def strip_pincodes(cls, value):
        if isinstance(value, list):
            return [_strip(v) if isinstance(v, str) else str(v) for v in value]
        return value


class UpdateWarehouseRequest(BaseModel):
    name: str | None = Field(default=None, max_length=255)
    address: str | None = None
    pincode: str | None = None


class WarehouseStatusRequest(BaseModel):
    is_active: bool


# ---------------------------------------------------------------------------
# Stock Request Schemas
# ---------------------------------------------------------------------------
class SetStockRequest(BaseModel):
    warehouse_id: str
    product_id: str
    variant_id: str | None = None
    stock_quantity: int = 0
    minimum_threshold: int | None = Field(default=None, ge=0)
    cost_per_unit: float | None = Field(default=None, ge=0)

    coerce_quantities = field_validator("stock_quantity", "minimum_threshold", mode="before")(_coerce_int)


# ---------------------------------------------------------------------------
# Availability Request Schemas
# ---------------------------------------------------------------------------
class BatchAvailabilityRequest(BaseModel):
    pincode: str
    product_ids: list[str] = Field(min_length=1)

    strip_pincode = field_validator("pincode", mode="before")(_strip)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"


class ZoneIdResponse(BaseModel):
    zone_id: str


class PincodeResponse(BaseModel):
    pincode: str
    zone_id: str | None = None
    city: str | None = None
    state: str | None = None
    district: str | None = None
    is_active: bool = True


class ZoneResponse(BaseModel):
    zone_id: str
    name: str
    display_name: str
    description: str | None = None
    is_nationwide: bool
    is_active: bool
    pincodes: list[str] = []


class ZoneStatisticsResponse(BaseModel):
    total_zones: int
    active_zones: int
    nationwide_zones: int
    total_pincodes: int
    unassigned_pincodes: int


class WarehouseIdResponse(BaseModel):
    warehouse_id: str


class WarehouseResponse(BaseModel):
    warehouse_id: str
    name: str
    warehouse_type: str
    parent_warehouse_id: str | None = None
    zone_ids: list[str] = []
    pincodes: list[str] = []
    address: str | None = None
    pincode: str | None = None
    is_active: bool = True


class HierarchyEntryResponse(BaseModel):
    warehouse: WarehouseResponse
    divisions: list[WarehouseResponse]


class AvailablePincodeResponse(BaseModel):
    pincode: str
    is_available: bool
    claimed_by: str | None = None


class StockSummaryResponse(BaseModel):
    warehouse_id: str
    total_items: int
    total_units: int
    inventory_value: float
    low_stock_count: int


class ProductStockSummaryResponse(BaseModel):
    product_id: str
    total_units: int
    warehouse_count: int
    inventory_value: float
    low_stock_count: int
    by_warehouse: dict[str, int]
    by_variant: dict[str, int]


class StockAssignmentResponse(BaseModel):
    assignment_key: str
    warehouse_id: str
    product_id: str
    variant_id: str | None = None
    stock_quantity: int
    minimum_threshold: int
    cost_per_unit: float
    is_low_stock: bool


class SetStockResponse(BaseModel):
    assignment_key: str | None = None
    removed: bool = False


class StockLevelResponse(BaseModel):
    warehouse_id: str
    product_id: str
    variant_id: str | None = None
    stock_quantity: int


class ResolutionResponse(BaseModel):
    pincode: str
    product_id: str
    variant_id: str | None = None
    classification: str
    pool: dict[str, int]
    total: int
    reason: str | None = None


class BatchResolutionResponse(BaseModel):
    pincode: str
    results: list[ResolutionResponse]


# ---------------------------------------------------------------------------
# Catalog (development) Schemas
# ---------------------------------------------------------------------------
class RegisterCatalogProductRequest(BaseModel):
    product_id: str
    delivery_type: str = "nationwide"
    allowed_zone_ids: list[str] = []
    variant_ids: list[str] = []
    delivery_notes: str | None = None


class CatalogProductResponse(BaseModel):
    product_id: str
    delivery_type: str
    allowed_zone_ids: list[str]
    catalog: str
