"""FastAPI routes for the Allocation domain — zones, warehouses, stock, availability."""

import json
import os

from fastapi import APIRouter, HTTPException
from protean.utils.globals import current_domain

from allocation.api.schemas import (
    AddPincodeRequest,
    AvailablePincodeResponse,
    BatchAvailabilityRequest,
    BatchResolutionResponse,
    CatalogProductResponse,
    CreateDivisionWarehouseRequest,
    CreateZonalWarehouseRequest,
    CreateZoneRequest,
    HierarchyEntryResponse,
    MovePincodeRequest,
    PincodeResponse,
    PincodeStatusRequest,
    ProductStockSummaryResponse,
    RegisterCatalogProductRequest,
    RegisterPincodeRequest,
    ResolutionResponse,
    SetStockRequest,
    SetStockResponse,
    StatusResponse,
    StockAssignmentResponse,
    StockLevelResponse,
    StockSummaryResponse,
    UpdateWarehouseRequest,
    UpdateZoneRequest,
    WarehouseIdResponse,
    WarehouseResponse,
    WarehouseStatusRequest,
    ZoneIdResponse,
    ZoneResponse,
    ZoneStatisticsResponse,
)
from allocation.availability.resolver import AvailabilityResolver
from allocation.catalog import get_catalog
from allocation.catalog.fake_adapter import FakeCatalog
from allocation.geography.management import (
    ActivateZone,
    AddPincode,
    CreateZone,
    DeactivateZone,
    DeleteZone,
    MovePincode,
    RegisterPincode,
    RemovePincode,
    SeedNationwideZone,
    SetPincodeStatus,
    UpdateZone,
)
from allocation.geography.store import GeographyStore
from allocation.stock.ledger import StockLedger
from allocation.stock.management import SetStock
from allocation.warehouse.hierarchy import WarehouseHierarchy, parent_lock
from allocation.warehouse.management import (
    CreateDivisionWarehouse,
    CreateZonalWarehouse,
    DeleteWarehouse,
    SetWarehouseStatus,
    UpdateWarehouseDetails,
)


def _zone_response(zone, pincodes=()) -> ZoneResponse:
    return ZoneResponse(
        zone_id=str(zone.id),
        name=zone.name,
        display_name=zone.display_name,
        description=zone.description,
        is_nationwide=zone.is_nationwide,
        is_active=zone.is_active,
        pincodes=sorted(pincodes),
    )


def _pincode_response(record) -> PincodeResponse:
    return PincodeResponse(
        pincode=record.code,
        zone_id=str(record.zone_id) if record.zone_id else None,
        city=record.city,
        state=record.state,
        district=record.district,
        is_active=record.is_active,
    )


def _warehouse_response(warehouse) -> WarehouseResponse:
    return WarehouseResponse(
        warehouse_id=str(warehouse.id),
        name=warehouse.name,
        warehouse_type=warehouse.warehouse_type,
        parent_warehouse_id=str(warehouse.parent_warehouse_id) if warehouse.parent_warehouse_id else None,
        zone_ids=sorted(warehouse.zone_ids),
        pincodes=sorted(warehouse.pincodes),
        address=warehouse.address,
        pincode=warehouse.pincode,
        is_active=warehouse.is_active,
    )


# ---------------------------------------------------------------------------
# Zone Router
# ---------------------------------------------------------------------------
zone_router = APIRouter(prefix="/zones", tags=["zones"])


@zone_router.post("/nationwide", status_code=201, response_model=ZoneIdResponse)
async def seed_nationwide_zone() -> ZoneIdResponse:
    result = current_domain.process(SeedNationwideZone(), asynchronous=False)
    return ZoneIdResponse(zone_id=result)


@zone_router.post("", status_code=201, response_model=ZoneIdResponse)
async def create_zone(body: CreateZoneRequest) -> ZoneIdResponse:
    pincodes = [entry if isinstance(entry, str) else entry.model_dump() for entry in body.pincodes]
    command = CreateZone(
        name=body.name,
        display_name=body.display_name,
        description=body.description,
        pincodes=json.dumps(pincodes),
    )
    result = current_domain.process(command, asynchronous=False)
    return ZoneIdResponse(zone_id=result)


@zone_router.get("", response_model=list[ZoneResponse])
async def list_zones() -> list[ZoneResponse]:
    zones = GeographyStore().zones.list_all()
    return [_zone_response(zone) for zone in sorted(zones, key=lambda z: z.name)]


@zone_router.get("/statistics", response_model=ZoneStatisticsResponse)
async def zone_statistics() -> ZoneStatisticsResponse:
    return ZoneStatisticsResponse(**GeographyStore().statistics().__dict__)


@zone_router.get("/{zone_id}", response_model=ZoneResponse)
async def get_zone(zone_id: str) -> ZoneResponse:
    store = GeographyStore()
    zone = store.get_zone(zone_id)
    return _zone_response(zone, store.pincodes_of(zone.id))


@zone_router.put("/{zone_id}", response_model=StatusResponse)
async def update_zone(zone_id: str, body: UpdateZoneRequest) -> StatusResponse:
    command = UpdateZone(
        zone_id=zone_id,
        name=body.name,
        display_name=body.display_name,
        description=body.description,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@zone_router.delete("/{zone_id}", response_model=StatusResponse)
async def delete_zone(zone_id: str) -> StatusResponse:
    current_domain.process(DeleteZone(zone_id=zone_id), asynchronous=False)
    return StatusResponse()


@zone_router.put("/{zone_id}/deactivate", response_model=StatusResponse)
async def deactivate_zone(zone_id: str) -> StatusResponse:
    current_domain.process(DeactivateZone(zone_id=zone_id), asynchronous=False)
    return StatusResponse()


@zone_router.put("/{zone_id}/activate", response_model=StatusResponse)
async def activate_zone(zone_id: str) -> StatusResponse:
    current_domain.process(ActivateZone(zone_id=zone_id), asynchronous=False)
    return StatusResponse()


@zone_router.post("/{zone_id}/pincodes", status_code=201, response_model=StatusResponse)
async def add_pincode(zone_id: str, body: AddPincodeRequest) -> StatusResponse:
    command = AddPincode(
        zone_id=zone_id,
        pincode=body.pincode,
        city=body.city,
        state=body.state,
        district=body.district,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@zone_router.delete("/{zone_id}/pincodes/{pincode}", response_model=StatusResponse)
async def remove_pincode(zone_id: str, pincode: str) -> StatusResponse:
    current_domain.process(RemovePincode(zone_id=zone_id, pincode=pincode), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Pincode Router
# ---------------------------------------------------------------------------
pincode_router = APIRouter(prefix="/pincodes", tags=["pincodes"])


@pincode_router.post("", status_code=201, response_model=StatusResponse)
async def register_pincode(body: RegisterPincodeRequest) -> StatusResponse:
    command = RegisterPincode(
        pincode=body.pincode,
        city=body.city,
        state=body.state,
        district=body.district,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@pincode_router.get("/{pincode}", response_model=PincodeResponse)
async def get_pincode(pincode: str) -> PincodeResponse:
    return _pincode_response(GeographyStore().get_pincode(pincode))


@pincode_router.get("/{pincode}/zone", response_model=ZoneResponse)
async def zone_of_pincode(pincode: str) -> ZoneResponse:
    return _zone_response(GeographyStore().zone_of(pincode))


@pincode_router.put("/{pincode}/move", response_model=StatusResponse)
async def move_pincode(pincode: str, body: MovePincodeRequest) -> StatusResponse:
    command = MovePincode(pincode=pincode, target_zone_id=body.target_zone_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@pincode_router.put("/{pincode}/status", response_model=StatusResponse)
async def set_pincode_status(pincode: str, body: PincodeStatusRequest) -> StatusResponse:
    command = SetPincodeStatus(pincode=pincode, is_active=body.is_active)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Warehouse Router
# ---------------------------------------------------------------------------
warehouse_router = APIRouter(prefix="/warehouses", tags=["warehouses"])


@warehouse_router.post("/zonal", status_code=201, response_model=WarehouseIdResponse)
async def create_zonal_warehouse(body: CreateZonalWarehouseRequest) -> WarehouseIdResponse:
    command = CreateZonalWarehouse(
        name=body.name,
        zone_ids=json.dumps(body.zone_ids),
        address=body.address,
        pincode=body.pincode,
    )
    result = current_domain.process(command, asynchronous=False)
    return WarehouseIdResponse(warehouse_id=result)


@warehouse_router.post("/division", status_code=201, response_model=WarehouseIdResponse)
async def create_division_warehouse(body: CreateDivisionWarehouseRequest) -> WarehouseIdResponse:
    command = CreateDivisionWarehouse(
        name=body.name,
        parent_warehouse_id=body.parent_warehouse_id,
        pincodes=json.dumps(body.pincodes),
        address=body.address,
        pincode=body.pincode,
    )
    # Unknown parents are rejected before a lock is created for them
    parent = WarehouseHierarchy().get_zonal_parent(body.parent_warehouse_id)
    # Held across the unit of work so the sibling check and the commit are atomic
    with parent_lock(parent.id):
        result = current_domain.process(command, asynchronous=False)
    return WarehouseIdResponse(warehouse_id=result)


@warehouse_router.get("/hierarchy", response_model=list[HierarchyEntryResponse])
async def warehouse_hierarchy() -> list[HierarchyEntryResponse]:
    return [
        HierarchyEntryResponse(
            warehouse=_warehouse_response(entry["warehouse"]),
            divisions=[_warehouse_response(d) for d in entry["divisions"]],
        )
        for entry in WarehouseHierarchy().hierarchy()
    ]


@warehouse_router.get("/{warehouse_id}", response_model=WarehouseResponse)
async def get_warehouse(warehouse_id: str) -> WarehouseResponse:
    return _warehouse_response(WarehouseHierarchy().get_warehouse(warehouse_id))


@warehouse_router.get("/{warehouse_id}/divisions", response_model=list[WarehouseResponse])
async def list_divisions(warehouse_id: str) -> list[WarehouseResponse]:
    return [_warehouse_response(d) for d in WarehouseHierarchy().divisions_of(warehouse_id)]


@warehouse_router.get("/{warehouse_id}/available-pincodes", response_model=list[AvailablePincodeResponse])
async def available_pincodes(warehouse_id: str) -> list[AvailablePincodeResponse]:
    return [AvailablePincodeResponse(**entry) for entry in WarehouseHierarchy().available_pincodes_for(warehouse_id)]


@warehouse_router.get("/{warehouse_id}/stock", response_model=list[StockAssignmentResponse])
async def warehouse_stock(warehouse_id: str) -> list[StockAssignmentResponse]:
    return [
        StockAssignmentResponse(
            assignment_key=row.assignment_key,
            warehouse_id=row.warehouse_id,
            product_id=row.product_id,
            variant_id=row.variant_id,
            stock_quantity=row.stock_quantity,
            minimum_threshold=row.minimum_threshold,
            cost_per_unit=row.cost_per_unit,
            is_low_stock=row.is_low_stock,
        )
        for row in StockLedger().assignments_for_warehouse(warehouse_id)
    ]


@warehouse_router.get("/{warehouse_id}/summary", response_model=StockSummaryResponse)
async def warehouse_summary(warehouse_id: str) -> StockSummaryResponse:
    WarehouseHierarchy().get_warehouse(warehouse_id)
    summary = StockLedger().warehouse_summary(warehouse_id)
    return StockSummaryResponse(**summary.__dict__)


@warehouse_router.put("/{warehouse_id}", response_model=StatusResponse)
async def update_warehouse(warehouse_id: str, body: UpdateWarehouseRequest) -> StatusResponse:
    command = UpdateWarehouseDetails(
        warehouse_id=warehouse_id,
        name=body.name,
        address=body.address,
        pincode=body.pincode,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@warehouse_router.put("/{warehouse_id}/status", response_model=StatusResponse)
async def set_warehouse_status(warehouse_id: str, body: WarehouseStatusRequest) -> StatusResponse:
    command = SetWarehouseStatus(warehouse_id=warehouse_id, is_active=body.is_active)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@warehouse_router.delete("/{warehouse_id}", response_model=StatusResponse)
async def delete_warehouse(warehouse_id: str) -> StatusResponse:
    current_domain.process(DeleteWarehouse(warehouse_id=warehouse_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Stock Router
# ---------------------------------------------------------------------------
stock_router = APIRouter(prefix="/stock", tags=["stock"])


@stock_router.put("", response_model=SetStockResponse)
async def set_stock(body: SetStockRequest) -> SetStockResponse:
    command = SetStock(
        warehouse_id=body.warehouse_id,
        product_id=body.product_id,
        variant_id=body.variant_id,
        stock_quantity=body.stock_quantity,
        minimum_threshold=body.minimum_threshold,
        cost_per_unit=body.cost_per_unit,
    )
    result = current_domain.process(command, asynchronous=False)
    return SetStockResponse(assignment_key=result, removed=result is None)


@stock_router.get("/products/{product_id}/summary", response_model=ProductStockSummaryResponse)
async def product_stock_summary(product_id: str) -> ProductStockSummaryResponse:
    return ProductStockSummaryResponse(**StockLedger().product_summary(product_id).__dict__)


@stock_router.get("/{warehouse_id}/{product_id}", response_model=StockLevelResponse)
async def get_stock(warehouse_id: str, product_id: str, variant_id: str | None = None) -> StockLevelResponse:
    return StockLevelResponse(
        warehouse_id=warehouse_id,
        product_id=product_id,
        variant_id=variant_id,
        stock_quantity=StockLedger().get_stock(warehouse_id, product_id, variant_id),
    )


# ---------------------------------------------------------------------------
# Availability Router
# ---------------------------------------------------------------------------
availability_router = APIRouter(prefix="/availability", tags=["availability"])


def _resolution_response(pincode, product_id, variant_id, resolution) -> ResolutionResponse:
    return ResolutionResponse(
        pincode=pincode,
        product_id=product_id,
        variant_id=variant_id,
        total=resolution.total,
        **resolution.to_dict(),
    )


@availability_router.get("", response_model=ResolutionResponse)
async def resolve_availability(pincode: str, product_id: str, variant_id: str | None = None) -> ResolutionResponse:
    resolution = AvailabilityResolver().resolve(pincode.strip(), product_id, variant_id)
    return _resolution_response(pincode.strip(), product_id, variant_id, resolution)


@availability_router.post("/batch", response_model=BatchResolutionResponse)
async def resolve_availability_batch(body: BatchAvailabilityRequest) -> BatchResolutionResponse:
    resolutions = AvailabilityResolver().resolve_many(body.pincode, body.product_ids)
    return BatchResolutionResponse(
        pincode=body.pincode,
        results=[
            _resolution_response(body.pincode, product_id, None, resolution)
            for product_id, resolution in resolutions.items()
        ],
    )


# ---------------------------------------------------------------------------
# Catalog Router (development only)
# ---------------------------------------------------------------------------
catalog_router = APIRouter(prefix="/catalog", tags=["catalog"])


@catalog_router.post("/products", status_code=201, response_model=CatalogProductResponse)
async def register_catalog_product(body: RegisterCatalogProductRequest) -> CatalogProductResponse:
    """Register a product on the FakeCatalog (non-production only).

    Lets a development server allocate stock without a real catalog behind it.
    """
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Catalog configuration not available in production")

    catalog = get_catalog()
    if not isinstance(catalog, FakeCatalog):
        raise HTTPException(status_code=400, detail="Catalog configuration only available for FakeCatalog")

    policy = catalog.add_product(
        body.product_id,
        delivery_type=body.delivery_type,
        allowed_zone_ids=body.allowed_zone_ids,
        variant_ids=body.variant_ids,
        delivery_notes=body.delivery_notes,
    )
    return CatalogProductResponse(
        product_id=body.product_id,
        delivery_type=policy.delivery_type,
        allowed_zone_ids=sorted(policy.allowed_zone_ids),
        catalog=type(catalog).__name__,
    )
