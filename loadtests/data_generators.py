"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the allocation validation rules
(6-digit pincodes, non-empty zone and pincode lists) and match the field
names expected by the API's Pydantic request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker("en_IN")

# ---------- Geography ----------


def unique_suffix() -> str:
    return uuid.uuid4().hex[:8]


def pincode_block(size: int = 5) -> list[str]:
    """Consecutive 6-digit pincodes from a random, non-zero-leading base.

    Random bases keep concurrent users from claiming each other's pincodes.
    """
    base = random.randint(110000, 999999 - size)
    return [str(base + i) for i in range(size)]


def pincode_entry(code: str) -> dict:
    return {
        "pincode": code,
        "city": fake.city()[:100],
        "state": fake.state()[:100],
        "district": fake.city()[:100],
    }


def zone_data(pincodes: list[str] | None = None) -> dict:
    """Generate CreateZoneRequest payload with detailed pincode entries."""
    pincodes = pincodes or pincode_block()
    name = f"lt-{fake.word()}-{unique_suffix()}"
    return {
        "name": name[:100],
        "display_name": name.replace("-", " ").title()[:150],
        "description": fake.sentence()[:500],
        "pincodes": [pincode_entry(code) for code in pincodes],
    }


# ---------- Warehouses ----------


def warehouse_address() -> str:
    return fake.address().replace("\n", ", ")


def zonal_warehouse_data(zone_ids: list[str]) -> dict:
    """Generate CreateZonalWarehouseRequest payload."""
    return {
        "name": f"{fake.city()} Hub {unique_suffix()}"[:255],
        "zone_ids": zone_ids,
        "address": warehouse_address(),
        "pincode": fake.postcode(),
    }


def division_warehouse_data(parent_warehouse_id: str, pincodes: list[str]) -> dict:
    """Generate CreateDivisionWarehouseRequest payload."""
    return {
        "name": f"{fake.city()} Division {unique_suffix()}"[:255],
        "parent_warehouse_id": parent_warehouse_id,
        "pincodes": pincodes,
        "address": warehouse_address(),
    }


# ---------- Catalog and Stock ----------


def catalog_product_data(delivery_type: str = "nationwide", allowed_zone_ids=None) -> dict:
    """Generate a development catalog product with two variants."""
    product_id = f"LT-{unique_suffix().upper()}"
    return {
        "product_id": product_id,
        "delivery_type": delivery_type,
        "allowed_zone_ids": allowed_zone_ids or [],
        "variant_ids": [f"{product_id}-S", f"{product_id}-M"],
    }


def set_stock_data(warehouse_id: str, product_id: str, variant_id: str | None = None, quantity=None) -> dict:
    """Generate SetStockRequest payload.

    Quantities are sometimes sent as strings, as browser forms do.
    """
    quantity = random.randint(1, 200) if quantity is None else quantity
    return {
        "warehouse_id": warehouse_id,
        "product_id": product_id,
        "variant_id": variant_id,
        "stock_quantity": str(quantity) if random.random() < 0.3 else quantity,
        "minimum_threshold": random.choice([None, 5, 10, 20]),
        "cost_per_unit": round(random.uniform(10, 2500), 2),
    }
