import json
import os

import pytest
from allocation.catalog import reset_catalog, set_catalog
from allocation.catalog.fake_adapter import FakeCatalog
from allocation.geography.management import CreateZone, SeedNationwideZone
from allocation.warehouse.management import CreateDivisionWarehouse, CreateZonalWarehouse
from protean import current_domain


@pytest.fixture(scope="session")
def _allocation_domain(request):
    """Initialize the allocation domain once per session."""
    os.environ["PROTEAN_ENV"] = request.config.option.env

    from allocation.domain import allocation

    allocation.init()
    return allocation


@pytest.fixture(scope="session", autouse=True)
def setup_db(_allocation_domain):
    from allocation.utils.db import drop_db, setup_db

    setup_db(_allocation_domain)

    yield

    drop_db(_allocation_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_allocation_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _allocation_domain.domain_context()
    ctx.push()

    yield

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture(autouse=True)
def catalog():
    fake = FakeCatalog()
    set_catalog(fake)
    yield fake
    reset_catalog()


# ---------------------------------------------------------------------------
# Reference world: Z1 = {400001, 400002}, W1 serves Z1, D1 (under W1) serves 400001
# ---------------------------------------------------------------------------
def create_zone(name, pincodes, display_name=None):
    return current_domain.process(
        CreateZone(
            name=name,
            display_name=display_name or name.title(),
            pincodes=json.dumps(pincodes),
        ),
        asynchronous=False,
    )


def create_zonal(name, zone_ids):
    return current_domain.process(
        CreateZonalWarehouse(name=name, zone_ids=json.dumps(zone_ids)),
        asynchronous=False,
    )


def create_division(name, parent_id, pincodes):
    return current_domain.process(
        CreateDivisionWarehouse(
            name=name,
            parent_warehouse_id=parent_id,
            pincodes=json.dumps(pincodes),
        ),
        asynchronous=False,
    )


@pytest.fixture()
def nationwide_id():
    return current_domain.process(SeedNationwideZone(), asynchronous=False)


@pytest.fixture()
def z1_id(nationwide_id):
    return create_zone("west-1", ["400001", "400002"], display_name="West One")


@pytest.fixture()
def w1_id(z1_id):
    return create_zonal("W1", [z1_id])


@pytest.fixture()
def d1_id(w1_id):
    return create_division("D1", w1_id, ["400001"])


@pytest.fixture()
def p1(catalog):
    catalog.add_product("P1", variant_ids=["P1-RED"])
    return "P1"


@pytest.fixture()
def make_zone():
    return create_zone


@pytest.fixture()
def make_zonal():
    return create_zonal


@pytest.fixture()
def make_division():
    return create_division
