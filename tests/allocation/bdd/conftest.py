"""Shared BDD fixtures and step definitions for the Allocation domain."""

import pytest
from allocation.exceptions import ConflictError, HasDependents
from allocation.geography.management import RegisterPincode, SetPincodeStatus
from allocation.stock.ledger import StockLedger
from protean import current_domain
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

_ERROR_CLASSES = {
    "validation": ValidationError,
    "conflict": ConflictError,
    "dependency": HasDependents,
}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def world(nationwide_id):
    """Names used in scenarios mapped to stored ids."""
    return {"nationwide": nationwide_id}


@pytest.fixture()
def error():
    """Container for captured rejections."""
    return {"exc": None}


def _split(values):
    return [v.strip() for v in values.split(",") if v.strip()]


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('zone "{name}" covers pincodes "{pincodes}"'))
def zone_covers(world, make_zone, name, pincodes):
    world[name] = make_zone(name, _split(pincodes))


@given(parsers.cfparse('pincode "{pincode}" is registered without a zone'))
def unassigned_pincode(pincode):
    current_domain.process(RegisterPincode(pincode=pincode), asynchronous=False)


@given(parsers.cfparse('pincode "{pincode}" is inactive'))
def inactive_pincode(pincode):
    current_domain.process(SetPincodeStatus(pincode=pincode, is_active=False), asynchronous=False)


@given(parsers.cfparse('zonal warehouse "{name}" serves zones "{zones}"'))
def zonal_warehouse(world, make_zonal, name, zones):
    world[name] = make_zonal(name, [world[z] for z in _split(zones)])


@given(parsers.cfparse('division warehouse "{name}" under "{parent}" serves pincodes "{pincodes}"'))
def division_warehouse(world, make_division, name, parent, pincodes):
    world[name] = make_division(name, world[parent], _split(pincodes))


@given(parsers.cfparse('product "{product_id}" is sold nationwide'))
def nationwide_product(catalog, product_id):
    catalog.add_product(product_id, variant_ids=[f"{product_id}-RED"])


@given(parsers.cfparse('product "{product_id}" is sold only in zones "{zones}"'))
def zonal_product(catalog, world, product_id, zones):
    catalog.add_product(product_id, delivery_type="zonal", allowed_zone_ids=[world[z] for z in _split(zones)])


@given(parsers.cfparse('"{warehouse}" holds {quantity:d} units of "{product_id}"'))
def warehouse_holds(world, warehouse, quantity, product_id):
    StockLedger().set_stock(world[warehouse], product_id, quantity=quantity)


@given(parsers.cfparse('"{warehouse}" holds {quantity:d} units of variant "{variant_id}" of "{product_id}"'))
def warehouse_holds_variant(world, warehouse, quantity, product_id, variant_id):
    StockLedger().set_stock(world[warehouse], product_id, variant_id=variant_id, quantity=quantity)


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then(parsers.cfparse("the action fails with a {kind} error"))
def action_fails(error, kind):
    assert error["exc"] is not None, "Expected an error but none was raised"
    assert isinstance(error["exc"], _ERROR_CLASSES[kind])
