"""BDD tests for availability resolution."""

from allocation.availability.resolver import AvailabilityResolver
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/availability_resolution.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(
    parsers.cfparse('availability of "{product_id}" is resolved for pincode "{pincode}"'),
    target_fixture="resolution",
)
def resolve(product_id, pincode):
    return AvailabilityResolver().resolve(pincode, product_id)


@when(
    parsers.cfparse('availability of variant "{variant_id}" of "{product_id}" is resolved for pincode "{pincode}"'),
    target_fixture="resolution",
)
def resolve_variant(variant_id, product_id, pincode):
    return AvailabilityResolver().resolve(pincode, product_id, variant_id)


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the classification is "{classification}"'))
def classification_is(resolution, classification):
    assert resolution.classification.value == classification


@then(parsers.cfparse('warehouse "{warehouse}" offers {quantity:d} units'))
def warehouse_offers(world, resolution, warehouse, quantity):
    assert resolution.pool.get(world[warehouse]) == quantity


@then(parsers.cfparse("the pool lists {count:d} warehouse"))
def pool_size(resolution, count):
    assert len(resolution.pool) == count


@then(parsers.cfparse("the pool totals {total:d} units"))
def pool_total(resolution, total):
    assert resolution.total == total


@then(parsers.cfparse('the product is unavailable because "{reason}"'))
def unavailable_because(resolution, reason):
    assert resolution.is_available is False
    assert resolution.pool == {}
    assert resolution.reason == reason
