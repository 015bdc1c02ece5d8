"""Allocation load test scenarios.

Stateful SequentialTaskSet journeys covering geography and warehouse
setup, division claims under contention, and stock assignment, plus a
read-heavy user that hammers availability resolution.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task
from locust.exception import StopUser

from loadtests.data_generators import (
    catalog_product_data,
    division_warehouse_data,
    pincode_block,
    set_stock_data,
    zonal_warehouse_data,
    zone_data,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import AllocationState


class _AllocationSteps:
    """Shared request steps. Hosts provide ``client``, ``state`` and ``abort()``."""

    def seed_nationwide(self):
        with self.client.post("/zones/nationwide", catch_response=True, name="POST /zones/nationwide") as resp:
            if resp.status_code != 201:
                resp.failure(f"Seed nationwide failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.abort()

    def create_zone(self):
        payload = zone_data(pincode_block(6))
        with self.client.post("/zones", json=payload, catch_response=True, name="POST /zones") as resp:
            if resp.status_code == 201:
                self.state.zone_id = resp.json()["zone_id"]
                self.state.pincodes = [entry["pincode"] for entry in payload["pincodes"]]
            else:
                resp.failure(f"Create zone failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.abort()

    def create_zonal_warehouse(self):
        with self.client.post(
            "/warehouses/zonal",
            json=zonal_warehouse_data([self.state.zone_id]),
            catch_response=True,
            name="POST /warehouses/zonal",
        ) as resp:
            if resp.status_code == 201:
                self.state.zonal_warehouse_id = resp.json()["warehouse_id"]
            else:
                resp.failure(f"Create zonal warehouse failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.abort()

    def register_product(self):
        payload = catalog_product_data()
        with self.client.post(
            "/catalog/products",
            json=payload,
            catch_response=True,
            name="POST /catalog/products",
        ) as resp:
            if resp.status_code == 201:
                self.state.product_id = payload["product_id"]
                self.state.variant_ids = payload["variant_ids"]
            else:
                resp.failure(f"Register product failed: {resp.status_code} — {extract_error_detail(resp)}")
                self.abort()

    def claim_division(self, pincodes, expect_conflict=False):
        with self.client.post(
            "/warehouses/division",
            json=division_warehouse_data(self.state.zonal_warehouse_id, pincodes),
            catch_response=True,
            name="POST /warehouses/division",
        ) as resp:
            if resp.status_code == 201 and not expect_conflict:
                self.state.division_ids.append(resp.json()["warehouse_id"])
                self.state.claimed_pincodes.extend(pincodes)
            elif resp.status_code == 409 and expect_conflict:
                resp.success()
            else:
                resp.failure(f"Division claim: unexpected {resp.status_code} — {extract_error_detail(resp)}")

    def set_stock(self, warehouse_id, quantity=None, variant_id=None):
        with self.client.put(
            "/stock",
            json=set_stock_data(warehouse_id, self.state.product_id, variant_id, quantity),
            catch_response=True,
            name="PUT /stock",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Set stock failed: {resp.status_code} — {extract_error_detail(resp)}")

    def resolve(self, pincode, expected=None, variant_id=None):
        params = {"pincode": pincode, "product_id": self.state.product_id}
        if variant_id:
            params["variant_id"] = variant_id
        with self.client.get(
            "/availability",
            params=params,
            catch_response=True,
            name="GET /availability",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Resolve failed: {resp.status_code} — {extract_error_detail(resp)}")
            elif expected and resp.json()["classification"] != expected:
                resp.failure(f"Expected {expected}, got {resp.json()['classification']}")


class _AllocationJourney(_AllocationSteps, SequentialTaskSet):
    def on_start(self):
        self.state = AllocationState()

    def abort(self):
        self.interrupt()


class WarehouseSetupJourney(_AllocationJourney):
    """Seed -> Zone -> Zonal -> Product -> Divisions -> Stock -> Resolve.

    Models an operations manager bringing a new region online and
    stocking a product across both tiers.
    """

    @task
    def setup_geography(self):
        self.seed_nationwide()
        self.create_zone()

    @task
    def setup_warehouses(self):
        self.create_zonal_warehouse()
        self.register_product()

    @task
    def claim_divisions(self):
        self.claim_division(self.state.pincodes[:2])
        self.claim_division(self.state.pincodes[2:4])

    @task
    def view_available_pincodes(self):
        with self.client.get(
            f"/warehouses/{self.state.zonal_warehouse_id}/available-pincodes",
            catch_response=True,
            name="GET /warehouses/{id}/available-pincodes",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Available pincodes failed: {extract_error_detail(resp)}")
                return
            free = [entry["pincode"] for entry in resp.json() if entry["is_available"]]
            if sorted(free) != sorted(self.state.free_pincodes):
                resp.failure(f"Free pincodes mismatch: {free}")

    @task
    def assign_stock(self):
        self.set_stock(self.state.zonal_warehouse_id)
        for division_id in self.state.division_ids:
            self.set_stock(division_id)

    @task
    def check_availability(self):
        self.resolve(random.choice(self.state.pincodes), expected="zone_available")

    @task
    def done(self):
        self.interrupt()


class DivisionFallbackJourney(_AllocationJourney):
    """Zonal stock emptied -> divisions answer for their own pincodes only."""

    @task
    def setup(self):
        self.seed_nationwide()
        self.create_zone()
        self.create_zonal_warehouse()
        self.register_product()
        self.claim_division(self.state.pincodes[:3])

    @task
    def stock_divisions_only(self):
        self.set_stock(self.state.zonal_warehouse_id, quantity=0)
        self.set_stock(self.state.division_ids[0], quantity=random.randint(1, 50))

    @task
    def resolve_claimed_pincode(self):
        self.resolve(self.state.claimed_pincodes[0], expected="division_only")

    @task
    def resolve_unclaimed_pincode(self):
        self.resolve(self.state.free_pincodes[0], expected="unavailable")

    @task
    def done(self):
        self.interrupt()


class SiblingClaimJourney(_AllocationJourney):
    """Repeated overlapping division claims under one parent.

    The first claim wins; every overlapping claim must come back 409.
    """

    @task
    def setup(self):
        self.seed_nationwide()
        self.create_zone()
        self.create_zonal_warehouse()

    @task
    def first_claim(self):
        self.claim_division(self.state.pincodes[:2])

    @task
    def overlapping_claims(self):
        for _ in range(3):
            overlap = [random.choice(self.state.claimed_pincodes), random.choice(self.state.free_pincodes)]
            self.claim_division(overlap, expect_conflict=True)

    @task
    def done(self):
        self.interrupt()


class AllocationAdminUser(HttpUser):
    """Locust user simulating allocation administration.

    Weighted distribution:
    - 50% Warehouse setup (full region onboarding)
    - 30% Division fallback (stock moved down a tier)
    - 20% Sibling claim contention
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        WarehouseSetupJourney: 5,
        DivisionFallbackJourney: 3,
        SiblingClaimJourney: 2,
    }


class AvailabilityReaderUser(_AllocationSteps, HttpUser):
    """Storefront traffic: availability lookups against one stocked region.

    Builds its own region on start, then only reads.
    """

    wait_time = between(0.1, 0.5)

    def abort(self):
        raise StopUser()

    def on_start(self):
        self.state = AllocationState()
        self.seed_nationwide()
        self.create_zone()
        self.create_zonal_warehouse()
        self.register_product()
        self.claim_division(self.state.pincodes[:2])
        for division_id in self.state.division_ids:
            self.set_stock(division_id)
        for variant_id in self.state.variant_ids:
            self.set_stock(self.state.zonal_warehouse_id, variant_id=variant_id)

    @task(6)
    def resolve_variant(self):
        self.resolve(
            random.choice(self.state.pincodes),
            expected="zone_available",
            variant_id=random.choice(self.state.variant_ids),
        )

    @task(3)
    def resolve_base_product(self):
        # Base product is only stocked at the division
        pincode = random.choice(self.state.pincodes)
        expected = "division_only" if pincode in self.state.claimed_pincodes else "unavailable"
        self.resolve(pincode, expected=expected)

    @task(1)
    def resolve_unknown_pincode(self):
        self.resolve(pincode_block(1)[0], expected="unavailable")

    @task(2)
    def resolve_cart(self):
        with self.client.post(
            "/availability/batch",
            json={"pincode": random.choice(self.state.pincodes), "product_ids": [self.state.product_id]},
            catch_response=True,
            name="POST /availability/batch",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Batch resolve failed: {resp.status_code} — {extract_error_detail(resp)}")
