"""Application tests for zone and pincode management commands."""

import json

import pytest
from allocation.exceptions import ConflictError, HasDependents, UnknownPincode
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
    parse_pincode_entries,
)
from allocation.geography.pincode import Pincode
from allocation.geography.store import GeographyStore
from allocation.geography.zone import Zone
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _process(command):
    return current_domain.process(command, asynchronous=False)


class TestSeedNationwide:
    def test_seed_is_idempotent(self):
        first = _process(SeedNationwideZone())
        second = _process(SeedNationwideZone())
        assert first == second
        zones = current_domain.repository_for(Zone).list_all()
        assert len(zones) == 1
        assert zones[0].is_nationwide is True


class TestParsePincodeEntries:
    def test_strings_and_dicts(self):
        entries = parse_pincode_entries(json.dumps(["400001", {"pincode": "400002", "city": "Mumbai"}]))
        assert [e["code"] for e in entries] == ["400001", "400002"]
        assert entries[1]["city"] == "Mumbai"

    def test_duplicates_collapse(self):
        assert len(parse_pincode_entries(["400001", " 400001"])) == 1

    def test_not_json(self):
        with pytest.raises(ValidationError):
            parse_pincode_entries("400001,400002")


class TestCreateZone:
    def test_create_zone_with_pincodes(self, nationwide_id, make_zone):
        zone_id = make_zone("west-1", ["400001", "400002"])
        zone = current_domain.repository_for(Zone).get(zone_id)
        assert zone.name == "west-1"
        pincode = current_domain.repository_for(Pincode).get("400001")
        assert pincode.zone_id == zone_id

    def test_zone_needs_a_pincode(self, nationwide_id):
        with pytest.raises(ValidationError):
            _process(CreateZone(name="west-1", display_name="West", pincodes="[]"))

    def test_duplicate_name_conflicts_case_insensitively(self, z1_id, make_zone):
        with pytest.raises(ConflictError):
            make_zone("WEST-1", ["500001"])

    def test_reserved_name_conflicts(self, nationwide_id, make_zone):
        with pytest.raises(ConflictError):
            make_zone("global", ["500001"])

    def test_pincode_in_another_zone_conflicts(self, z1_id, make_zone):
        with pytest.raises(ConflictError) as exc:
            make_zone("west-2", ["500001", "400001"])
        assert "400001" in exc.value.messages["pincodes"][0]

    def test_rejected_zone_writes_nothing(self, z1_id, make_zone):
        with pytest.raises(ConflictError):
            make_zone("west-2", ["500001", "400001"])
        assert current_domain.repository_for(Zone).find_by_name("west-2") is None
        assert "500001" not in {p.code for p in current_domain.repository_for(Pincode).list_all()}

    def test_malformed_pincode_rejected(self, nationwide_id, make_zone):
        with pytest.raises(ValidationError):
            make_zone("west-2", ["5000"])

    def test_claims_registered_unassigned_pincode(self, nationwide_id, make_zone):
        _process(RegisterPincode(pincode="500001", city="Hyderabad"))
        zone_id = make_zone("south-1", ["500001"])
        pincode = current_domain.repository_for(Pincode).get("500001")
        assert pincode.zone_id == zone_id
        assert pincode.city == "Hyderabad"


class TestUpdateZone:
    def test_rename(self, z1_id):
        _process(UpdateZone(zone_id=z1_id, name="west-one", display_name="West (1)"))
        zone = current_domain.repository_for(Zone).get(z1_id)
        assert zone.name == "west-one"
        assert zone.display_name == "West (1)"

    def test_rename_to_taken_name(self, z1_id, make_zone):
        make_zone("south-1", ["500001"])
        with pytest.raises(ConflictError):
            _process(UpdateZone(zone_id=z1_id, name="South-1"))


class TestZoneActivation:
    def test_deactivate_and_activate(self, z1_id):
        _process(DeactivateZone(zone_id=z1_id))
        assert current_domain.repository_for(Zone).get(z1_id).is_active is False
        _process(ActivateZone(zone_id=z1_id))
        assert current_domain.repository_for(Zone).get(z1_id).is_active is True

    def test_deactivate_zone_served_by_warehouse(self, w1_id, z1_id):
        with pytest.raises(HasDependents):
            _process(DeactivateZone(zone_id=z1_id))

    def test_nationwide_cannot_be_deactivated(self, nationwide_id):
        with pytest.raises(ConflictError):
            _process(DeactivateZone(zone_id=nationwide_id))


class TestZoneDeletion:
    def test_delete_releases_pincodes_to_nationwide(self, z1_id, nationwide_id):
        _process(DeleteZone(zone_id=z1_id))

        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(Zone).get(z1_id)
        assert current_domain.repository_for(Pincode).get("400001").zone_id is None
        assert str(GeographyStore().zone_of("400002").id) == nationwide_id

    def test_delete_zone_served_by_warehouse(self, w1_id, z1_id):
        with pytest.raises(HasDependents) as exc:
            _process(DeleteZone(zone_id=z1_id))
        assert "W1" in exc.value.messages["zone_id"][0]
        assert current_domain.repository_for(Pincode).get("400001").zone_id == z1_id

    def test_nationwide_cannot_be_deleted(self, nationwide_id):
        with pytest.raises(ConflictError):
            _process(DeleteZone(zone_id=nationwide_id))

    def test_delete_unknown_zone(self, nationwide_id):
        with pytest.raises(ObjectNotFoundError):
            _process(DeleteZone(zone_id="no-such-zone"))

    def test_name_is_free_again_after_delete(self, z1_id, make_zone):
        _process(DeleteZone(zone_id=z1_id))
        assert make_zone("west-1", ["400001"])


class TestZoneStatistics:
    def test_counts(self, z1_id, make_zone):
        south = make_zone("south-1", ["500001"])
        _process(DeactivateZone(zone_id=south))
        _process(RegisterPincode(pincode="110001"))

        stats = GeographyStore().statistics()

        assert stats.total_zones == 3
        assert stats.active_zones == 2
        assert stats.nationwide_zones == 1
        assert stats.total_pincodes == 3
        assert stats.unassigned_pincodes == 1

    def test_empty_geography(self):
        stats = GeographyStore().statistics()
        assert (stats.total_zones, stats.total_pincodes) == (0, 0)


class TestPincodeMembership:
    def test_add_pincode(self, z1_id):
        _process(AddPincode(zone_id=z1_id, pincode="400003", city="Mumbai"))
        assert current_domain.repository_for(Pincode).get("400003").zone_id == z1_id

    def test_add_pincode_to_nationwide_rejected(self, nationwide_id):
        with pytest.raises(ValidationError):
            _process(AddPincode(zone_id=nationwide_id, pincode="400003"))

    def test_add_pincode_owned_elsewhere(self, z1_id, make_zone):
        south = make_zone("south-1", ["500001"])
        with pytest.raises(ConflictError):
            _process(AddPincode(zone_id=south, pincode="400001"))

    def test_remove_pincode(self, z1_id):
        _process(RemovePincode(zone_id=z1_id, pincode="400002"))
        assert current_domain.repository_for(Pincode).get("400002").zone_id is None

    def test_remove_pincode_not_in_zone(self, z1_id, make_zone):
        south = make_zone("south-1", ["500001"])
        with pytest.raises(ValidationError):
            _process(RemovePincode(zone_id=south, pincode="400001"))

    def test_remove_unknown_pincode(self, z1_id):
        with pytest.raises(UnknownPincode):
            _process(RemovePincode(zone_id=z1_id, pincode="999999"))

    def test_remove_pincode_served_by_division_blocked(self, d1_id, z1_id):
        with pytest.raises(HasDependents):
            _process(RemovePincode(zone_id=z1_id, pincode="400001"))

    def test_remove_pincode_when_parent_serves_nationwide(self, nationwide_id, z1_id, make_zonal, make_division):
        parent = make_zonal("Central", [nationwide_id])
        make_division("D-central", parent, ["400002"])
        _process(RemovePincode(zone_id=z1_id, pincode="400002"))
        assert current_domain.repository_for(Pincode).get("400002").zone_id is None

    def test_move_pincode(self, z1_id, make_zone):
        south = make_zone("south-1", ["500001"])
        _process(MovePincode(pincode="400002", target_zone_id=south))
        assert current_domain.repository_for(Pincode).get("400002").zone_id == south

    def test_move_pincode_served_by_division_blocked(self, d1_id, make_zone):
        south = make_zone("south-1", ["500001"])
        with pytest.raises(HasDependents):
            _process(MovePincode(pincode="400001", target_zone_id=south))

    def test_move_into_same_zone_rejected(self, z1_id):
        with pytest.raises(ValidationError):
            _process(MovePincode(pincode="400001", target_zone_id=z1_id))

    def test_register_twice_conflicts(self, nationwide_id):
        _process(RegisterPincode(pincode="110001"))
        with pytest.raises(ConflictError):
            _process(RegisterPincode(pincode="110001"))

    def test_toggle_status(self, z1_id):
        _process(SetPincodeStatus(pincode="400001", is_active=False))
        assert current_domain.repository_for(Pincode).get("400001").is_active is False
        _process(SetPincodeStatus(pincode="400001", is_active=True))
        assert current_domain.repository_for(Pincode).get("400001").is_active is True
