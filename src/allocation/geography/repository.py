"""Repositories for the Zone and Pincode aggregates."""

from allocation.domain import allocation
from allocation.geography.pincode import Pincode
from allocation.geography.zone import Zone
from allocation.utils.queries import fetch_all


@allocation.repository(part_of=Zone)
class ZoneRepository:
    def list_all(self) -> list[Zone]:
        return fetch_all(self._dao)

    def find_by_name(self, name: str) -> Zone | None:
        """Case-insensitive name lookup."""
        wanted = (name or "").strip().lower()
        return next((z for z in self.list_all() if z.name.lower() == wanted), None)

    def find_nationwide(self) -> Zone | None:
        zones = fetch_all(self._dao, is_nationwide=True)
        return zones[0] if zones else None


@allocation.repository(part_of=Pincode)
class PincodeRepository:
    def list_all(self) -> list[Pincode]:
        return fetch_all(self._dao)

    def find_by_zone(self, zone_id) -> list[Pincode]:
        return fetch_all(self._dao, zone_id=str(zone_id))
