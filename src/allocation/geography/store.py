"""Geography store — read facade over zones and pincode memberships."""

from dataclasses import dataclass

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from allocation.exceptions import UnknownPincode
from allocation.geography.pincode import Pincode, normalize_pincode
from allocation.geography.zone import Zone


@dataclass(frozen=True)
class ZoneStatistics:
    total_zones: int
    active_zones: int
    nationwide_zones: int
    total_pincodes: int
    unassigned_pincodes: int


class GeographyStore:
    """Answers which zone a pincode is in and which pincodes a zone covers."""

    @property
    def zones(self):
        return current_domain.repository_for(Zone)

    @property
    def pincodes(self):
        return current_domain.repository_for(Pincode)

    def get_zone(self, zone_id) -> Zone:
        return self.zones.get(zone_id)

    def nationwide_zone(self) -> Zone | None:
        return self.zones.find_nationwide()

    def find_pincode(self, code) -> Pincode | None:
        try:
            return self.pincodes.get(normalize_pincode(code))
        except ObjectNotFoundError:
            return None

    def get_pincode(self, code) -> Pincode:
        pincode = self.find_pincode(code)
        if pincode is None:
            raise UnknownPincode(str(code))
        return pincode

    def _member_zone(self, record) -> Zone | None:
        """Active ordinary zone the pincode record belongs to, if any."""
        if not record.zone_id:
            return None
        try:
            zone = self.get_zone(record.zone_id)
        except ObjectNotFoundError:
            return None
        return zone if zone.is_active else None

    def zone_of(self, pincode) -> Zone:
        """The ordinary zone holding ``pincode``, else the nationwide zone.

        Raises UnknownPincode when the pincode has no record at all.
        """
        zone = self._member_zone(self.get_pincode(pincode))
        if zone is not None:
            return zone

        nationwide = self.nationwide_zone()
        if nationwide is None:
            raise ObjectNotFoundError({"zone": ["Nationwide zone has not been seeded"]})
        return nationwide

    def pincodes_of(self, zone_id) -> set[str]:
        """Member pincodes of a zone; every known pincode for the nationwide zone."""
        zone = self.get_zone(zone_id)
        if zone.is_nationwide:
            records = self.pincodes.list_all()
        else:
            records = self.pincodes.find_by_zone(zone.id)
        return {p.code for p in records}

    def zones_for(self, pincode) -> set[str]:
        """Destination zone set: the nationwide zone plus the pincode's own zone.

        Unknown pincodes only get the nationwide zone.
        """
        zone_ids = set()
        nationwide = self.nationwide_zone()
        if nationwide is not None:
            zone_ids.add(str(nationwide.id))

        record = self.find_pincode(pincode)
        if record is not None:
            zone = self._member_zone(record)
            if zone is not None:
                zone_ids.add(str(zone.id))
        return zone_ids

    def statistics(self) -> ZoneStatistics:
        """Zone counts and pincode membership counts for the zones dashboard."""
        zones = self.zones.list_all()
        records = self.pincodes.list_all()
        assigned = sum(1 for p in records if p.zone_id)
        return ZoneStatistics(
            total_zones=len(zones),
            active_zones=sum(1 for z in zones if z.is_active),
            nationwide_zones=sum(1 for z in zones if z.is_nationwide),
            total_pincodes=assigned,
            unassigned_pincodes=len(records) - assigned,
        )
