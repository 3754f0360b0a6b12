"""
Campsite Availability Sync - Grid Normalizer
Converts a raw ReserveCalifornia facility grid into per-site date maps.

Grid shape:
    {"Facility": {"Units": {<unitKey>: {"Name", "ShortName", "UnitTypeId",
                  "IsAda", "VehicleLength",
                  "Slices": {<date>: {"Date", "IsFree", "IsBlocked", "ReservationId"}}}}}}

Units and Slices may each be a JSON object or a JSON array.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple
from dateutil.parser import isoparse

from collector.fetcher import MalformedResponseError
from models.availability import NormalizedSite
from utils.config import MAX_FUTURE_DAYS


def is_slice_available(grid_slice: Dict[str, Any]) -> bool:
    """
    A night is available iff IsFree is the boolean true, IsBlocked is false
    and ReservationId is 0. Missing values default to not free, not blocked
    and no reservation.
    """
    is_free = grid_slice.get('IsFree') is True
    is_blocked = bool(grid_slice.get('IsBlocked', False))
    return is_free and not is_blocked and _reservation_id(grid_slice) == 0


def parse_slice_date(value: Any) -> Optional[date]:
    """
    Parse a slice Date ("2025-10-10" or "2025-10-10T00:00:00").

    Returns:
        date, or None if the value is missing or unparseable
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return isoparse(value.strip()).date()
    except (ValueError, OverflowError):
        return None


def normalize_grid(
    grid: Dict[str, Any],
    external_facility_id: str,
    facility_name: Optional[str] = None,
    today: Optional[date] = None
) -> List[NormalizedSite]:
    """
    Flatten one facility's grid into NormalizedSite records.

    Args:
        grid: Raw grid envelope
        external_facility_id: ReserveCalifornia FacilityId of the grid
        facility_name: Display name carried onto each record
        today: Reference date for the future-date bound (defaults to today)

    Returns:
        One NormalizedSite per unit, in grid order. Units without slices
        still produce a record with an empty date map.

    Raises:
        MalformedResponseError: If the grid lacks Facility.Units
    """
    facility = grid.get('Facility') if isinstance(grid, dict) else None
    if not isinstance(facility, dict) or 'Units' not in facility:
        raise MalformedResponseError(f"Grid for facility {external_facility_id} has no Facility.Units")

    today = today or date.today()
    horizon = today + timedelta(days=MAX_FUTURE_DAYS)
    external_facility_id = str(external_facility_id)

    sites = []
    for unit_key, unit in _iter_units(facility.get('Units')):
        if not isinstance(unit, dict):
            continue

        site_number = unit.get('ShortName') or unit_key
        if site_number is None or str(site_number) == '':
            continue

        unit_id = unit.get('UnitId', unit_key)

        site = NormalizedSite(
            site_number=str(site_number),
            external_facility_id=external_facility_id,
            site_name=unit.get('Name') or None,
            facility_name=facility_name,
            external_site_id=str(unit_id) if unit_id is not None else None,
            external_unit_type_id=_to_int(unit.get('UnitTypeId')),
            is_ada=bool(unit.get('IsAda', False)),
            vehicle_length=_to_int(unit.get('VehicleLength')) or 0,
        )

        for grid_slice in _iter_slices(unit.get('Slices')):
            night = parse_slice_date(grid_slice.get('Date'))
            if night is None or night > horizon:
                continue
            site.dates[night] = is_slice_available(grid_slice)

        sites.append(site)

    return sites


def _iter_units(units: Any) -> Iterable[Tuple[Optional[str], Any]]:
    if isinstance(units, dict):
        for key, unit in units.items():
            yield str(key), unit
    elif isinstance(units, list):
        for unit in units:
            key = None
            if isinstance(unit, dict):
                key = unit.get('UnitId', unit.get('Name'))
            yield (str(key) if key is not None else None), unit


def _iter_slices(slices: Any) -> Iterable[Dict[str, Any]]:
    if isinstance(slices, dict):
        slices = list(slices.values())
    if not isinstance(slices, list):
        return
    for grid_slice in slices:
        if isinstance(grid_slice, dict):
            yield grid_slice


def _reservation_id(grid_slice: Dict[str, Any]) -> int:
    value = grid_slice.get('ReservationId')
    if value is None:
        return 0
    converted = _to_int(value)
    # Non-numeric ids still denote a reservation
    return 1 if converted is None else converted


def _to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
