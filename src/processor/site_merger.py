"""
Campsite Availability Sync - Cross-Fetch Merger
Folds per-month fetch results for the same site into one record whose date
map spans the whole requested range.
"""

from copy import deepcopy
from typing import Dict, Iterable, List

from models.availability import NormalizedSite, SiteKey

# Static metadata back-filled from later months when the first sighting lacked it
_METADATA_FIELDS = (
    'site_name',
    'facility_name',
    'external_site_id',
    'external_unit_type_id',
    'site_type',
    'is_ada',
    'vehicle_length',
)


class SiteMerger:
    """
    Incremental merger keyed by SiteKey.

    Metadata is first-seen-wins; date maps are unioned, a later value for
    an already-seen date overwriting the earlier one. Output preserves
    first-seen order.
    """

    def __init__(self, park_id: int = 0):
        self.park_id = park_id
        self._sites: Dict[SiteKey, NormalizedSite] = {}

    def add(self, site: NormalizedSite) -> NormalizedSite:
        key = site.key(self.park_id)
        existing = self._sites.get(key)

        if existing is None:
            merged = deepcopy(site)
            self._sites[key] = merged
            return merged

        for field_name in _METADATA_FIELDS:
            if _is_empty(getattr(existing, field_name)):
                value = getattr(site, field_name)
                if not _is_empty(value):
                    setattr(existing, field_name, value)

        existing.dates.update(site.dates)
        return existing

    def add_all(self, sites: Iterable[NormalizedSite]) -> None:
        for site in sites:
            self.add(site)

    def sites(self) -> List[NormalizedSite]:
        return list(self._sites.values())

    def keys(self) -> List[SiteKey]:
        return list(self._sites.keys())

    def __len__(self) -> int:
        return len(self._sites)


def merge_site_entries(base: Iterable[NormalizedSite], new: Iterable[NormalizedSite]) -> List[NormalizedSite]:
    """
    Merge two fetch results for the same park.

    Args:
        base: Sites from earlier months
        new: Sites from the next month

    Returns:
        Merged site list in first-seen order; inputs are not modified
    """
    merger = SiteMerger()
    merger.add_all(base)
    merger.add_all(new)
    return merger.sites()


def _is_empty(value) -> bool:
    return value is None or value == '' or value is False or value == 0
