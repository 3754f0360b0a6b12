"""
Campsite Availability Sync - Weekend Detector
Finds Friday+Saturday pairs where both nights are available.
"""

from datetime import date, timedelta
from typing import Dict, List, Mapping, Optional, Union

from models.availability import WeekendPair

FRIDAY = 4

DateKey = Union[date, str]


def get_weekend_dates(dates: Mapping[DateKey, bool]) -> List[WeekendPair]:
    """
    Extract available Friday+Saturday pairs.

    Both nights must be strictly True; truthy non-bool values do not count.

    Args:
        dates: date (or ISO "YYYY-MM-DD" string) -> available

    Returns:
        Pairs ordered by Friday

    Example:
        >>> get_weekend_dates({"2025-10-10": True, "2025-10-11": True,
        ...                    "2025-10-17": True, "2025-10-18": False})
        [WeekendPair(friday=datetime.date(2025, 10, 10), saturday=datetime.date(2025, 10, 11))]
    """
    by_date: Dict[date, bool] = {}
    for key, available in dates.items():
        night = _to_date(key)
        if night is not None:
            by_date[night] = available

    pairs = []
    for night in sorted(by_date):
        if night.weekday() != FRIDAY:
            continue
        saturday = night + timedelta(days=1)
        if by_date[night] is True and by_date.get(saturday) is True:
            pairs.append(WeekendPair(friday=night, saturday=saturday))
    return pairs


def has_weekend(dates: Mapping[DateKey, bool]) -> bool:
    return bool(get_weekend_dates(dates))


def _to_date(value: DateKey) -> Optional[date]:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None
