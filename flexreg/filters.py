"""
Filter Engine Module

Reduces the record log by entity membership, inclusive date range and
an optional field-equals-option criterion. All criteria are optional and
combined with AND; no criteria returns every record.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Any, Iterable, Tuple
import logging

from .records import Record, RecordStore
from .timeutil import DateLike, start_of_day, end_of_day, utcnow


logger = logging.getLogger(__name__)


@dataclass
class FilterCriteria:
    """Conjunctive record filter"""
    entity_id: Optional[str] = None
    entity_ids: List[str] = field(default_factory=list)
    from_date: Optional[DateLike] = None
    to_date: Optional[DateLike] = None
    horizontal_field_id: Optional[str] = None
    horizontal_field_option: Optional[Any] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'FilterCriteria':
        """Build criteria from snake_case or camelCase keys"""
        data = data or {}

        def pick(*keys):
            for key in keys:
                if data.get(key) not in (None, ""):
                    return data[key]
            return None

        return cls(
            entity_id=pick("entity_id", "entityId"),
            entity_ids=list(pick("entity_ids", "entityIds") or []),
            from_date=pick("from_date", "fromDate"),
            to_date=pick("to_date", "toDate"),
            horizontal_field_id=pick("horizontal_field_id", "horizontalFieldId"),
            horizontal_field_option=pick("horizontal_field_option", "horizontalFieldOption")
        )


def apply_filters(records: Iterable[Record], criteria: Optional[FilterCriteria] = None) -> List[Record]:
    """Return a new list with the records that satisfy every criterion"""
    criteria = criteria or FilterCriteria()
    result = list(records)

    if criteria.entity_id:
        result = [r for r in result if r.entity_id == criteria.entity_id]

    if criteria.entity_ids:
        allowed = set(criteria.entity_ids)
        result = [r for r in result if r.entity_id in allowed]

    lower = start_of_day(criteria.from_date) if criteria.from_date else None
    upper = end_of_day(criteria.to_date) if criteria.to_date else None
    if lower or upper:
        kept = []
        for record in result:
            instant = record.instant
            if lower and instant < lower:
                continue
            if upper and instant > upper:
                continue
            kept.append(record)
        result = kept

    if criteria.horizontal_field_id and criteria.horizontal_field_option is not None:
        result = [
            r for r in result
            if r.data.get(criteria.horizontal_field_id) == criteria.horizontal_field_option
        ]

    return result


class FilterEngine:
    """Record filtering bound to a record store"""

    def __init__(self, record_store: RecordStore):
        self.record_store = record_store

    def filter(self, criteria: Optional[FilterCriteria] = None) -> List[Record]:
        """Filter by a single ``entity_id`` plus dates"""
        criteria = criteria or FilterCriteria()
        single = FilterCriteria(
            entity_id=criteria.entity_id,
            from_date=criteria.from_date,
            to_date=criteria.to_date
        )
        return apply_filters(self.record_store.get_all(), single)

    def filter_multiple(self, criteria: Optional[FilterCriteria] = None) -> List[Record]:
        """Filter by a set of ``entity_ids`` plus dates; an empty set keeps all entities"""
        criteria = criteria or FilterCriteria()
        multiple = FilterCriteria(
            entity_ids=list(criteria.entity_ids),
            from_date=criteria.from_date,
            to_date=criteria.to_date,
            horizontal_field_id=criteria.horizontal_field_id,
            horizontal_field_option=criteria.horizontal_field_option
        )
        return apply_filters(self.record_store.get_all(), multiple)


WEEKDAYS = {
    "lastMonday": 0,
    "lastTuesday": 1,
    "lastWednesday": 2,
    "lastThursday": 3,
    "lastFriday": 4,
    "lastSaturday": 5,
    "lastSunday": 6,
}


def shortcut_range(name: str, today: Optional[date] = None) -> Tuple[str, str]:
    """
    Resolve a named date shortcut into an inclusive (from, to) pair of
    YYYY-MM-DD strings. Weeks start on Monday.
    """
    today = today or utcnow().date()

    if name == "yesterday":
        start = end = today - timedelta(days=1)
    elif name == "thisWeek":
        start = today - timedelta(days=today.weekday())
        end = today
    elif name == "lastWeek":
        start = today - timedelta(days=today.weekday() + 7)
        end = start + timedelta(days=6)
    elif name == "thisMonth":
        start = today.replace(day=1)
        end = today
    elif name == "lastMonth":
        end = today.replace(day=1) - timedelta(days=1)
        start = end.replace(day=1)
    elif name in WEEKDAYS:
        # That weekday within last week
        last_monday = today - timedelta(days=today.weekday() + 7)
        start = end = last_monday + timedelta(days=WEEKDAYS[name])
    else:
        raise ValueError(f"Unknown date shortcut: {name}")

    return start.isoformat(), end.isoformat()
