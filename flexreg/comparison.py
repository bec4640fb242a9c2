"""
Period Comparison Module

Current-versus-previous period analysis. The previous period always has
the same duration as the current one and ends the day before it starts.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Optional, Any, Iterable, Tuple
import logging

from .fields import Field
from .filters import FilterCriteria, apply_filters
from .records import Record
from .storage import Dataset
from .timeutil import DateLike, parse_day
from .values import coerce_number


logger = logging.getLogger(__name__)

MISSING_VALUE_LABEL = "N/A"

AGGREGATIONS = ("sum", "avg", "max", "min")


def previous_range(from_date: DateLike, to_date: DateLike) -> Tuple[str, str]:
    """
    Window of equal duration ending the day before ``from_date``.

    ``[D, D+6]`` maps to ``[D-7, D-1]``; a single day maps to the day before.
    """
    start = parse_day(from_date)
    end = parse_day(to_date)
    duration = end - start
    prev_to = start - timedelta(days=1)
    prev_from = prev_to - duration
    return prev_from.isoformat(), prev_to.isoformat()


def _values(records: Iterable[Record], field_id: str) -> List[float]:
    return [coerce_number(r.data[field_id]) for r in records if field_id in r.data]


def aggregate_field(records: Iterable[Record], field_id: str, agg: str = "sum") -> float:
    """Reduce a field over the records carrying it; no values reduce to 0"""
    if agg not in AGGREGATIONS:
        raise ValueError(f"Unsupported aggregation: {agg}")

    values = _values(records, field_id)
    if not values:
        return 0.0
    if agg == "avg":
        return sum(values) / len(values)
    if agg == "max":
        return max(values)
    if agg == "min":
        return min(values)
    return sum(values)


@dataclass
class Change:
    """Delta between a current and a previous value"""
    current: float
    previous: float
    diff: float
    percent: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current,
            "previous": self.previous,
            "diff": self.diff,
            "percent": self.percent
        }


def compute_change(current: float, previous: float) -> Change:
    """Difference and percent variation; a zero baseline yields 0%"""
    diff = current - previous
    percent = (diff / previous) * 100 if previous != 0 else 0.0
    return Change(current=current, previous=previous, diff=diff, percent=percent)


@dataclass
class FieldStats:
    sum: float = 0.0
    avg: float = 0.0
    max: float = 0.0
    min: float = 0.0
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"sum": self.sum, "avg": self.avg, "max": self.max, "min": self.min, "count": self.count}


def field_stats(records: Iterable[Record], field_id: str) -> FieldStats:
    """Sum, mean, max, min and count of a numeric field"""
    values = _values(records, field_id)
    if not values:
        return FieldStats()
    return FieldStats(
        sum=sum(values),
        avg=sum(values) / len(values),
        max=max(values),
        min=min(values),
        count=len(values)
    )


@dataclass
class NumericComparison:
    field_id: str
    field_name: str
    changes: Dict[str, Change] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fieldId": self.field_id,
            "field": self.field_name,
            "kind": "numeric",
            "changes": {name: change.to_dict() for name, change in self.changes.items()}
        }


@dataclass
class CategoricalComparison:
    field_id: str
    field_name: str
    rows: Dict[Any, Change] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fieldId": self.field_id,
            "field": self.field_name,
            "kind": "categorical",
            "rows": [
                {"value": value, **change.to_dict()} for value, change in self.rows.items()
            ]
        }


def compare_numeric(current: List[Record], previous: List[Record], fld: Field) -> NumericComparison:
    now = field_stats(current, fld.id)
    before = field_stats(previous, fld.id)
    comparison = NumericComparison(field_id=fld.id, field_name=fld.name)
    for name in ("sum", "avg", "max", "min", "count"):
        comparison.changes[name] = compute_change(getattr(now, name), getattr(before, name))
    return comparison


def _count_values(records: Iterable[Record], field_id: str) -> Dict[Any, int]:
    counts: Dict[Any, int] = {}
    for record in records:
        value = record.data.get(field_id)
        if value is None:
            value = MISSING_VALUE_LABEL
        counts[value] = counts.get(value, 0) + 1
    return counts


def compare_categorical(current: List[Record], previous: List[Record], fld: Field) -> CategoricalComparison:
    """Occurrence counts per distinct value, current period values first"""
    now = _count_values(current, fld.id)
    before = _count_values(previous, fld.id)
    comparison = CategoricalComparison(field_id=fld.id, field_name=fld.name)
    for value in dict.fromkeys(list(now) + list(before)):
        comparison.rows[value] = compute_change(now.get(value, 0), before.get(value, 0))
    return comparison


@dataclass
class PeriodComparison:
    from_date: str
    to_date: str
    previous_from: str
    previous_to: str
    current_count: int = 0
    previous_count: int = 0
    fields: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": {"from": self.from_date, "to": self.to_date, "count": self.current_count},
            "previous": {"from": self.previous_from, "to": self.previous_to, "count": self.previous_count},
            "fields": [f.to_dict() for f in self.fields]
        }


class PeriodComparisonEngine:
    """Compares fields between a date range and the range before it"""

    def __init__(self, dataset: Dataset):
        self.dataset = dataset

    def compare(self, field_ids: List[str], from_date: DateLike, to_date: DateLike,
                entity_ids: Optional[List[str]] = None) -> PeriodComparison:
        prev_from, prev_to = previous_range(from_date, to_date)
        snapshot = self.dataset.snapshot()
        records = [Record.from_dict(r) for r in snapshot["records"]]
        fields = {f["id"]: Field.from_dict(f) for f in snapshot["fields"] if f}

        current = apply_filters(records, FilterCriteria(
            entity_ids=list(entity_ids or []), from_date=from_date, to_date=to_date
        ))
        previous = apply_filters(records, FilterCriteria(
            entity_ids=list(entity_ids or []), from_date=prev_from, to_date=prev_to
        ))

        result = PeriodComparison(
            from_date=parse_day(from_date).isoformat(),
            to_date=parse_day(to_date).isoformat(),
            previous_from=prev_from,
            previous_to=prev_to,
            current_count=len(current),
            previous_count=len(previous)
        )

        for field_id in field_ids:
            fld = fields.get(field_id)
            if fld is None:
                logger.warning(f"Comparison skipped unknown field {field_id}")
                continue
            if fld.is_numeric:
                result.fields.append(compare_numeric(current, previous, fld))
            else:
                result.fields.append(compare_categorical(current, previous, fld))

        return result
