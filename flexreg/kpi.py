"""
KPI Summary Module

Simple descriptive metrics over a filtered record set: record count,
records per active day, distinct entities, per-period buckets, and
statistics for the fields configured as KPI fields.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Iterable
import logging

from .comparison import FieldStats, field_stats
from .fields import Field
from .filters import FilterCriteria, apply_filters
from .records import Record
from .storage import Dataset
from .timeutil import parse_instant
from .values import coerce_number


logger = logging.getLogger(__name__)

PERIODS = ("day", "month", "year")


@dataclass
class BasicMetrics:
    count: int = 0
    daily_avg: float = 0.0
    unique_entities: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"count": self.count, "dailyAvg": self.daily_avg, "uniqueEntities": self.unique_entities}


def basic_metrics(records: Iterable[Record]) -> BasicMetrics:
    records = list(records)
    count = len(records)
    days = {r.instant.date() for r in records}
    entities = {r.entity_id for r in records}
    return BasicMetrics(
        count=count,
        daily_avg=count / len(days) if days else 0.0,
        unique_entities=len(entities)
    )


def period_key(timestamp: str, period: str) -> str:
    instant = parse_instant(timestamp)
    if period == "year":
        return f"{instant.year:04d}"
    if period == "month":
        return f"{instant.year:04d}-{instant.month:02d}"
    return instant.date().isoformat()


def group_by_period(records: Iterable[Record], field_id: str, period: str = "day") -> Dict[str, Dict[str, float]]:
    """Bucket records by day, month or year; each bucket holds sum and count"""
    if period not in PERIODS:
        raise ValueError(f"Unsupported period: {period}")

    groups: Dict[str, Dict[str, float]] = {}
    for record in records:
        key = period_key(record.timestamp, period)
        bucket = groups.setdefault(key, {"sum": 0.0, "count": 0})
        bucket["sum"] += coerce_number(record.data.get(field_id))
        bucket["count"] += 1
    return groups


@dataclass
class KpiSummary:
    metrics: BasicMetrics
    fields: Dict[str, FieldStats] = field(default_factory=dict)
    field_names: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "metrics": self.metrics.to_dict(),
            "fields": [
                {"fieldId": fid, "field": self.field_names.get(fid, fid), **stats.to_dict()}
                for fid, stats in self.fields.items()
            ]
        }


class KpiCalculator:
    """KPI view over the dataset, driven by config.kpiFields"""

    def __init__(self, dataset: Dataset):
        self.dataset = dataset

    def summary(self, criteria: Optional[FilterCriteria] = None,
                field_ids: Optional[List[str]] = None) -> KpiSummary:
        snapshot = self.dataset.snapshot()
        records = apply_filters((Record.from_dict(r) for r in snapshot["records"]), criteria)
        fields = {f["id"]: Field.from_dict(f) for f in snapshot["fields"] if f}

        if field_ids is None:
            field_ids = snapshot["config"].get("kpiFields") or []

        result = KpiSummary(metrics=basic_metrics(records))
        for field_id in field_ids:
            fld = fields.get(field_id)
            if fld is None:
                logger.warning(f"KPI field {field_id} no longer exists")
                continue
            result.fields[field_id] = field_stats(records, field_id)
            result.field_names[field_id] = fld.name
        return result

    def set_kpi_fields(self, field_ids: List[str]) -> List[str]:
        config = self.dataset.update_config({"kpiFields": list(field_ids)})
        return config["kpiFields"]
