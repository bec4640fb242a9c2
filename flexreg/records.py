"""
Record Store Module

Timestamped observations: one entity reference plus a flat map of
field id -> value.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Any, Iterable
import logging
import uuid

from .storage import Dataset
from .timeutil import DateLike, format_instant, parse_instant, utcnow


logger = logging.getLogger(__name__)


@dataclass
class Record:
    """Record as stored in the dataset"""
    id: str
    entity_id: str
    timestamp: str
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def instant(self) -> datetime:
        return parse_instant(self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "entityId": self.entity_id,
            "timestamp": self.timestamp,
            "data": dict(self.data)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Record':
        return cls(
            id=data["id"],
            entity_id=data.get("entityId", ""),
            timestamp=data.get("timestamp", ""),
            data=dict(data.get("data") or {})
        )


def _timestamp_string(value: Optional[DateLike]) -> str:
    if value is None:
        return format_instant(utcnow())
    if isinstance(value, str):
        # Validate, but keep the caller's representation
        parse_instant(value)
        return value
    return format_instant(parse_instant(value))


class RecordStore:
    """CRUD over timestamped records"""

    def __init__(self, dataset: Dataset):
        self.dataset = dataset

    def get_all(self) -> List[Record]:
        return [Record.from_dict(r) for r in self.dataset.snapshot()["records"]]

    def get_by_id(self, record_id: str) -> Optional[Record]:
        for data in self.dataset.snapshot()["records"]:
            if data.get("id") == record_id:
                return Record.from_dict(data)
        return None

    def get_by_entity(self, entity_id: str) -> List[Record]:
        return [r for r in self.get_all() if r.entity_id == entity_id]

    def create(self, entity_id: str, form_data: Dict[str, Any],
               timestamp: Optional[DateLike] = None) -> Record:
        """Create a record; the timestamp defaults to now"""
        record = Record(
            id=f"record_{uuid.uuid4().hex}",
            entity_id=entity_id,
            timestamp=_timestamp_string(timestamp),
            data=dict(form_data or {})
        )

        with self.dataset.mutate() as data:
            data["records"].append(record.to_dict())

        logger.debug(f"Record created: {record.id} for entity {entity_id}")
        return record

    def update_date(self, record_id: str, new_date: DateLike) -> Optional[Record]:
        """Move a record to a new timestamp"""
        timestamp = _timestamp_string(new_date)

        with self.dataset.mutate() as data:
            target = next((r for r in data["records"] if r.get("id") == record_id), None)
            if target is None:
                return None
            target["timestamp"] = timestamp
            updated = dict(target)

        return Record.from_dict(updated)

    def update(self, record_id: str, partial_data: Dict[str, Any],
               new_date: Optional[DateLike] = None) -> bool:
        """Merge values into a record's data; timestamp changes only if given"""
        timestamp = _timestamp_string(new_date) if new_date else None

        with self.dataset.mutate() as data:
            target = next((r for r in data["records"] if r.get("id") == record_id), None)
            if target is None:
                return False
            target["data"] = {**(target.get("data") or {}), **(partial_data or {})}
            if timestamp:
                target["timestamp"] = timestamp

        return True

    def delete(self, record_id: str) -> bool:
        with self.dataset.mutate() as data:
            initial = len(data["records"])
            data["records"] = [r for r in data["records"] if r.get("id") != record_id]
            removed = len(data["records"]) < initial

        if removed:
            logger.debug(f"Record deleted: {record_id}")
        return removed

    def delete_many(self, record_ids: Iterable[str]) -> int:
        """Delete several records at once; returns how many were removed"""
        doomed = set(record_ids)
        with self.dataset.mutate() as data:
            initial = len(data["records"])
            data["records"] = [r for r in data["records"] if r.get("id") not in doomed]
            removed = initial - len(data["records"])

        logger.info(f"Bulk delete removed {removed} records")
        return removed

    def get_recent(self, limit: int = 10) -> List[Record]:
        """Most recent records first"""
        records = sorted(self.get_all(), key=lambda r: r.instant, reverse=True)
        return records[:limit]
