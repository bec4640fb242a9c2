"""
Consistency Check Module

Reports dangling references the registries tolerate: records whose
entity is gone, entity field lists naming deleted fields, and record
values stored under deleted field ids. Nothing is repaired here.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any
import logging


logger = logging.getLogger(__name__)


@dataclass
class ConsistencyReport:
    orphan_records: List[str] = field(default_factory=list)
    dangling_entity_fields: Dict[str, List[str]] = field(default_factory=dict)
    orphan_value_keys: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def is_consistent(self) -> bool:
        return not (self.orphan_records or self.dangling_entity_fields or self.orphan_value_keys)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "consistent": self.is_consistent,
            "orphanRecords": list(self.orphan_records),
            "danglingEntityFields": dict(self.dangling_entity_fields),
            "orphanValueKeys": dict(self.orphan_value_keys)
        }


def check_consistency(snapshot: Dict[str, Any]) -> ConsistencyReport:
    entity_ids = {e.get("id") for e in snapshot.get("entities") or []}
    field_ids = {f.get("id") for f in snapshot.get("fields") or [] if f}
    report = ConsistencyReport()

    for entity in snapshot.get("entities") or []:
        dangling = [fid for fid in entity.get("fields") or [] if fid not in field_ids]
        if dangling:
            report.dangling_entity_fields[entity.get("id")] = dangling

    for record in snapshot.get("records") or []:
        if record.get("entityId") not in entity_ids:
            report.orphan_records.append(record.get("id"))
        stale = [key for key in (record.get("data") or {}) if key not in field_ids]
        if stale:
            report.orphan_value_keys[record.get("id")] = stale

    if report.orphan_records:
        logger.warning(f"{len(report.orphan_records)} records reference missing entities")
    if report.dangling_entity_fields:
        logger.warning(f"{len(report.dangling_entity_fields)} entities reference missing fields")
    if report.orphan_value_keys:
        logger.warning(f"{len(report.orphan_value_keys)} records hold values for missing fields")

    return report
