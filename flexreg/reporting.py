"""
Reporting Engine Module

Aggregation of a numeric field over filtered records, grouped by entity
or by the distinct values of a horizontal-axis field. Validation problems
are returned as ReportError results rather than raised, so callers can
render them as advisory messages.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any, Tuple, Union
import csv
import io
import json
import logging

from .entities import Entity
from .fields import Field
from .filters import FilterCriteria, apply_filters
from .records import Record
from .storage import Dataset
from .values import coerce_number


logger = logging.getLogger(__name__)


class Aggregation(Enum):
    """Reductions available to comparative reports"""
    SUM = "sum"
    AVERAGE = "average"


class ReportFormat(Enum):
    """Output formats for reports"""
    DICT = "dict"
    CSV = "csv"
    JSON = "json"


class ReportErrorCode(Enum):
    """Why a report could not be produced"""
    FIELD_REQUIRED = "field_required"
    FIELD_NOT_FOUND = "field_not_found"
    FIELD_TYPE = "field_type"
    NO_MATCHING_ENTITIES = "no_matching_entities"
    INVALID_AXIS_FIELD = "invalid_axis_field"


@dataclass
class ReportError:
    """Result-shaped report failure"""
    code: ReportErrorCode
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "code": self.code.value}


@dataclass
class ReportRow:
    """One group of a report: an entity, or an axis value"""
    id: Any
    name: Any
    value: float = 0.0
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "value": self.value, "count": self.count}


@dataclass
class ReportResult:
    """Result of a report execution"""
    field: str
    field_id: str
    aggregation: Aggregation
    entities: List[ReportRow] = field(default_factory=list)
    horizontal_field: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "field": self.field,
            "fieldId": self.field_id,
            "aggregation": self.aggregation.value,
            "entities": [row.to_dict() for row in self.entities]
        }
        if self.horizontal_field is not None:
            result["horizontalField"] = self.horizontal_field
        return result


def reduce_values(values: List[float], aggregation: Aggregation) -> float:
    """Sum or arithmetic mean; an empty group reduces to 0"""
    if not values:
        return 0.0
    total = sum(values)
    if aggregation == Aggregation.AVERAGE:
        return total / len(values)
    return total


def aggregate_group(records: List[Record], field_id: str, aggregation: Aggregation) -> ReportRow:
    """Aggregate ``field_id`` over the records that carry a value for it"""
    values = [coerce_number(r.data[field_id]) for r in records if field_id in r.data]
    return ReportRow(id=None, name=None, value=reduce_values(values, aggregation), count=len(values))


def axis_key(value: Any) -> Tuple[str, Any]:
    """
    Grouping key for a horizontal-axis value.

    Booleans stay apart from the numbers 1 and 0 they compare equal to;
    unhashable values group by their JSON text.
    """
    if isinstance(value, (list, dict)):
        return "json", json.dumps(value, sort_keys=True, default=str)
    if isinstance(value, bool):
        return "bool", value
    return "value", value


class ReportingEngine:
    """
    Comparative report generation over the dataset
    """

    def __init__(self, dataset: Dataset):
        self.dataset = dataset

    def generate_report(
        self,
        field_id: str,
        aggregation: Union[Aggregation, str] = Aggregation.SUM,
        criteria: Optional[FilterCriteria] = None,
        horizontal_field_id: Optional[str] = None
    ) -> Union[ReportResult, ReportError]:
        """
        Aggregate a numeric field per entity, or per distinct value of the
        horizontal-axis field when one is given.
        """
        aggregation = Aggregation(aggregation)
        criteria = criteria or FilterCriteria()

        if not field_id:
            return ReportError(ReportErrorCode.FIELD_REQUIRED, "A field is required to generate a report")

        snapshot = self.dataset.snapshot()
        fields = {f["id"]: Field.from_dict(f) for f in snapshot["fields"] if f}

        target = fields.get(field_id)
        if target is None:
            return ReportError(ReportErrorCode.FIELD_NOT_FOUND, f"Field {field_id} does not exist")

        if not target.is_numeric:
            return ReportError(
                ReportErrorCode.FIELD_TYPE,
                f"Field '{target.name}' must be numeric to generate a report"
            )

        entities = [
            Entity.from_dict(e) for e in snapshot["entities"]
            if field_id in (e.get("fields") or [])
        ]
        wanted = set(criteria.entity_ids)
        if criteria.entity_id:
            wanted.add(criteria.entity_id)
        if wanted:
            entities = [e for e in entities if e.id in wanted]

        if not entities:
            return ReportError(
                ReportErrorCode.NO_MATCHING_ENTITIES,
                "No entities match the filters and use this field"
            )

        records = apply_filters(
            (Record.from_dict(r) for r in snapshot["records"]),
            FilterCriteria(
                entity_ids=sorted(wanted),
                from_date=criteria.from_date,
                to_date=criteria.to_date,
                horizontal_field_id=criteria.horizontal_field_id,
                horizontal_field_option=criteria.horizontal_field_option
            )
        )

        if horizontal_field_id:
            axis = fields.get(horizontal_field_id)
            if axis is None:
                return ReportError(
                    ReportErrorCode.INVALID_AXIS_FIELD,
                    f"Horizontal axis field {horizontal_field_id} does not exist"
                )
            result = self._report_by_axis(target, axis, aggregation, records, criteria)
        else:
            result = self._report_by_entity(target, aggregation, records, entities)

        logger.debug(
            f"Report generated for field {field_id} ({aggregation.value}): {len(result.entities)} groups"
        )
        return result

    def _report_by_entity(self, target: Field, aggregation: Aggregation,
                          records: List[Record], entities: List[Entity]) -> ReportResult:
        by_entity: Dict[str, List[Record]] = {}
        for record in records:
            by_entity.setdefault(record.entity_id, []).append(record)

        result = ReportResult(field=target.name, field_id=target.id, aggregation=aggregation)
        # Every qualifying entity appears, even with no records
        for entity in entities:
            row = aggregate_group(by_entity.get(entity.id, []), target.id, aggregation)
            row.id, row.name = entity.id, entity.name
            result.entities.append(row)
        return result

    def _report_by_axis(self, target: Field, axis: Field, aggregation: Aggregation,
                        records: List[Record], criteria: FilterCriteria) -> ReportResult:
        # dict keeps first-seen order of the filtered record sequence
        groups: Dict[Tuple[str, Any], Tuple[Any, List[Record]]] = {}
        if criteria.horizontal_field_option is not None:
            option = criteria.horizontal_field_option
            groups[axis_key(option)] = (option, [])

        for record in records:
            if axis.id not in record.data:
                continue
            value = record.data[axis.id]
            key = axis_key(value)
            if criteria.horizontal_field_option is not None and key not in groups:
                continue
            groups.setdefault(key, (value, []))[1].append(record)

        result = ReportResult(
            field=target.name,
            field_id=target.id,
            aggregation=aggregation,
            horizontal_field=axis.name
        )
        for value, group in groups.values():
            row = aggregate_group(group, target.id, aggregation)
            row.id = row.name = value
            result.entities.append(row)
        return result

    def export_report(self, result: ReportResult, format: ReportFormat) -> Union[Dict, str]:
        """
        Export report result in specified format
        """
        if format == ReportFormat.DICT:
            return result.to_dict()

        elif format == ReportFormat.JSON:
            return json.dumps(result.to_dict(), indent=2, default=str)

        elif format == ReportFormat.CSV:
            output = io.StringIO()
            writer = csv.writer(output)
            writer.writerow(["id", "name", "value", "count"])
            for row in result.entities:
                writer.writerow([row.id, row.name, row.value, row.count])

            csv_content = output.getvalue()
            output.close()
            return csv_content

        else:
            raise ValueError(f"Unsupported export format: {format}")
