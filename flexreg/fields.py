"""
Field Registry Module

Typed attribute definitions (text, number, select) that entities are
assigned and records carry values for, plus the report-usage flags the
rendering layer reads.
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any, Iterable, Tuple
import logging
import uuid

from .storage import Dataset
from .values import parse_numeric, Numeric


logger = logging.getLogger(__name__)


class FieldType(Enum):
    """Supported field types"""
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"


class FieldValidationError(ValueError):
    """Raised when a field definition fails input validation"""
    pass


# Report-usage flags: python attribute -> snapshot key
REPORT_FLAGS = {
    "use_for_records_table": "useForRecordsTable",
    "is_column3": "isColumn3",
    "is_column4": "isColumn4",
    "is_column5": "isColumn5",
    "use_for_comparative_reports": "useForComparativeReports",
    "is_horizontal_axis": "isHorizontalAxis",
    "is_compare_field": "isCompareField",
}


@dataclass
class Field:
    """Field definition as stored in the dataset"""
    id: str
    name: str
    type: FieldType
    required: bool = False
    options: List[str] = field(default_factory=list)
    use_for_records_table: bool = False
    is_column3: bool = False
    is_column4: bool = False
    is_column5: bool = False
    use_for_comparative_reports: bool = False
    is_horizontal_axis: bool = False
    is_compare_field: bool = False
    active: bool = True

    @property
    def is_numeric(self) -> bool:
        return self.type == FieldType.NUMBER

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "required": self.required,
            "options": list(self.options),
            "active": self.active,
        }
        for attr, key in REPORT_FLAGS.items():
            result[key] = getattr(self, attr)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Field':
        flags = {attr: bool(data.get(key, False)) for attr, key in REPORT_FLAGS.items()}
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            type=FieldType(data.get("type", FieldType.TEXT.value)),
            required=bool(data.get("required", False)),
            options=_option_values(data.get("options")),
            active=data.get("active", True) is not False,
            **flags
        )


def _option_values(options: Optional[Iterable[Any]]) -> List[str]:
    """Option strings; tolerates the {value, active} form some documents carry"""
    values = []
    for option in options or []:
        if isinstance(option, dict):
            values.append(str(option.get("value", "")))
        else:
            values.append(str(option))
    return values


@dataclass
class FieldSpec:
    """User-supplied definition used to create or update a field"""
    name: str
    type: FieldType
    required: bool = False
    options: List[str] = field(default_factory=list)
    use_for_records_table: bool = False
    is_column3: bool = False
    is_column4: bool = False
    is_column5: bool = False
    use_for_comparative_reports: bool = False
    is_horizontal_axis: bool = False
    is_compare_field: bool = False
    active: Optional[bool] = None

    def validate(self) -> None:
        """Input-time checks; stored documents are not re-validated"""
        if not self.name or not str(self.name).strip():
            raise FieldValidationError("Field name is required")
        if not isinstance(self.type, FieldType):
            try:
                self.type = FieldType(self.type)
            except ValueError:
                raise FieldValidationError(f"Unknown field type: {self.type}")
        if self.type == FieldType.SELECT:
            cleaned = [str(o).strip() for o in self.options if str(o).strip()]
            if not cleaned:
                raise FieldValidationError("Select fields must define at least one option")
            self.options = cleaned
        else:
            self.options = []

    def apply_to(self, target: Dict[str, Any]) -> Dict[str, Any]:
        """Write this spec onto a stored field dict, keeping unknown keys"""
        target["name"] = str(self.name).strip()
        target["type"] = self.type.value
        target["required"] = bool(self.required)
        target["options"] = list(self.options)
        for attr, key in REPORT_FLAGS.items():
            target[key] = bool(getattr(self, attr))
        if self.active is not None:
            target["active"] = bool(self.active)
        elif "active" not in target:
            target["active"] = True
        return target


@dataclass
class FormValidation:
    """Outcome of validating a record form"""
    is_valid: bool
    data: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)


class FieldRegistry:
    """CRUD over field definitions"""

    def __init__(self, dataset: Dataset):
        self.dataset = dataset

    def get_all(self) -> List[Field]:
        return [Field.from_dict(f) for f in self.dataset.snapshot()["fields"] if f]

    def get_active(self) -> List[Field]:
        return [f for f in self.get_all() if f.active]

    def get_by_id(self, field_id: str) -> Optional[Field]:
        for data in self.dataset.snapshot()["fields"]:
            if data and data.get("id") == field_id:
                return Field.from_dict(data)
        return None

    def get_by_ids(self, field_ids: Iterable[str]) -> List[Field]:
        """Known fields among ``field_ids``, in registry order; unknown ids are dropped"""
        wanted = set(field_ids or [])
        if not wanted:
            return []
        return [f for f in self.get_all() if f.id in wanted]

    def get_active_by_ids(self, field_ids: Iterable[str]) -> List[Field]:
        return [f for f in self.get_by_ids(field_ids) if f.active]

    def get_numeric_fields(self) -> List[Field]:
        return [f for f in self.get_all() if f.is_numeric and f.active]

    def get_shared_numeric_fields(self) -> List[Field]:
        """Numeric fields assigned to more than one entity"""
        snapshot = self.dataset.snapshot()
        usage = Counter()
        for entity in snapshot["entities"]:
            usage.update(set(entity.get("fields") or []))

        return [
            Field.from_dict(f) for f in snapshot["fields"]
            if f and f.get("type") == FieldType.NUMBER.value and usage[f.get("id")] > 1
        ]

    def create(self, spec: FieldSpec) -> Field:
        """Create a new field definition"""
        spec.validate()
        stored = spec.apply_to({"id": f"field_{uuid.uuid4().hex}"})

        with self.dataset.mutate() as data:
            data["fields"].append(stored)

        logger.info(f"Field created: {stored['id']} ({stored['name']}, {stored['type']})")
        return Field.from_dict(stored)

    def update(self, field_id: str, spec: FieldSpec) -> Optional[Field]:
        """
        Replace a field's definition.

        Flags absent from ``spec`` are reset to False; ``active`` is kept
        unless the spec sets it.
        """
        spec.validate()

        with self.dataset.mutate() as data:
            target = next((f for f in data["fields"] if f and f.get("id") == field_id), None)
            if target is None:
                return None
            spec.apply_to(target)
            updated = dict(target)

        logger.info(f"Field updated: {field_id}")
        return Field.from_dict(updated)

    def delete(self, field_id: str) -> bool:
        """
        Delete a field and unassign it from every entity.

        Values already stored under this id in record data are left in place.
        """
        with self.dataset.mutate() as data:
            initial = len(data["fields"])
            data["fields"] = [f for f in data["fields"] if f and f.get("id") != field_id]
            for entity in data["entities"]:
                entity["fields"] = [fid for fid in (entity.get("fields") or []) if fid != field_id]
            removed = len(data["fields"]) < initial

        if removed:
            logger.info(f"Field deleted: {field_id}")
        return removed

    def validate_form(self, fields: Iterable[Field], raw_values: Dict[str, Any]) -> FormValidation:
        """Validate and normalise form input for the given fields"""
        result = FormValidation(is_valid=True)

        for fld in fields:
            if fld.id not in raw_values:
                if fld.required:
                    result.errors[fld.id] = "Field is required"
                continue

            value, error = _normalise_value(fld, raw_values[fld.id])
            if error is None and fld.required and value in ("", None):
                error = "Field is required"
            if error:
                result.errors[fld.id] = error
                continue
            result.data[fld.id] = value

        result.is_valid = not result.errors
        return result


def _normalise_value(fld: Field, raw: Any) -> Tuple[Any, Optional[str]]:
    if raw is None:
        return None, None
    if isinstance(raw, str):
        raw = raw.strip()

    if fld.type == FieldType.NUMBER:
        if raw == "":
            return None, None
        parsed = parse_numeric(raw)
        if not isinstance(parsed, Numeric):
            return None, "Value must be a number"
        return parsed.value, None

    if fld.type == FieldType.SELECT:
        if raw != "" and str(raw) not in fld.options:
            return None, f"Value must be one of: {', '.join(fld.options)}"
        return raw, None

    return str(raw), None
