"""
Import / Export Module

Whole-dataset JSON export and validated import, plus CSV export of
records for spreadsheets.
"""

from typing import Dict, List, Any, Iterable
import csv
import io
import json
import logging

from .entities import Entity
from .fields import Field, FieldType
from .records import Record
from .storage import Dataset, SNAPSHOT_KEYS
from .timeutil import parse_instant


logger = logging.getLogger(__name__)

UNKNOWN_ENTITY = "Unknown"

FIELD_TYPES = tuple(t.value for t in FieldType)


def export_data(dataset: Dataset) -> str:
    """Full snapshot as JSON with 2-space indentation"""
    return json.dumps(dataset.snapshot(), indent=2, ensure_ascii=False)


def validate_import_data(document: Any) -> List[str]:
    """Structural problems in an import document; an empty list means valid"""
    if not isinstance(document, dict):
        return ["Document must be a JSON object"]

    missing = [key for key in SNAPSHOT_KEYS if document.get(key) is None]
    if missing:
        return [f"Missing top-level keys: {', '.join(missing)}"]

    errors = []
    config = document["config"]
    if not isinstance(config, dict):
        errors.append("config must be an object")
    elif not isinstance(config.get("title"), str) or not isinstance(config.get("description"), str):
        errors.append("config.title and config.description must be strings")

    for key in ("entities", "fields", "records"):
        if not isinstance(document[key], list):
            errors.append(f"{key} must be a list")
    if errors:
        return errors

    for index, entity in enumerate(document["entities"]):
        if not isinstance(entity, dict) or not entity.get("id") or not entity.get("name") \
                or not isinstance(entity.get("fields"), list):
            errors.append(f"entities[{index}] needs id, name and a fields list")

    for index, fld in enumerate(document["fields"]):
        if not isinstance(fld, dict) or not fld.get("id") or not fld.get("name") or not fld.get("type"):
            errors.append(f"fields[{index}] needs id, name and type")
        elif fld["type"] not in FIELD_TYPES:
            errors.append(f"fields[{index}].type must be one of: {', '.join(FIELD_TYPES)}")
        elif fld["type"] == FieldType.SELECT.value and not isinstance(fld.get("options"), list):
            errors.append(f"fields[{index}] is a select field without an options list")

    for index, record in enumerate(document["records"]):
        if not isinstance(record, dict) or not record.get("id") or not record.get("entityId") \
                or not record.get("timestamp") or "data" not in record:
            errors.append(f"records[{index}] needs id, entityId, timestamp and data")
        elif not _is_instant(record["timestamp"]):
            errors.append(f"records[{index}].timestamp is not an ISO-8601 instant")
        elif not isinstance(record["data"], dict):
            errors.append(f"records[{index}].data must be an object")

    return errors


def _is_instant(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parse_instant(value)
    except ValueError:
        return False
    return True


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON number")


def import_data(dataset: Dataset, text: str) -> bool:
    """Replace the dataset with a JSON document; returns False if it is rejected"""
    try:
        document = json.loads(text, parse_constant=_reject_constant)
    except (TypeError, ValueError) as e:
        logger.error(f"Import rejected, invalid JSON: {e}")
        return False

    errors = validate_import_data(document)
    if errors:
        logger.error(f"Import rejected: {'; '.join(errors)}")
        return False

    dataset.replace(document)
    logger.info(
        f"Dataset imported: {len(document['entities'])} entities, "
        f"{len(document['fields'])} fields, {len(document['records'])} records"
    )
    return True


def records_to_csv(records: Iterable[Record], entities: Iterable[Entity], fields: Iterable[Field]) -> str:
    """CSV with entity, timestamp and one column per known field used by the records"""
    records = list(records)
    entity_names: Dict[str, str] = {e.id: e.name for e in entities}
    known: Dict[str, Field] = {f.id: f for f in fields}

    used_ids = dict.fromkeys(fid for r in records for fid in r.data)
    columns = [known[fid] for fid in used_ids if fid in known]

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Entity", "Timestamp"] + [f.name for f in columns])
    for record in records:
        row = [entity_names.get(record.entity_id, UNKNOWN_ENTITY), record.timestamp]
        for fld in columns:
            value = record.data.get(fld.id)
            row.append("" if value is None else value)
        writer.writerow(row)

    csv_content = output.getvalue()
    output.close()
    return csv_content
