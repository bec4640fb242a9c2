"""
Test suite for dataset import/export
"""

import csv
import io
import json

import pytest

from flexreg.storage import InMemoryDataStore, Dataset
from flexreg.entities import EntityRegistry
from flexreg.fields import FieldRegistry, FieldSpec, FieldType
from flexreg.records import RecordStore
from flexreg.export import export_data, import_data, validate_import_data, records_to_csv


@pytest.fixture
def populated():
    dataset = Dataset(InMemoryDataStore())
    fields = FieldRegistry(dataset)
    entities = EntityRegistry(dataset)
    records = RecordStore(dataset)
    
    qty = fields.create(FieldSpec(name="Quantity", type=FieldType.NUMBER))
    shift = fields.create(FieldSpec(name="Shift", type=FieldType.SELECT, options=["Day", "Night"]))
    entity = entities.create("Press", group="North")
    entities.assign_fields(entity.id, [qty.id, shift.id])
    records.create(entity.id, {qty.id: 10, shift.id: "Day"}, timestamp="2024-01-01T00:00:00.000Z")
    records.create(entity.id, {qty.id: 3.5}, timestamp="2024-01-02T00:00:00.000Z")
    dataset.update_config({"kpiFields": [qty.id]})
    return dataset


class TestExportImport:
    
    def test_export_is_indented_json(self, populated):
        text = export_data(populated)
        
        assert text.startswith('{\n  "config"')
        assert json.loads(text) == populated.snapshot()
    
    def test_round_trip(self, populated):
        """Importing an export into a fresh dataset reproduces the snapshot"""
        fresh = Dataset(InMemoryDataStore())
        
        assert import_data(fresh, export_data(populated)) is True
        assert fresh.snapshot() == json.loads(json.dumps(populated.snapshot()))
    
    def test_invalid_json_rejected(self, populated):
        before = populated.snapshot()
        
        assert import_data(populated, "{not json") is False
        assert populated.snapshot() == before
    
    def test_unreadable_field_or_timestamp_rejected(self, populated):
        """Documents the registries could not load are never stored"""
        document = json.loads(export_data(populated))
        document["fields"][0]["type"] = "date"
        assert import_data(populated, json.dumps(document)) is False

        document = json.loads(export_data(populated))
        document["records"][0]["timestamp"] = "yesterday"
        assert import_data(populated, json.dumps(document)) is False

        assert len(FieldRegistry(populated).get_all()) == 2
        assert len(RecordStore(populated).get_recent()) == 2

    def test_non_finite_numbers_rejected(self, populated):
        text = export_data(populated).replace("3.5", "Infinity")
        assert "Infinity" in text
        assert import_data(populated, text) is False

    def test_invalid_document_rejected(self, populated):
        before = populated.snapshot()
        
        assert import_data(populated, json.dumps({"config": {}})) is False
        assert populated.snapshot() == before


class TestValidateImportData:
    
    @pytest.fixture
    def document(self):
        return {
            "config": {"title": "T", "description": "D"},
            "entities": [{"id": "e1", "name": "E1", "fields": ["f1"]}],
            "fields": [{"id": "f1", "name": "F1", "type": "select", "options": ["A"]}],
            "records": [{"id": "r1", "entityId": "e1", "timestamp": "2024-01-01T00:00:00.000Z",
                         "data": {"f1": "A"}}],
        }
    
    def test_valid(self, document):
        assert validate_import_data(document) == []
    
    def test_not_an_object(self):
        assert validate_import_data([1, 2]) == ["Document must be a JSON object"]
    
    def test_missing_keys(self, document):
        del document["records"]
        errors = validate_import_data(document)
        assert errors and "records" in errors[0]
    
    def test_config_strings(self, document):
        document["config"]["title"] = 5
        assert validate_import_data(document)
    
    def test_entity_without_name(self, document):
        document["entities"][0]["name"] = ""
        assert "entities[0]" in validate_import_data(document)[0]
    
    def test_select_without_options(self, document):
        document["fields"][0]["options"] = "A,B"
        assert "fields[0]" in validate_import_data(document)[0]
    
    @pytest.mark.parametrize("field_type", ["date", ["number"], 3])
    def test_unknown_field_type(self, document, field_type):
        document["fields"][0]["type"] = field_type
        assert "fields[0].type" in validate_import_data(document)[0]

    @pytest.mark.parametrize("timestamp", ["yesterday", "2024-13-01T00:00:00Z", 1704067200])
    def test_record_timestamp_must_be_instant(self, document, timestamp):
        document["records"][0]["timestamp"] = timestamp
        assert "records[0].timestamp" in validate_import_data(document)[0]

    def test_record_data_must_be_mapping(self, document):
        document["records"][0]["data"] = ["A"]
        assert "records[0].data" in validate_import_data(document)[0]


class TestRecordsCsv:
    
    def test_columns_and_unknown_entity(self, populated):
        records = RecordStore(populated).get_all()
        records[1].entity_id = "gone"
        
        content = records_to_csv(
            records,
            EntityRegistry(populated).get_all(),
            FieldRegistry(populated).get_all()
        )
        rows = list(csv.reader(io.StringIO(content)))
        
        assert rows[0] == ["Entity", "Timestamp", "Quantity", "Shift"]
        assert rows[1] == ["Press", "2024-01-01T00:00:00.000Z", "10", "Day"]
        assert rows[2] == ["Unknown", "2024-01-02T00:00:00.000Z", "3.5", ""]
