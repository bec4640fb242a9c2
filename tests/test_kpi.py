"""
Test suite for KPI summaries
"""

import pytest

from flexreg.storage import InMemoryDataStore, Dataset
from flexreg.fields import FieldRegistry, FieldSpec, FieldType
from flexreg.records import RecordStore, Record
from flexreg.filters import FilterCriteria
from flexreg.kpi import KpiCalculator, basic_metrics, group_by_period, period_key


def make_record(entity_id, timestamp, **data):
    return Record(id=f"{entity_id}-{timestamp}", entity_id=entity_id, timestamp=timestamp, data=data)


class TestBasicMetrics:
    
    def test_empty(self):
        metrics = basic_metrics([])
        
        assert metrics.count == 0
        assert metrics.daily_avg == 0
        assert metrics.unique_entities == 0
    
    def test_counts(self):
        records = [
            make_record("e1", "2024-01-01T08:00:00.000Z"),
            make_record("e1", "2024-01-01T20:00:00.000Z"),
            make_record("e2", "2024-01-03T08:00:00.000Z"),
        ]
        metrics = basic_metrics(records)
        
        assert metrics.count == 3
        assert metrics.daily_avg == 1.5
        assert metrics.unique_entities == 2
        assert metrics.to_dict() == {"count": 3, "dailyAvg": 1.5, "uniqueEntities": 2}


class TestGroupByPeriod:
    
    @pytest.fixture
    def records(self):
        return [
            make_record("e1", "2023-12-31T10:00:00.000Z", qty=1),
            make_record("e1", "2024-01-01T10:00:00.000Z", qty=2),
            make_record("e1", "2024-01-01T11:00:00.000Z", qty="x"),
            make_record("e1", "2024-02-10T10:00:00.000Z"),
        ]
    
    def test_by_day(self, records):
        groups = group_by_period(records, "qty", "day")
        
        assert list(groups) == ["2023-12-31", "2024-01-01", "2024-02-10"]
        assert groups["2024-01-01"] == {"sum": 2, "count": 2}
        assert groups["2024-02-10"] == {"sum": 0, "count": 1}
    
    def test_by_month(self, records):
        groups = group_by_period(records, "qty", "month")
        assert groups == {
            "2023-12": {"sum": 1, "count": 1},
            "2024-01": {"sum": 2, "count": 2},
            "2024-02": {"sum": 0, "count": 1},
        }
    
    def test_by_year(self, records):
        groups = group_by_period(records, "qty", "year")
        assert groups["2024"]["count"] == 3
    
    def test_invalid_period(self, records):
        with pytest.raises(ValueError, match="Unsupported period"):
            group_by_period(records, "qty", "week")
    
    def test_period_key_uses_utc(self):
        assert period_key("2024-01-31T23:30:00-02:00", "month") == "2024-02"


class TestKpiCalculator:
    
    @pytest.fixture
    def setup(self):
        dataset = Dataset(InMemoryDataStore())
        fields = FieldRegistry(dataset)
        records = RecordStore(dataset)
        
        qty = fields.create(FieldSpec(name="Quantity", type=FieldType.NUMBER))
        records.create("e1", {qty.id: 4}, timestamp="2024-01-01T08:00:00.000Z")
        records.create("e2", {qty.id: 8}, timestamp="2024-01-02T08:00:00.000Z")
        
        return {"calculator": KpiCalculator(dataset), "qty": qty}
    
    def test_summary_uses_configured_fields(self, setup):
        calculator, qty = setup["calculator"], setup["qty"]
        assert calculator.set_kpi_fields([qty.id, "ghost"]) == [qty.id, "ghost"]
        
        summary = calculator.summary()
        
        assert summary.metrics.count == 2
        assert list(summary.fields) == [qty.id]
        assert summary.fields[qty.id].sum == 12
        assert summary.fields[qty.id].avg == 6
    
    def test_summary_with_filters(self, setup):
        calculator, qty = setup["calculator"], setup["qty"]
        
        summary = calculator.summary(FilterCriteria(entity_ids=["e2"]), field_ids=[qty.id])
        data = summary.to_dict()
        
        assert data["metrics"]["count"] == 1
        assert data["fields"][0]["field"] == "Quantity"
        assert data["fields"][0]["max"] == 8
    
    def test_no_kpi_fields(self, setup):
        assert setup["calculator"].summary().fields == {}
