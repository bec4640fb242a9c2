"""
Test suite for period comparison
"""

import pytest

from flexreg.storage import InMemoryDataStore, Dataset
from flexreg.entities import EntityRegistry
from flexreg.fields import FieldRegistry, FieldSpec, FieldType
from flexreg.records import RecordStore, Record
from flexreg.comparison import (
    PeriodComparisonEngine, NumericComparison, CategoricalComparison,
    previous_range, aggregate_field, compute_change, field_stats, MISSING_VALUE_LABEL
)


def make_record(value, field_id="f1", entity_id="e1", timestamp="2024-01-01T00:00:00.000Z"):
    return Record(id="r", entity_id=entity_id, timestamp=timestamp, data={field_id: value})


class TestPreviousRange:
    
    def test_seven_day_range(self):
        assert previous_range("2024-01-08", "2024-01-14") == ("2024-01-01", "2024-01-07")
    
    def test_single_day(self):
        assert previous_range("2024-03-01", "2024-03-01") == ("2024-02-29", "2024-02-29")
    
    def test_month_long_range(self):
        assert previous_range("2024-02-01", "2024-02-29") == ("2024-01-03", "2024-01-31")
    
    def test_timestamps_accepted(self):
        assert previous_range("2024-01-08T00:00:00.000Z", "2024-01-14T23:59:59.000Z") == (
            "2024-01-01", "2024-01-07"
        )


class TestAggregateField:
    
    @pytest.mark.parametrize("agg", ["sum", "avg", "max", "min"])
    def test_empty_input_is_zero(self, agg):
        assert aggregate_field([], "f1", agg) == 0
    
    def test_reducers(self):
        records = [make_record(4), make_record("6"), make_record(-1)]
        
        assert aggregate_field(records, "f1", "sum") == 9
        assert aggregate_field(records, "f1", "avg") == 3
        assert aggregate_field(records, "f1", "max") == 6
        assert aggregate_field(records, "f1", "min") == -1
    
    def test_unparseable_counts_as_zero(self):
        records = [make_record(10), make_record("abc")]
        assert aggregate_field(records, "f1", "avg") == 5
    
    def test_unknown_aggregation(self):
        with pytest.raises(ValueError):
            aggregate_field([], "f1", "median")


class TestComputeChange:
    
    def test_increase(self):
        change = compute_change(150, 100)
        assert change.diff == 50
        assert change.percent == 50
    
    def test_decrease_against_negative_baseline(self):
        change = compute_change(-5, -10)
        assert change.diff == 5
        assert change.percent == -50
    
    def test_zero_baseline_is_zero_percent(self):
        change = compute_change(7, 0)
        assert change.diff == 7
        assert change.percent == 0


def test_field_stats():
    stats = field_stats([make_record(2), make_record(4), make_record(9, field_id="other")], "f1")
    
    assert stats.count == 2
    assert stats.sum == 6
    assert stats.avg == 3
    assert (stats.max, stats.min) == (4, 2)


class TestPeriodComparisonEngine:
    
    @pytest.fixture
    def setup(self):
        dataset = Dataset(InMemoryDataStore())
        fields = FieldRegistry(dataset)
        entities = EntityRegistry(dataset)
        records = RecordStore(dataset)
        
        qty = fields.create(FieldSpec(name="Quantity", type=FieldType.NUMBER))
        shift = fields.create(FieldSpec(name="Shift", type=FieldType.SELECT, options=["Day", "Night"]))
        e1 = entities.create("E1")
        e2 = entities.create("E2")
        
        # previous period: 2024-01-01..07, current: 2024-01-08..14
        records.create(e1.id, {qty.id: 10, shift.id: "Day"}, timestamp="2024-01-03T09:00:00.000Z")
        records.create(e1.id, {qty.id: 20, shift.id: "Day"}, timestamp="2024-01-09T09:00:00.000Z")
        records.create(e1.id, {qty.id: 10, shift.id: "Night"}, timestamp="2024-01-14T23:00:00.000Z")
        records.create(e2.id, {qty.id: 100}, timestamp="2024-01-10T09:00:00.000Z")
        
        return {"engine": PeriodComparisonEngine(dataset), "qty": qty, "shift": shift, "e1": e1}
    
    def test_numeric_comparison(self, setup):
        result = setup["engine"].compare([setup["qty"].id], "2024-01-08", "2024-01-14",
                                         entity_ids=[setup["e1"].id])
        
        assert (result.previous_from, result.previous_to) == ("2024-01-01", "2024-01-07")
        assert result.current_count == 2
        assert result.previous_count == 1
        
        numeric = result.fields[0]
        assert isinstance(numeric, NumericComparison)
        assert numeric.changes["sum"].current == 30
        assert numeric.changes["sum"].previous == 10
        assert numeric.changes["sum"].percent == 200
        assert numeric.changes["avg"].diff == 5
    
    def test_all_entities_by_default(self, setup):
        result = setup["engine"].compare([setup["qty"].id], "2024-01-08", "2024-01-14")
        assert result.fields[0].changes["sum"].current == 130
    
    def test_categorical_comparison(self, setup):
        result = setup["engine"].compare([setup["shift"].id], "2024-01-08", "2024-01-14")
        
        categorical = result.fields[0]
        assert isinstance(categorical, CategoricalComparison)
        assert list(categorical.rows) == ["Day", "Night", MISSING_VALUE_LABEL]
        assert categorical.rows["Day"].current == 1
        assert categorical.rows["Day"].previous == 1
        assert categorical.rows["Night"].percent == 0
    
    def test_unknown_fields_skipped(self, setup):
        result = setup["engine"].compare(["ghost"], "2024-01-08", "2024-01-14")
        assert result.fields == []
    
    def test_to_dict(self, setup):
        data = setup["engine"].compare([setup["qty"].id], "2024-01-08", "2024-01-14").to_dict()
        
        assert data["current"] == {"from": "2024-01-08", "to": "2024-01-14", "count": 3}
        assert data["previous"]["count"] == 1
        assert data["fields"][0]["kind"] == "numeric"
