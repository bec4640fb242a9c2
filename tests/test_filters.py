"""
Test suite for record filtering and date shortcuts
"""

from datetime import date

import pytest

from flexreg.storage import InMemoryDataStore, Dataset
from flexreg.records import RecordStore, Record
from flexreg.filters import FilterCriteria, FilterEngine, apply_filters, shortcut_range


def make_record(record_id, entity_id, timestamp, **data):
    return Record(id=record_id, entity_id=entity_id, timestamp=timestamp, data=data)


@pytest.fixture
def sample_records():
    return [
        make_record("r1", "e1", "2024-01-01T00:00:00.000Z", shift="Day"),
        make_record("r2", "e1", "2024-01-05T23:59:59.000Z", shift="Night"),
        make_record("r3", "e2", "2024-01-06T00:00:00.000Z", shift="Day"),
        make_record("r4", "e3", "2024-01-03T12:00:00.000Z"),
    ]


def ids(records):
    return [r.id for r in records]


class TestApplyFilters:
    
    def test_no_criteria_returns_everything(self, sample_records):
        result = apply_filters(sample_records)
        
        assert ids(result) == ["r1", "r2", "r3", "r4"]
        assert result is not sample_records
    
    def test_inclusive_date_range(self, sample_records):
        """Both bounds are whole days: 00:00:00 through 23:59:59"""
        criteria = FilterCriteria(from_date="2024-01-01", to_date="2024-01-05")
        assert ids(apply_filters(sample_records, criteria)) == ["r1", "r2", "r4"]
    
    def test_open_ended_ranges(self, sample_records):
        assert ids(apply_filters(sample_records, FilterCriteria(from_date="2024-01-05"))) == ["r2", "r3"]
        assert ids(apply_filters(sample_records, FilterCriteria(to_date="2024-01-01"))) == ["r1"]
    
    def test_entity_set(self, sample_records):
        criteria = FilterCriteria(entity_ids=["e1", "e3"])
        assert ids(apply_filters(sample_records, criteria)) == ["r1", "r2", "r4"]
    
    def test_single_entity(self, sample_records):
        assert ids(apply_filters(sample_records, FilterCriteria(entity_id="e2"))) == ["r3"]
    
    def test_field_option(self, sample_records):
        criteria = FilterCriteria(horizontal_field_id="shift", horizontal_field_option="Day")
        assert ids(apply_filters(sample_records, criteria)) == ["r1", "r3"]
    
    def test_criteria_combine(self, sample_records):
        criteria = FilterCriteria(
            entity_ids=["e1", "e2"],
            from_date="2024-01-02",
            horizontal_field_id="shift",
            horizontal_field_option="Night"
        )
        assert ids(apply_filters(sample_records, criteria)) == ["r2"]
    
    def test_empty_input(self):
        assert apply_filters([], FilterCriteria(entity_ids=["e1"])) == []


class TestFilterCriteria:
    
    def test_from_camel_case(self):
        criteria = FilterCriteria.from_dict({
            "entityIds": ["e1"],
            "fromDate": "2024-01-01",
            "toDate": "",
            "horizontalFieldId": "f1",
            "horizontalFieldOption": "A"
        })
        
        assert criteria.entity_ids == ["e1"]
        assert criteria.from_date == "2024-01-01"
        assert criteria.to_date is None
        assert criteria.horizontal_field_id == "f1"
        assert criteria.horizontal_field_option == "A"
    
    def test_from_none(self):
        assert FilterCriteria.from_dict(None) == FilterCriteria()


class TestFilterEngine:
    
    @pytest.fixture
    def engine(self):
        store = RecordStore(Dataset(InMemoryDataStore()))
        store.create("e1", {}, timestamp="2024-01-01T10:00:00.000Z")
        store.create("e2", {}, timestamp="2024-01-02T10:00:00.000Z")
        store.create("e3", {}, timestamp="2024-01-03T10:00:00.000Z")
        return FilterEngine(store)
    
    def test_filter_single_entity(self, engine):
        result = engine.filter(FilterCriteria(entity_id="e2"))
        assert [r.entity_id for r in result] == ["e2"]
    
    def test_filter_multiple_empty_set_keeps_all(self, engine):
        result = engine.filter_multiple(FilterCriteria(entity_ids=[], to_date="2024-01-02"))
        assert [r.entity_id for r in result] == ["e1", "e2"]
    
    def test_filter_multiple(self, engine):
        result = engine.filter_multiple(FilterCriteria(entity_ids=["e1", "e3"]))
        assert [r.entity_id for r in result] == ["e1", "e3"]


class TestShortcuts:
    # Wednesday
    TODAY = date(2024, 5, 15)
    
    @pytest.mark.parametrize("name,expected", [
        ("yesterday", ("2024-05-14", "2024-05-14")),
        ("thisWeek", ("2024-05-13", "2024-05-15")),
        ("lastWeek", ("2024-05-06", "2024-05-12")),
        ("thisMonth", ("2024-05-01", "2024-05-15")),
        ("lastMonth", ("2024-04-01", "2024-04-30")),
        ("lastMonday", ("2024-05-06", "2024-05-06")),
        ("lastSunday", ("2024-05-12", "2024-05-12")),
    ])
    def test_shortcut(self, name, expected):
        assert shortcut_range(name, today=self.TODAY) == expected
    
    def test_last_month_across_year(self):
        assert shortcut_range("lastMonth", today=date(2024, 1, 10)) == ("2023-12-01", "2023-12-31")
    
    def test_unknown_shortcut(self):
        with pytest.raises(ValueError, match="Unknown date shortcut"):
            shortcut_range("fortnight", today=self.TODAY)
