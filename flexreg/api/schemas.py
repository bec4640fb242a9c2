"""
Pydantic schemas for API requests
"""

from typing import Dict, List, Optional, Any
from pydantic import BaseModel, Field

from ..fields import FieldSpec, FieldType
from ..filters import FilterCriteria


class FilterModel(BaseModel):
    entity_id: Optional[str] = None
    entity_ids: List[str] = Field(default_factory=list)
    from_date: Optional[str] = Field(None, description="YYYY-MM-DD, inclusive")
    to_date: Optional[str] = Field(None, description="YYYY-MM-DD, inclusive to 23:59:59")
    horizontal_field_id: Optional[str] = None
    horizontal_field_option: Optional[Any] = None
    
    def to_criteria(self) -> FilterCriteria:
        return FilterCriteria(
            entity_id=self.entity_id,
            entity_ids=list(self.entity_ids),
            from_date=self.from_date,
            to_date=self.to_date,
            horizontal_field_id=self.horizontal_field_id,
            horizontal_field_option=self.horizontal_field_option
        )


# Entity schemas
class CreateEntityRequest(BaseModel):
    name: str
    group: str = ""
    active: bool = True


class UpdateEntityRequest(BaseModel):
    name: Optional[str] = None
    group: Optional[str] = None
    active: Optional[bool] = None
    fields: Optional[List[str]] = None


class AssignFieldsRequest(BaseModel):
    field_ids: List[str]


# Field schemas
class FieldRequest(BaseModel):
    name: str
    type: str = Field(..., description="Field type (text, number, select)")
    required: bool = False
    options: List[str] = Field(default_factory=list)
    use_for_records_table: bool = False
    is_column3: bool = False
    is_column4: bool = False
    is_column5: bool = False
    use_for_comparative_reports: bool = False
    is_horizontal_axis: bool = False
    is_compare_field: bool = False
    active: Optional[bool] = None
    
    def to_spec(self) -> FieldSpec:
        values = self.model_dump()
        values["type"] = FieldType(values["type"])
        return FieldSpec(**values)


# Record schemas
class CreateRecordRequest(BaseModel):
    entity_id: str
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[str] = Field(None, description="ISO-8601 instant, defaults to now")


class UpdateRecordRequest(BaseModel):
    data: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[str] = None


class UpdateRecordDateRequest(BaseModel):
    timestamp: str


class BulkDeleteRequest(BaseModel):
    record_ids: List[str]


# Report schemas
class ReportRequest(BaseModel):
    field_id: str
    aggregation: str = Field("sum", description="sum or average")
    filters: FilterModel = Field(default_factory=FilterModel)
    horizontal_field_id: Optional[str] = None


class CompareRequest(BaseModel):
    field_ids: List[str]
    from_date: str
    to_date: str
    entity_ids: List[str] = Field(default_factory=list)


class KpiRequest(BaseModel):
    filters: FilterModel = Field(default_factory=FilterModel)
    field_ids: Optional[List[str]] = None


class PeriodRequest(BaseModel):
    field_id: str
    period: str = Field("day", description="day, month or year")
    filters: FilterModel = Field(default_factory=FilterModel)
