"""
Report, comparison and KPI endpoints

Report validation problems come back as a 200 response carrying an
``error`` key; the caller decides how to present them.
"""

from fastapi import APIRouter, Depends, HTTPException

from ..comparison import previous_range
from ..kpi import basic_metrics, group_by_period
from .deps import RegistrySystem, get_system
from .schemas import ReportRequest, CompareRequest, KpiRequest, PeriodRequest


router = APIRouter()


@router.post("/generate")
async def generate_report(request: ReportRequest, system: RegistrySystem = Depends(get_system)):
    """Aggregate a numeric field per entity or per horizontal-axis value"""
    try:
        result = system.reports.generate_report(
            request.field_id,
            request.aggregation,
            request.filters.to_criteria(),
            request.horizontal_field_id
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result.to_dict()


@router.post("/compare")
async def compare_periods(request: CompareRequest, system: RegistrySystem = Depends(get_system)):
    """Compare fields between a range and the equal-length range before it"""
    try:
        result = system.comparison.compare(
            request.field_ids, request.from_date, request.to_date, request.entity_ids
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result.to_dict()


@router.post("/kpis")
async def kpi_summary(request: KpiRequest, system: RegistrySystem = Depends(get_system)):
    """Basic metrics plus statistics for the KPI fields"""
    try:
        summary = system.kpis.summary(request.filters.to_criteria(), request.field_ids)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return summary.to_dict()


@router.post("/periods")
async def period_buckets(request: PeriodRequest, system: RegistrySystem = Depends(get_system)):
    """Sum and count of a field per day, month or year"""
    try:
        records = system.filters.filter_multiple(request.filters.to_criteria())
        groups = group_by_period(records, request.field_id, request.period)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"period": request.period, "groups": groups, "metrics": basic_metrics(records).to_dict()}


@router.get("/previous-range")
async def get_previous_range(from_date: str, to_date: str):
    """Range of equal duration ending the day before from_date"""
    try:
        prev_from, prev_to = previous_range(from_date, to_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"from": prev_from, "to": prev_to}
