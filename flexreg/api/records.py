"""
Record endpoints
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from ..export import records_to_csv
from ..filters import FilterCriteria
from ..logging_config import get_logger, log_action
from .deps import RegistrySystem, get_system
from .schemas import CreateRecordRequest, UpdateRecordRequest, UpdateRecordDateRequest, BulkDeleteRequest


router = APIRouter()
logger = get_logger("flexreg.api")


def _criteria(entity_ids: Optional[List[str]], from_date: Optional[str], to_date: Optional[str]) -> FilterCriteria:
    return FilterCriteria(entity_ids=list(entity_ids or []), from_date=from_date, to_date=to_date)


@router.get("")
async def list_records(
    entity_ids: Optional[List[str]] = Query(None),
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    system: RegistrySystem = Depends(get_system)
):
    """Filtered records"""
    try:
        records = system.filters.filter_multiple(_criteria(entity_ids, from_date, to_date))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"records": [r.to_dict() for r in records]}


@router.get("/recent")
async def recent_records(limit: Optional[int] = None, system: RegistrySystem = Depends(get_system)):
    """Most recent records first"""
    limit = limit or system.settings.recent_records_limit
    return {"records": [r.to_dict() for r in system.records.get_recent(limit)]}


@router.get("/csv", response_class=PlainTextResponse)
async def export_records_csv(
    entity_ids: Optional[List[str]] = Query(None),
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    system: RegistrySystem = Depends(get_system)
):
    """Filtered records as CSV"""
    records = system.filters.filter_multiple(_criteria(entity_ids, from_date, to_date))
    return records_to_csv(records, system.entities.get_all(), system.fields.get_all())


@router.post("")
async def create_record(request: CreateRecordRequest, system: RegistrySystem = Depends(get_system)):
    """Validate a form against the entity's fields and store it"""
    entity = system.entities.get_by_id(request.entity_id)
    if not entity:
        raise HTTPException(status_code=404, detail="Entity not found")
    
    validation = system.fields.validate_form(system.fields.get_by_ids(entity.fields), request.data)
    if not validation.is_valid:
        raise HTTPException(status_code=400, detail={"errors": validation.errors})
    
    try:
        record = system.records.create(entity.id, validation.data, timestamp=request.timestamp)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action(logger, "info", "Record created", action="create", resource="record", resource_id=record.id)
    return record.to_dict()


@router.post("/bulk-delete")
async def bulk_delete_records(request: BulkDeleteRequest, system: RegistrySystem = Depends(get_system)):
    """Delete several records"""
    removed = system.records.delete_many(request.record_ids)
    log_action(logger, "info", "Records deleted", action="bulk_delete", resource="record",
               extra={"removed": removed})
    return {"deleted": removed}


@router.get("/{record_id}")
async def get_record(record_id: str, system: RegistrySystem = Depends(get_system)):
    """Get record by ID"""
    record = system.records.get_by_id(record_id)
    if not record:
        raise HTTPException(status_code=404, detail="Record not found")
    return record.to_dict()


@router.put("/{record_id}")
async def update_record(record_id: str, request: UpdateRecordRequest, system: RegistrySystem = Depends(get_system)):
    """Merge values into a record and optionally move it in time"""
    try:
        updated = system.records.update(record_id, request.data, request.timestamp)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not updated:
        raise HTTPException(status_code=404, detail="Record not found")
    log_action(logger, "info", "Record updated", action="update", resource="record", resource_id=record_id)
    return system.records.get_by_id(record_id).to_dict()


@router.put("/{record_id}/date")
async def update_record_date(
    record_id: str,
    request: UpdateRecordDateRequest,
    system: RegistrySystem = Depends(get_system)
):
    """Change a record's timestamp"""
    try:
        record = system.records.update_date(record_id, request.timestamp)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not record:
        raise HTTPException(status_code=404, detail="Record not found")
    return record.to_dict()


@router.delete("/{record_id}")
async def delete_record(record_id: str, system: RegistrySystem = Depends(get_system)):
    """Delete a record"""
    if not system.records.delete(record_id):
        raise HTTPException(status_code=404, detail="Record not found")
    log_action(logger, "info", "Record deleted", action="delete", resource="record", resource_id=record_id)
    return {"deleted": True}
