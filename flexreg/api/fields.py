"""
Field endpoints
"""

from fastapi import APIRouter, Depends, HTTPException

from ..logging_config import get_logger, log_action
from .deps import RegistrySystem, get_system
from .schemas import FieldRequest


router = APIRouter()
logger = get_logger("flexreg.api")


@router.get("")
async def list_fields(active_only: bool = False, system: RegistrySystem = Depends(get_system)):
    """List field definitions"""
    fields = system.fields.get_active() if active_only else system.fields.get_all()
    return {"fields": [f.to_dict() for f in fields]}


@router.get("/shared-numeric")
async def list_shared_numeric_fields(system: RegistrySystem = Depends(get_system)):
    """Numeric fields assigned to more than one entity"""
    return {"fields": [f.to_dict() for f in system.fields.get_shared_numeric_fields()]}


@router.post("")
async def create_field(request: FieldRequest, system: RegistrySystem = Depends(get_system)):
    """Create field definition"""
    try:
        fld = system.fields.create(request.to_spec())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    log_action(logger, "info", "Field created", action="create", resource="field", resource_id=fld.id)
    return fld.to_dict()


@router.get("/{field_id}")
async def get_field(field_id: str, system: RegistrySystem = Depends(get_system)):
    """Get field definition"""
    fld = system.fields.get_by_id(field_id)
    if not fld:
        raise HTTPException(status_code=404, detail="Field not found")
    return fld.to_dict()


@router.put("/{field_id}")
async def update_field(field_id: str, request: FieldRequest, system: RegistrySystem = Depends(get_system)):
    """Replace a field definition"""
    try:
        fld = system.fields.update(field_id, request.to_spec())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not fld:
        raise HTTPException(status_code=404, detail="Field not found")
    log_action(logger, "info", "Field updated", action="update", resource="field", resource_id=field_id)
    return fld.to_dict()


@router.delete("/{field_id}")
async def delete_field(field_id: str, system: RegistrySystem = Depends(get_system)):
    """Delete a field definition and unassign it from entities"""
    if not system.fields.delete(field_id):
        raise HTTPException(status_code=404, detail="Field not found")
    log_action(logger, "info", "Field deleted", action="delete", resource="field", resource_id=field_id)
    return {"deleted": True}
