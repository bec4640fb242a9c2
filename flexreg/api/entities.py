"""
Entity endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from ..logging_config import get_logger, log_action
from .deps import RegistrySystem, get_system
from .schemas import CreateEntityRequest, UpdateEntityRequest, AssignFieldsRequest


router = APIRouter()
logger = get_logger("flexreg.api")


@router.get("")
async def list_entities(
    group: Optional[str] = None,
    active_only: bool = False,
    system: RegistrySystem = Depends(get_system)
):
    """List entities, optionally restricted to a group"""
    if group:
        entities = system.entities.get_active_by_group(group) if active_only else system.entities.get_by_group(group)
    else:
        entities = system.entities.get_active() if active_only else system.entities.get_all()
    return {"entities": [e.to_dict() for e in entities]}


@router.get("/groups")
async def list_groups(active_only: bool = False, system: RegistrySystem = Depends(get_system)):
    """Distinct entity groups"""
    groups = system.entities.get_active_groups() if active_only else system.entities.get_all_groups()
    return {"groups": groups}


@router.post("")
async def create_entity(request: CreateEntityRequest, system: RegistrySystem = Depends(get_system)):
    """Create an entity"""
    entity = system.entities.create(request.name, group=request.group, active=request.active)
    log_action(logger, "info", "Entity created", action="create", resource="entity", resource_id=entity.id)
    return entity.to_dict()


@router.get("/{entity_id}")
async def get_entity(entity_id: str, system: RegistrySystem = Depends(get_system)):
    """Get entity by ID"""
    entity = system.entities.get_by_id(entity_id)
    if not entity:
        raise HTTPException(status_code=404, detail="Entity not found")
    return entity.to_dict()


@router.put("/{entity_id}")
async def update_entity(
    entity_id: str,
    request: UpdateEntityRequest,
    system: RegistrySystem = Depends(get_system)
):
    """Update entity attributes"""
    entity = system.entities.update(
        entity_id,
        name=request.name,
        group=request.group,
        active=request.active,
        fields=request.fields
    )
    if not entity:
        raise HTTPException(status_code=404, detail="Entity not found")
    log_action(logger, "info", "Entity updated", action="update", resource="entity", resource_id=entity_id)
    return entity.to_dict()


@router.put("/{entity_id}/fields")
async def assign_fields(
    entity_id: str,
    request: AssignFieldsRequest,
    system: RegistrySystem = Depends(get_system)
):
    """Replace the fields assigned to an entity"""
    entity = system.entities.assign_fields(entity_id, request.field_ids)
    if not entity:
        raise HTTPException(status_code=404, detail="Entity not found")
    log_action(logger, "info", "Entity fields assigned", action="assign_fields",
               resource="entity", resource_id=entity_id, extra={"fields": request.field_ids})
    return entity.to_dict()


@router.delete("/{entity_id}")
async def delete_entity(entity_id: str, system: RegistrySystem = Depends(get_system)):
    """Delete an entity and its records"""
    if not system.entities.delete(entity_id):
        raise HTTPException(status_code=404, detail="Entity not found")
    log_action(logger, "info", "Entity deleted", action="delete", resource="entity", resource_id=entity_id)
    return {"deleted": True}
