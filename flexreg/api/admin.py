"""
Administrative endpoints: dataset config, import/export, consistency
"""

from typing import Any, Dict
import json

from fastapi import APIRouter, Body, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from ..consistency import check_consistency
from ..export import export_data, import_data
from ..logging_config import get_logger, log_action
from .deps import RegistrySystem, get_system


router = APIRouter()
logger = get_logger("flexreg.api")


@router.get("/config")
async def get_dataset_config(system: RegistrySystem = Depends(get_system)):
    """Current dataset config"""
    return system.dataset.get_config()


@router.put("/config")
async def update_dataset_config(
    changes: Dict[str, Any] = Body(...),
    system: RegistrySystem = Depends(get_system)
):
    """Merge settings into the dataset config"""
    config = system.dataset.update_config(changes)
    log_action(logger, "info", "Dataset config updated", action="update", resource="config",
               extra={"keys": sorted(changes.keys())})
    return config


@router.get("/export", response_class=PlainTextResponse)
async def export_dataset(system: RegistrySystem = Depends(get_system)):
    """Full dataset as JSON"""
    return export_data(system.dataset)


@router.post("/import")
async def import_dataset(
    document: Dict[str, Any] = Body(...),
    system: RegistrySystem = Depends(get_system)
):
    """Replace the dataset with an exported document"""
    if not import_data(system.dataset, json.dumps(document)):
        raise HTTPException(status_code=400, detail="Invalid dataset document")
    log_action(logger, "info", "Dataset imported", action="import", resource="dataset")
    return {"imported": True}


@router.get("/consistency")
async def consistency_report(system: RegistrySystem = Depends(get_system)):
    """Dangling references in the dataset"""
    return check_consistency(system.dataset.snapshot()).to_dict()
