"""
Entity Registry Module

Tracked subjects (a site, a machine, a team...) with an ordered list of
assigned field ids and an optional group label.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Iterable
import logging
import uuid

from .storage import Dataset


logger = logging.getLogger(__name__)


@dataclass
class Entity:
    """Entity as stored in the dataset"""
    id: str
    name: str
    fields: List[str] = field(default_factory=list)
    group: str = ""
    active: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "fields": list(self.fields),
            "group": self.group,
            "active": self.active
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Entity':
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            fields=list(data.get("fields") or []),
            group=data.get("group") or "",
            active=data.get("active", True) is not False
        )


class EntityRegistry:
    """CRUD over entity definitions and their field assignments"""

    def __init__(self, dataset: Dataset):
        self.dataset = dataset

    def get_all(self) -> List[Entity]:
        return [Entity.from_dict(e) for e in self.dataset.snapshot()["entities"]]

    def get_active(self) -> List[Entity]:
        return [e for e in self.get_all() if e.active]

    def get_by_id(self, entity_id: str) -> Optional[Entity]:
        for data in self.dataset.snapshot()["entities"]:
            if data.get("id") == entity_id:
                return Entity.from_dict(data)
        return None

    def create(self, name: str, group: str = "", active: bool = True) -> Entity:
        """Create an entity with no fields assigned"""
        entity = Entity(
            id=f"entity_{uuid.uuid4().hex}",
            name=str(name),
            group=str(group or ""),
            active=bool(active)
        )

        with self.dataset.mutate() as data:
            data["entities"].append(entity.to_dict())

        logger.info(f"Entity created: {entity.id} ({entity.name})")
        return entity

    def update(self, entity_id: str, name: Optional[str] = None, group: Optional[str] = None,
               active: Optional[bool] = None, fields: Optional[Iterable[str]] = None) -> Optional[Entity]:
        """Update only the attributes that are supplied"""
        with self.dataset.mutate() as data:
            target = next((e for e in data["entities"] if e.get("id") == entity_id), None)
            if target is None:
                logger.warning(f"Entity update skipped, not found: {entity_id}")
                return None

            if name is not None:
                target["name"] = str(name)
            if group is not None:
                target["group"] = str(group)
            if active is not None:
                target["active"] = bool(active)
            if fields is not None:
                target["fields"] = list(fields)
            updated = dict(target)

        return Entity.from_dict(updated)

    def rename(self, entity_id: str, name: str) -> Optional[Entity]:
        return self.update(entity_id, name=name)

    def delete(self, entity_id: str) -> bool:
        """Delete an entity together with every record that belongs to it"""
        with self.dataset.mutate() as data:
            initial = len(data["entities"])
            data["entities"] = [e for e in data["entities"] if e.get("id") != entity_id]
            removed = len(data["entities"]) < initial

            records_before = len(data["records"])
            data["records"] = [r for r in data["records"] if r.get("entityId") != entity_id]
            cascaded = records_before - len(data["records"])

        if removed or cascaded:
            logger.info(f"Entity deleted: {entity_id} (records removed: {cascaded})")
        return removed

    def assign_fields(self, entity_id: str, field_ids: Iterable[str]) -> Optional[Entity]:
        """Replace the entity's field list as given (no dedup, no lookup)"""
        with self.dataset.mutate() as data:
            target = next((e for e in data["entities"] if e.get("id") == entity_id), None)
            if target is None:
                return None
            target["fields"] = list(field_ids)
            updated = dict(target)

        return Entity.from_dict(updated)

    def get_all_groups(self) -> List[str]:
        return sorted({e.group for e in self.get_all() if e.group})

    def get_active_groups(self) -> List[str]:
        return sorted({e.group for e in self.get_active() if e.group})

    def get_by_group(self, group_name: str) -> List[Entity]:
        if not group_name:
            return []
        return [e for e in self.get_all() if e.group == group_name]

    def get_active_by_group(self, group_name: str) -> List[Entity]:
        return [e for e in self.get_by_group(group_name) if e.active]
