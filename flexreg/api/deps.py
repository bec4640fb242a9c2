"""
System wiring and request dependencies
"""

from typing import Optional

from fastapi import Request

from ..config import FlexregConfig, get_config
from ..storage import Dataset, DataStoreInterface, create_data_store
from ..entities import EntityRegistry
from ..fields import FieldRegistry
from ..records import RecordStore
from ..filters import FilterEngine
from ..reporting import ReportingEngine
from ..comparison import PeriodComparisonEngine
from ..kpi import KpiCalculator


class RegistrySystem:
    """Dataset plus every registry and engine bound to it"""
    
    def __init__(self, store: Optional[DataStoreInterface] = None,
                 settings: Optional[FlexregConfig] = None):
        self.settings = settings or get_config()
        self.dataset = Dataset(store or create_data_store(self.settings))
        
        self.entities = EntityRegistry(self.dataset)
        self.fields = FieldRegistry(self.dataset)
        self.records = RecordStore(self.dataset)
        self.filters = FilterEngine(self.records)
        self.reports = ReportingEngine(self.dataset)
        self.comparison = PeriodComparisonEngine(self.dataset)
        self.kpis = KpiCalculator(self.dataset)
    
    def close(self) -> None:
        self.dataset.close()


def get_system(request: Request) -> RegistrySystem:
    """Registry system attached to the running app"""
    return request.app.state.system
