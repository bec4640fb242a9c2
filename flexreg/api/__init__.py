"""
Flexible Record Registry API Application Factory
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from .. import __version__
from ..config import get_config
from ..logging_config import setup_logging
from .deps import RegistrySystem, get_system
from .entities import router as entities_router
from .fields import router as fields_router
from .records import router as records_router
from .reports import router as reports_router
from .admin import router as admin_router


def create_app(system: Optional[RegistrySystem] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Flexible Record Registry API",
        description="Custom entities, fields and records with filtering, reports and KPIs",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.system = system or RegistrySystem()

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    # Include routers
    app.include_router(entities_router, prefix="/entities", tags=["Entities"])
    app.include_router(fields_router, prefix="/fields", tags=["Fields"])
    app.include_router(records_router, prefix="/records", tags=["Records"])
    app.include_router(reports_router, prefix="/reports", tags=["Reports"])
    app.include_router(admin_router, prefix="/admin", tags=["Admin"])
    
    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "flexreg_api",
            "version": __version__
        }
    
    return app


def run_server(host: Optional[str] = None, port: Optional[int] = None, debug: bool = False):
    """Run the FastAPI server"""
    settings = get_config()
    setup_logging(settings.log_level, log_format=settings.log_format, log_file=settings.log_file)
    uvicorn.run(
        "flexreg.api:create_app",
        factory=True,
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=debug,
        log_level="info"
    )


__all__ = ["create_app", "run_server", "RegistrySystem", "get_system"]
