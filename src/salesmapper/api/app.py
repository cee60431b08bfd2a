"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import settings
from ..detection.services import DetectionServices
from ..evidence.storage import EvidenceStorage
from ..llm.oracle import create_oracles
from .routes import router

logger = logging.getLogger(__name__)

# Global storage instance
_storage: Optional[EvidenceStorage] = None


def get_storage() -> EvidenceStorage:
    """Get the global evidence storage instance."""
    global _storage
    if _storage is None:
        _storage = EvidenceStorage()
    return _storage


def get_services() -> DetectionServices:
    """Build detection collaborators from settings and the global storage."""
    storage = get_storage()
    header_oracle, mapping_oracle = create_oracles(settings)
    return DetectionServices(
        header_oracle=header_oracle,
        mapping_oracle=mapping_oracle,
        synonym_store=storage,
        learned_mapping_store=storage,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    # Startup
    storage = get_storage()
    await storage.initialize()
    app.state.storage = storage
    app.state.services = get_services()
    logger.info(
        f"salesmapper started (AI detection "
        f"{'enabled' if app.state.services.mapping_oracle else 'disabled'})"
    )
    yield
    # Shutdown
    await storage.close()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="salesmapper",
        description="Column-mapping detection for distributor sales reports",
        version="0.1.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routes
    app.include_router(router, prefix="/api")

    return app
