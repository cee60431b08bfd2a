"""API routes for salesmapper."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from ..config import settings
from ..detection.detector import detect_column_mapping_enhanced
from ..detection.models import DetectionResult, TrainingConfig
from ..detection.services import DetectionServices
from ..evidence.history import save_column_mapping_history
from ..evidence.models import MappingStatistics
from ..evidence.storage import EvidenceStorage

logger = logging.getLogger(__name__)

router = APIRouter()


def get_services(request: Request) -> DetectionServices:
    """Get the detection collaborators configured at startup, if any."""
    return getattr(request.app.state, "services", None) or DetectionServices()


def get_storage(request: Request) -> EvidenceStorage:
    """Get the evidence storage opened at startup."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise HTTPException(status_code=503, detail="Evidence storage is not available")
    return storage


class DetectRequest(BaseModel):
    """Request model for the detect endpoint."""

    rows: list[dict[str, Any]]
    organization_id: str
    distributor_id: Optional[str] = None
    filename: Optional[str] = None
    training_config: Optional[TrainingConfig] = None


class MappingHistoryRequest(BaseModel):
    """Request to record the mapping used for an upload."""

    organization_id: str
    upload_id: Optional[str] = None
    distributor_id: Optional[str] = None
    filename: str
    detected_columns: list[str] = Field(default_factory=list)
    final_mapping: dict[str, Optional[str]]
    confidence_score: float = Field(ge=0.0, le=1.0)
    detection_method: str
    rows_processed: int = Field(default=0, ge=0)
    success_rate: float = Field(default=0.0, ge=0.0, le=1.0)


# Detection endpoints


@router.post("/detect", response_model=DetectionResult)
async def detect(request: DetectRequest, http_request: Request):
    """Detect the header row and column mapping of raw sample rows."""
    result = await detect_column_mapping_enhanced(
        request.rows,
        request.organization_id,
        distributor_id=request.distributor_id,
        filename=request.filename,
        training_config=request.training_config,
        services=get_services(http_request),
    )
    return result


# Mapping history endpoints


@router.post("/mappings/history")
async def record_mapping_history(request: MappingHistoryRequest, http_request: Request):
    """Record the mapping applied to an upload so later uploads can reuse it."""
    storage = get_storage(http_request)
    try:
        record = await save_column_mapping_history(
            storage,
            organization_id=request.organization_id,
            upload_id=request.upload_id,
            distributor_id=request.distributor_id,
            filename=request.filename,
            detected_columns=request.detected_columns,
            final_mapping=request.final_mapping,
            confidence_score=request.confidence_score,
            detection_method=request.detection_method,
            rows_processed=request.rows_processed,
            success_rate=request.success_rate,
        )
    except Exception as e:
        logger.error(f"Failed to save mapping history: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "id": record.id,
        "filename_pattern": record.filename_pattern,
        "message": "Mapping history saved",
    }


@router.get("/mappings/history")
async def list_mapping_history(organization_id: str, http_request: Request, limit: int = 50):
    """List recorded mappings for an organization, newest first."""
    storage = get_storage(http_request)
    records = await storage.get_mapping_history(organization_id, limit=limit)
    return {
        "count": len(records),
        "history": [
            {
                "id": r.id,
                "created_at": r.created_at.isoformat(),
                "distributor_id": r.distributor_id,
                "filename_pattern": r.filename_pattern,
                "final_mapping": r.final_mapping,
                "confidence_score": r.confidence_score,
                "detection_method": r.detection_method,
            }
            for r in records
        ],
    }


@router.get("/mappings/statistics", response_model=MappingStatistics)
async def mapping_statistics(organization_id: str, http_request: Request):
    """Summarize an organization's recorded mappings and most used synonyms."""
    storage = get_storage(http_request)
    return await storage.get_mapping_statistics(organization_id)


# Health check


@router.get("/health")
async def health_check():
    """Health check endpoint with diagnostics."""
    config = {
        "llm_provider": settings.llm_provider,
        "model_name": settings.oracle_model,
        "anthropic_key_present": bool(settings.anthropic_api_key),
        "openrouter_key_present": bool(settings.openrouter_api_key),
        "database_path": str(settings.database_path),
    }

    return {
        "status": "ok",
        "service": "salesmapper",
        "config": config,
    }
