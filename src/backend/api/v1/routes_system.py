from fastapi import APIRouter

from src.backend.config import settings
from src.backend.infra.db import inmemory as repos
from src.backend.infra.db.sql_consultations import SqlConsultationRepository

router = APIRouter(prefix="", tags=["system"])


@router.get("/health")
async def health_check_v1() -> dict:
    """API v1 health endpoint."""
    return {"status": "ok", "version": "v1"}


@router.get("/system/storage")
async def storage_info_v1() -> dict:
    """Report which consultation repository is active.

    Returns ``{"consultations": "sql"}`` once the SQL bootstrap has run and
    ``{"consultations": "memory"}`` otherwise.
    """

    backend = "sql" if isinstance(repos.consultation_repository, SqlConsultationRepository) else "memory"
    return {"consultations": backend, "demo_data": settings.seed_demo_data}
