import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.backend.api.v1.routes_system import router as system_router_v1
from src.backend.api.v1.routes_auth import router as auth_router_v1
from src.backend.api.v1.routes_consultations import router as consultations_router_v1
from src.backend.api.v1.routes_medical_student import router as medical_student_router_v1
from src.backend.api.v1.routes_availability import router as availability_router_v1
from src.backend.api.v1.routes_documents import router as documents_router_v1
from src.backend.api.v1.routes_patients import router as patients_router_v1
from src.backend.api.v1.routes_communication import router as communication_router_v1
from src.backend.api.v1.routes_messages import router as messages_router_v1
from src.backend.api.v1.routes_analytics import router as analytics_router_v1
from src.backend.config import settings
from src.backend.infra.db.bootstrap import init_sql_repositories

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(title="Murph Consultation API")


@app.on_event("startup")
async def on_startup() -> None:
    """Application startup hook.

    When USE_SQL_REPOS is enabled and a DATABASE_URL is configured, this
    switches consultations to the SQL-backed repository. In other
    environments (tests, local demo) this is a no-op and the in-memory
    repository stays active.
    """

    init_sql_repositories()

# CORS configuration, permissive by default for the demo frontend. Tighten via
# CORS_ALLOW_ORIGINS in production deployments.
allow_origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()] or ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    """Basic liveness probe for the API root."""
    return {"status": "ok"}


# Versioned API routers
app.include_router(system_router_v1, prefix="/api/v1")
app.include_router(auth_router_v1, prefix="/api/v1")
app.include_router(consultations_router_v1, prefix="/api/v1")
app.include_router(medical_student_router_v1, prefix="/api/v1")
app.include_router(availability_router_v1, prefix="/api/v1")
app.include_router(documents_router_v1, prefix="/api/v1")
app.include_router(patients_router_v1, prefix="/api/v1")
app.include_router(communication_router_v1, prefix="/api/v1")
app.include_router(messages_router_v1, prefix="/api/v1")
app.include_router(analytics_router_v1, prefix="/api/v1")
