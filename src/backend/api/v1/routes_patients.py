from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from src.backend.domain.models.health_profile import (
    AlcoholConsumption,
    ExerciseFrequency,
    HealthMetric,
    HealthSummary,
    Medication,
    PatientHealthProfile,
    SmokingStatus,
)
from src.backend.domain.models.user import User, UserRole
from src.backend.infra.latency import latency_dependency
from src.backend.security import get_current_user, require_patient
from src.backend.services.audit.service import audit_service
from src.backend.services.consultations.service import consultation_service
from src.backend.services.health.service import health_service


router = APIRouter(
    prefix="/patients",
    tags=["patients"],
    dependencies=[Depends(latency_dependency)],
)


class HealthProfileUpdateRequest(BaseModel):
    height: Optional[str] = None
    weight: Optional[str] = None
    bmi: Optional[float] = Field(default=None, ge=0)
    blood_pressure: Optional[str] = None
    blood_type: Optional[str] = None
    allergies: Optional[List[str]] = None
    medications: Optional[List[Medication]] = None
    chronic_conditions: Optional[List[str]] = None
    family_history: Optional[List[str]] = None
    last_checkup: Optional[date] = None
    smoking_status: Optional[SmokingStatus] = None
    alcohol_consumption: Optional[AlcoholConsumption] = None
    exercise_frequency: Optional[ExerciseFrequency] = None
    recent_metrics: Optional[List[HealthMetric]] = None


def ensure_can_view_patient(user: User, patient_id: str) -> None:
    """Patients see their own record; students see patients they consult for."""

    if user.role == UserRole.PATIENT:
        if user.id == patient_id:
            return
    else:
        assigned = consultation_service.list_consultations(user_id=user.id, role=UserRole.MEDICAL_STUDENT)
        if any(c.patient_id == patient_id for c in assigned):
            return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Not authorized to view this patient's health data",
    )


@router.get("/{patient_id}/health-profile", response_model=PatientHealthProfile)
async def get_health_profile(
    patient_id: str,
    current_user: User = Depends(get_current_user),
) -> PatientHealthProfile:
    ensure_can_view_patient(current_user, patient_id)
    profile = health_service.get_health_profile(patient_id)

    audit_service.log_event(
        action="get_health_profile",
        resource_type="health_profile",
        resource_id=profile.id,
    )

    return profile


@router.patch("/{patient_id}/health-profile", response_model=PatientHealthProfile)
async def update_health_profile(
    patient_id: str,
    payload: HealthProfileUpdateRequest,
    current_user: User = Depends(require_patient),
) -> PatientHealthProfile:
    if current_user.id != patient_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Patients can only update their own health profile",
        )

    updates = payload.model_dump(exclude_unset=True)
    try:
        profile = health_service.update_health_profile(patient_id, updates)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    audit_service.log_event(
        action="update_health_profile",
        resource_type="health_profile",
        resource_id=profile.id,
        extra={"fields": sorted(updates)},
    )

    return profile


@router.get("/{patient_id}/health-summary", response_model=HealthSummary)
async def get_health_summary(
    patient_id: str,
    current_user: User = Depends(get_current_user),
) -> HealthSummary:
    ensure_can_view_patient(current_user, patient_id)
    return health_service.get_health_summary(patient_id)
