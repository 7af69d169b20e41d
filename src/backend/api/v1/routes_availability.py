from __future__ import annotations

from datetime import date as Date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from src.backend.domain.models.availability import AvailabilitySettings, TimeSlot, Weekday, WeeklySchedule
from src.backend.domain.models.consultation import CommunicationChannel, ConsultationType
from src.backend.domain.models.user import User
from src.backend.infra.latency import latency_dependency
from src.backend.security import require_medical_student
from src.backend.services.audit.service import audit_service
from src.backend.services.availability.service import AvailabilityConflictError, availability_service


router = APIRouter(
    prefix="/medical-student/availability",
    tags=["availability"],
    dependencies=[Depends(latency_dependency)],
)


class ExcludedDateRequest(BaseModel):
    date: Date
    reason: str = Field(min_length=1)


class ConsultationTypeUpdateRequest(BaseModel):
    enabled: Optional[bool] = None
    expertise: Optional[int] = Field(default=None, ge=1, le=5)


class CommunicationPreferenceUpdateRequest(BaseModel):
    enabled: Optional[bool] = None
    notes: Optional[str] = None


def _audit(action: str, user: User, **extra) -> None:
    audit_service.log_event(
        action=action,
        resource_type="availability",
        resource_id=user.id,
        extra=extra or None,
    )


@router.get("/", response_model=AvailabilitySettings)
async def get_availability(current_user: User = Depends(require_medical_student)) -> AvailabilitySettings:
    return availability_service.get_settings(current_user.id)


@router.put("/schedule", response_model=AvailabilitySettings)
async def replace_weekly_schedule(
    payload: WeeklySchedule,
    current_user: User = Depends(require_medical_student),
) -> AvailabilitySettings:
    updated = availability_service.replace_weekly_schedule(current_user.id, payload)
    _audit("replace_weekly_schedule", current_user)
    return updated


@router.post("/schedule/{day}/toggle", response_model=AvailabilitySettings)
async def toggle_day(
    day: Weekday,
    current_user: User = Depends(require_medical_student),
) -> AvailabilitySettings:
    updated = availability_service.toggle_day(current_user.id, day)
    _audit("toggle_day", current_user, day=day.value)
    return updated


@router.post("/schedule/{day}/{slot}/toggle", response_model=AvailabilitySettings)
async def toggle_time_slot(
    day: Weekday,
    slot: TimeSlot,
    current_user: User = Depends(require_medical_student),
) -> AvailabilitySettings:
    updated = availability_service.toggle_time_slot(current_user.id, day, slot)
    _audit("toggle_time_slot", current_user, day=day.value, slot=slot.value)
    return updated


@router.post("/schedule/{day}/copy-previous", response_model=AvailabilitySettings)
async def copy_from_previous_day(
    day: Weekday,
    current_user: User = Depends(require_medical_student),
) -> AvailabilitySettings:
    updated = availability_service.copy_from_previous_day(current_user.id, day)
    _audit("copy_from_previous_day", current_user, day=day.value)
    return updated


@router.post("/schedule/{day}/copy-to-weekdays", response_model=AvailabilitySettings)
async def copy_to_weekdays(
    day: Weekday,
    current_user: User = Depends(require_medical_student),
) -> AvailabilitySettings:
    updated = availability_service.copy_to_weekdays(current_user.id, day)
    _audit("copy_to_weekdays", current_user, day=day.value)
    return updated


@router.post("/excluded-dates", response_model=AvailabilitySettings, status_code=status.HTTP_201_CREATED)
async def add_excluded_date(
    payload: ExcludedDateRequest,
    current_user: User = Depends(require_medical_student),
) -> AvailabilitySettings:
    try:
        updated = availability_service.add_excluded_date(
            current_user.id, excluded=payload.date, reason=payload.reason
        )
    except AvailabilityConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    _audit("add_excluded_date", current_user)
    return updated


@router.delete("/excluded-dates/{excluded}", response_model=AvailabilitySettings)
async def remove_excluded_date(
    excluded: Date,
    current_user: User = Depends(require_medical_student),
) -> AvailabilitySettings:
    updated = availability_service.remove_excluded_date(current_user.id, excluded)
    _audit("remove_excluded_date", current_user)
    return updated


@router.patch("/consultation-types/{consultation_type}", response_model=AvailabilitySettings)
async def update_consultation_type(
    consultation_type: ConsultationType,
    payload: ConsultationTypeUpdateRequest,
    current_user: User = Depends(require_medical_student),
) -> AvailabilitySettings:
    try:
        updated = availability_service.update_consultation_type(
            current_user.id,
            consultation_type,
            enabled=payload.enabled,
            expertise=payload.expertise,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    _audit("update_consultation_type", current_user, type=consultation_type.value)
    return updated


@router.patch("/communication-preferences/{channel}", response_model=AvailabilitySettings)
async def update_communication_preference(
    channel: CommunicationChannel,
    payload: CommunicationPreferenceUpdateRequest,
    current_user: User = Depends(require_medical_student),
) -> AvailabilitySettings:
    updated = availability_service.update_communication_preference(
        current_user.id,
        channel,
        enabled=payload.enabled,
        notes=payload.notes,
    )
    _audit("update_communication_preference", current_user, channel=channel.value)
    return updated
