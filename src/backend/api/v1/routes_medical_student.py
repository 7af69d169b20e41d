from __future__ import annotations

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from src.backend.domain.models.consultation import Consultation, ConsultationBoard, ConsultationStatus
from src.backend.domain.models.user import User
from src.backend.infra.latency import latency_dependency
from src.backend.security import require_medical_student
from src.backend.services.audit.service import audit_service
from src.backend.services.consultations.service import ConsultationStateError, consultation_service


router = APIRouter(
    prefix="/medical-student/consultations",
    tags=["medical-student"],
    dependencies=[Depends(latency_dependency)],
)


class StatusUpdateRequest(BaseModel):
    status: ConsultationStatus
    scheduled_for: Optional[datetime] = None
    notes: Optional[str] = None


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Consultation not found")


@router.get("/", response_model=ConsultationBoard)
async def get_board(current_user: User = Depends(require_medical_student)) -> ConsultationBoard:
    return consultation_service.get_board(current_user.id)


@router.post("/{consultation_id}/accept", response_model=Consultation)
async def accept_consultation(
    consultation_id: str,
    current_user: User = Depends(require_medical_student),
) -> Consultation:
    try:
        consultation = consultation_service.accept_consultation(
            consultation_id, medical_student_id=current_user.id
        )
    except ConsultationStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if consultation is None:
        raise _not_found()

    audit_service.log_event(
        action="accept_consultation",
        resource_type="consultation",
        resource_id=consultation_id,
    )

    return consultation


@router.post("/{consultation_id}/decline", status_code=status.HTTP_204_NO_CONTENT)
async def decline_consultation(
    consultation_id: str,
    current_user: User = Depends(require_medical_student),
) -> None:
    try:
        consultation = consultation_service.decline_consultation(
            consultation_id, medical_student_id=current_user.id
        )
    except ConsultationStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if consultation is None:
        raise _not_found()

    audit_service.log_event(
        action="decline_consultation",
        resource_type="consultation",
        resource_id=consultation_id,
    )


@router.post("/{consultation_id}/status", response_model=Consultation)
async def update_consultation_status(
    consultation_id: str,
    payload: StatusUpdateRequest,
    current_user: User = Depends(require_medical_student),
) -> Consultation:
    existing = consultation_service.get_consultation(consultation_id)
    if existing is None:
        raise _not_found()
    if existing.medical_student_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Consultation is not assigned to this medical student",
        )

    try:
        consultation = consultation_service.update_consultation_status(
            consultation_id,
            payload.status,
            medical_student_id=current_user.id,
            scheduled_for=payload.scheduled_for,
            notes=payload.notes,
        )
    except ConsultationStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if consultation is None:
        raise _not_found()

    audit_service.log_event(
        action="update_consultation_status",
        resource_type="consultation",
        resource_id=consultation_id,
        extra={"status": consultation.status.value},
    )

    return consultation
