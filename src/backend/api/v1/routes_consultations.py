from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from src.backend.domain.models.consultation import (
    CommunicationChannel,
    Consultation,
    ConsultationStatus,
    ConsultationType,
)
from src.backend.domain.models.user import User
from src.backend.infra.latency import latency_dependency
from src.backend.security import (
    ensure_can_view_consultation,
    ensure_owns_consultation,
    get_current_user,
    require_patient,
)
from src.backend.services.audit.service import audit_service
from src.backend.services.consultations.service import ConsultationStateError, consultation_service
from src.backend.services.documents.service import document_service


router = APIRouter(
    prefix="/consultations",
    tags=["consultations"],
    dependencies=[Depends(latency_dependency)],
)


class ConsultationCreateRequest(BaseModel):
    type: ConsultationType
    primary_concern: str = Field(min_length=1)
    description: str = Field(min_length=1)
    communication_channel: CommunicationChannel
    scheduled_for: Optional[datetime] = None
    documents: List[str] = Field(default_factory=list)


class ConsultationUpdateRequest(BaseModel):
    primary_concern: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    communication_channel: Optional[CommunicationChannel] = None
    scheduled_for: Optional[datetime] = None
    documents: Optional[List[str]] = None


class FeedbackRequest(BaseModel):
    rating: int = Field(ge=1, le=5)
    feedback: Optional[str] = None


def _get_or_404(consultation_id: str) -> Consultation:
    consultation = consultation_service.get_consultation(consultation_id)
    if consultation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Consultation not found")
    return consultation


def _ensure_documents_owned(user: User, document_ids: List[str]) -> None:
    if not document_service.owns_all(user.id, document_ids):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Attached documents must belong to the patient",
        )


@router.get("/", response_model=List[Consultation])
async def list_consultations(
    status_filter: Optional[ConsultationStatus] = Query(default=None, alias="status"),
    current_user: User = Depends(get_current_user),
) -> List[Consultation]:
    return consultation_service.list_consultations(
        user_id=current_user.id,
        role=current_user.role,
        status=status_filter,
    )


@router.post("/", response_model=Consultation, status_code=status.HTTP_201_CREATED)
async def create_consultation(
    payload: ConsultationCreateRequest,
    current_user: User = Depends(require_patient),
) -> Consultation:
    _ensure_documents_owned(current_user, payload.documents)

    consultation = consultation_service.create_consultation(
        patient_id=current_user.id,
        type=payload.type,
        primary_concern=payload.primary_concern,
        description=payload.description,
        communication_channel=payload.communication_channel,
        scheduled_for=payload.scheduled_for,
        documents=payload.documents,
    )

    audit_service.log_event(
        action="create_consultation",
        resource_type="consultation",
        resource_id=consultation.id,
        extra={"type": consultation.type.value, "document_count": len(consultation.documents)},
    )

    return consultation


@router.get("/{consultation_id}", response_model=Consultation)
async def get_consultation(
    consultation_id: str,
    current_user: User = Depends(get_current_user),
) -> Consultation:
    consultation = _get_or_404(consultation_id)
    ensure_can_view_consultation(current_user, consultation)

    audit_service.log_event(
        action="get_consultation",
        resource_type="consultation",
        resource_id=consultation_id,
    )

    return consultation


@router.patch("/{consultation_id}", response_model=Consultation)
async def update_consultation(
    consultation_id: str,
    payload: ConsultationUpdateRequest,
    current_user: User = Depends(require_patient),
) -> Consultation:
    consultation = _get_or_404(consultation_id)
    ensure_owns_consultation(current_user, consultation)

    updates = payload.model_dump(exclude_unset=True)
    if updates.get("documents") is not None:
        _ensure_documents_owned(current_user, updates["documents"])

    try:
        updated = consultation_service.update_consultation(consultation_id, updates)
    except ConsultationStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Consultation not found")

    audit_service.log_event(
        action="update_consultation",
        resource_type="consultation",
        resource_id=consultation_id,
        extra={"fields": sorted(updates)},
    )

    return updated


@router.post("/{consultation_id}/feedback", response_model=Consultation)
async def submit_feedback(
    consultation_id: str,
    payload: FeedbackRequest,
    current_user: User = Depends(require_patient),
) -> Consultation:
    consultation = _get_or_404(consultation_id)
    ensure_owns_consultation(current_user, consultation)

    try:
        updated = consultation_service.submit_feedback(
            consultation_id, rating=payload.rating, feedback=payload.feedback
        )
    except ConsultationStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Consultation not found")

    audit_service.log_event(
        action="submit_feedback",
        resource_type="consultation",
        resource_id=consultation_id,
        extra={"rating": payload.rating},
    )

    return updated
