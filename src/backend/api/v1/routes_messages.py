from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from src.backend.domain.models.consultation import Consultation
from src.backend.domain.models.message import ConsultationMessage
from src.backend.domain.models.user import User
from src.backend.infra.latency import latency_dependency
from src.backend.security import ensure_is_participant, get_current_user
from src.backend.services.audit.service import audit_service
from src.backend.services.consultations.service import consultation_service
from src.backend.services.messages.service import MessagingError, message_service


router = APIRouter(
    prefix="/consultations/{consultation_id}/messages",
    tags=["messages"],
    dependencies=[Depends(latency_dependency)],
)


class MessageCreateRequest(BaseModel):
    content: str = Field(min_length=1)


def _participant_consultation(consultation_id: str, user: User) -> Consultation:
    consultation = consultation_service.get_consultation(consultation_id)
    if consultation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Consultation not found")
    ensure_is_participant(user, consultation)
    return consultation


@router.get("", response_model=List[ConsultationMessage])
async def list_messages(
    consultation_id: str,
    current_user: User = Depends(get_current_user),
) -> List[ConsultationMessage]:
    _participant_consultation(consultation_id, current_user)
    return message_service.list_messages(consultation_id)


@router.post("", response_model=ConsultationMessage, status_code=status.HTTP_201_CREATED)
async def send_message(
    consultation_id: str,
    payload: MessageCreateRequest,
    current_user: User = Depends(get_current_user),
) -> ConsultationMessage:
    consultation = _participant_consultation(consultation_id, current_user)
    try:
        message = message_service.send_message(consultation, sender=current_user, content=payload.content)
    except MessagingError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    # Message content is never written to the audit log.
    audit_service.log_event(
        action="send_message",
        resource_type="consultation",
        resource_id=consultation_id,
        extra={"message_id": str(message.id)},
    )

    return message
