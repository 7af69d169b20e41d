from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from src.backend.domain.models.communication import CallState
from src.backend.domain.models.consultation import CommunicationChannel, Consultation
from src.backend.domain.models.user import User
from src.backend.infra.latency import latency_dependency
from src.backend.security import ensure_is_participant, get_current_user
from src.backend.services.audit.service import audit_service
from src.backend.services.communication.service import CallStateError, call_service
from src.backend.services.consultations.service import consultation_service


router = APIRouter(
    prefix="/consultations/{consultation_id}/call",
    tags=["communication"],
    dependencies=[Depends(latency_dependency)],
)


class ChannelRequest(BaseModel):
    channel: CommunicationChannel


def _participant_consultation(consultation_id: str, user: User) -> Consultation:
    consultation = consultation_service.get_consultation(consultation_id)
    if consultation is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Consultation not found")
    ensure_is_participant(user, consultation)
    return consultation


def _context(consultation: Consultation) -> dict:
    return {
        "preferred_channel": consultation.communication_channel,
        "consultation_status": consultation.status,
    }


@router.get("", response_model=CallState)
async def get_call_state(
    consultation_id: str,
    current_user: User = Depends(get_current_user),
) -> CallState:
    consultation = _participant_consultation(consultation_id, current_user)
    return call_service.get_state(consultation_id, **_context(consultation))


@router.post("/start", response_model=CallState)
async def start_call(
    consultation_id: str,
    current_user: User = Depends(get_current_user),
) -> CallState:
    consultation = _participant_consultation(consultation_id, current_user)
    try:
        state = call_service.start_call(consultation_id, **_context(consultation))
    except CallStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    audit_service.log_event(
        action="start_call",
        resource_type="consultation",
        resource_id=consultation_id,
        extra={"channel": state.active_channel.value},
    )

    return state


@router.post("/end", response_model=CallState)
async def end_call(
    consultation_id: str,
    current_user: User = Depends(get_current_user),
) -> CallState:
    consultation = _participant_consultation(consultation_id, current_user)
    try:
        state = call_service.end_call(consultation_id, **_context(consultation))
    except CallStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    audit_service.log_event(
        action="end_call",
        resource_type="consultation",
        resource_id=consultation_id,
        extra={"call_duration": state.call_duration},
    )

    return state


@router.put("/channel", response_model=CallState)
async def set_active_channel(
    consultation_id: str,
    payload: ChannelRequest,
    current_user: User = Depends(get_current_user),
) -> CallState:
    consultation = _participant_consultation(consultation_id, current_user)
    return call_service.set_active_channel(consultation_id, payload.channel, **_context(consultation))


@router.post("/toggle/{control}", response_model=CallState)
async def toggle_control(
    consultation_id: str,
    control: str,
    current_user: User = Depends(get_current_user),
) -> CallState:
    """Flip mute, camera, speaker or screen_sharing on a connected call."""

    consultation = _participant_consultation(consultation_id, current_user)
    try:
        return call_service.toggle(consultation_id, control, **_context(consultation))
    except CallStateError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
