from __future__ import annotations

from contextvars import ContextVar
from typing import Optional

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader

from src.backend.domain.models.consultation import Consultation, ConsultationStatus
from src.backend.domain.models.user import User, UserRole
from src.backend.services.users.service import user_service

# Session token issued by /auth/login and /auth/register.
SESSION_HEADER_NAME = "X-Session-Token"

_session_header = APIKeyHeader(name=SESSION_HEADER_NAME, auto_error=False)

# Context variable storing the id of the user behind the in-flight request so
# that downstream consumers such as the audit logger can attribute events
# without threading the user through every call.
_current_subject: ContextVar[Optional[str]] = ContextVar("current_subject", default=None)


def get_current_subject() -> Optional[str]:
    """Return the current subject identifier (a user id), if any."""

    return _current_subject.get()


async def get_session_token(token: Optional[str] = Security(_session_header)) -> str:
    """FastAPI dependency returning the caller's session token.

    A missing header yields HTTP 401.
    """

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing session token.",
        )
    return token


async def get_current_user(token: str = Depends(get_session_token)) -> User:
    """Resolve the User stored for the caller's session."""

    user = user_service.get_session_user(token)
    if user is None:
        _current_subject.set(None)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session.",
        )

    _current_subject.set(user.id)
    return user


async def require_patient(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.PATIENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only patients can access this resource",
        )
    return current_user


async def require_medical_student(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.MEDICAL_STUDENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only medical students can access this resource",
        )
    return current_user


def is_participant(user: User, consultation: Consultation) -> bool:
    if user.role == UserRole.PATIENT:
        return consultation.patient_id == user.id
    return consultation.medical_student_id == user.id


def ensure_can_view_consultation(user: User, consultation: Consultation) -> None:
    """Raise HTTP 403 if the user may not see a consultation.

    Patients see their own consultations. Medical students see the ones
    assigned to them and any open request they could accept.
    """

    if is_participant(user, consultation):
        return
    if (
        user.role == UserRole.MEDICAL_STUDENT
        and consultation.status == ConsultationStatus.REQUESTED
        and consultation.medical_student_id is None
    ):
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Not authorized to view this consultation",
    )


def ensure_is_participant(user: User, consultation: Consultation) -> None:
    """Raise HTTP 403 unless the user is the owning patient or assigned student."""

    if not is_participant(user, consultation):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not a participant of this consultation",
        )


def ensure_owns_consultation(user: User, consultation: Consultation) -> None:
    if user.role != UserRole.PATIENT or consultation.patient_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to edit this consultation",
        )
