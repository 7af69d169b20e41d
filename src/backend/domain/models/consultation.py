from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ConsultationType(str, Enum):
    LAB_RESULT = "labResult"
    MEDICATION = "medication"
    IMAGING = "imaging"
    SYMPTOMS = "symptoms"
    GENERAL = "general"


class ConsultationStatus(str, Enum):
    REQUESTED = "REQUESTED"
    ASSIGNED = "ASSIGNED"
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class CommunicationChannel(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"
    TEXT = "text"
    ASYNC = "async"


# Lifecycle order; status updates may only move forward along this list.
STATUS_ORDER: List[ConsultationStatus] = list(ConsultationStatus)

ACTIVE_STATUSES = {
    ConsultationStatus.REQUESTED,
    ConsultationStatus.ASSIGNED,
    ConsultationStatus.SCHEDULED,
    ConsultationStatus.IN_PROGRESS,
}
ASSIGNED_STATUSES = {
    ConsultationStatus.ASSIGNED,
    ConsultationStatus.SCHEDULED,
    ConsultationStatus.IN_PROGRESS,
}
COMPLETED_STATUSES = {ConsultationStatus.RESOLVED, ConsultationStatus.CLOSED}


class Consultation(BaseModel):
    """A patient-initiated request for guidance from a medical student.

    The record moves through ``ConsultationStatus`` from REQUESTED (open to any
    student) to RESOLVED/CLOSED. ``documents`` holds ids of the patient's
    documents shared with the consultation.
    """

    id: str
    type: ConsultationType
    primary_concern: str
    description: str
    status: ConsultationStatus = ConsultationStatus.REQUESTED
    communication_channel: CommunicationChannel
    scheduled_for: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    rating: Optional[int] = None
    feedback: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    patient_id: str
    medical_student_id: Optional[str] = None
    documents: List[str] = Field(default_factory=list)
    medical_student_notes: Optional[str] = None


class ConsultationBoard(BaseModel):
    """A medical student's view of the consultation queue."""

    available: List[Consultation] = Field(default_factory=list)
    assigned: List[Consultation] = Field(default_factory=list)
    completed: List[Consultation] = Field(default_factory=list)
