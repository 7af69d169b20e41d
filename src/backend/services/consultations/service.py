from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from src.backend.config import settings
from src.backend.domain.models.consultation import (
    ASSIGNED_STATUSES,
    COMPLETED_STATUSES,
    STATUS_ORDER,
    CommunicationChannel,
    Consultation,
    ConsultationBoard,
    ConsultationStatus,
    ConsultationType,
)
from src.backend.domain.models.user import UserRole
from src.backend.infra.db import inmemory as repos

logger = logging.getLogger(__name__)

# Fields a patient may change on their own consultation.
PATIENT_EDITABLE_FIELDS = {
    "primary_concern",
    "description",
    "communication_channel",
    "scheduled_for",
    "documents",
}

# Statuses a medical student may set through a status update.
STUDENT_SETTABLE_STATUSES = {
    ConsultationStatus.SCHEDULED,
    ConsultationStatus.IN_PROGRESS,
    ConsultationStatus.RESOLVED,
    ConsultationStatus.CLOSED,
}


class ConsultationStateError(ValueError):
    """Raised when an operation does not fit the consultation's current state."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryConsultationService:
    """Consultation workflows for patients and medical students.

    Storage goes through the module-level consultation repository so the
    SQL bootstrap can swap it out. Declines are per student and kept in
    memory only.
    """

    def __init__(self, *, seed: bool = False) -> None:
        self._declined: Dict[str, set[str]] = {}
        if seed:
            self._seed_defaults()

    @property
    def _repo(self):
        return repos.consultation_repository

    def _seed_defaults(self) -> None:
        samples: List[Dict[str, Any]] = [
            dict(id="c1", type="labResult", primary_concern="Need help understanding blood test results",
                 description="I received my blood test results and don't understand what these high cholesterol numbers mean.",
                 status="REQUESTED", communication_channel="video", created_at="2025-03-15T10:30:00Z",
                 patient_id="p1", documents=["d1", "d2"]),
            dict(id="c2", type="medication", primary_concern="Information about new medication",
                 description="My doctor prescribed a new medication for high blood pressure, but I'm not sure about the side effects.",
                 status="REQUESTED", communication_channel="text", created_at="2025-03-18T14:45:00Z",
                 patient_id="p2", documents=["d3"]),
            dict(id="c3", type="imaging", primary_concern="MRI results explanation",
                 description="I had an MRI for knee pain and would like help understanding the results.",
                 status="REQUESTED", communication_channel="video", created_at="2025-03-20T09:15:00Z",
                 patient_id="p3", documents=["d4"]),
            dict(id="c4", type="symptoms", primary_concern="Strange symptoms after taking medication",
                 description="I started a new antibiotic and now I have these symptoms. Is this normal?",
                 status="REQUESTED", communication_channel="audio", created_at="2025-03-21T16:20:00Z",
                 patient_id="p4"),
            dict(id="c5", type="general", primary_concern="Question about vaccination schedule",
                 description="I need to understand the vaccination schedule for my child who has missed some appointments.",
                 status="ASSIGNED", communication_channel="async", created_at="2025-03-10T11:30:00Z",
                 updated_at="2025-03-11T09:22:00Z", patient_id="p5", medical_student_id="ms1"),
            dict(id="c6", type="labResult", primary_concern="Liver function test results",
                 description="My liver function tests came back with some abnormal numbers and I'd like to understand what they mean.",
                 status="SCHEDULED", communication_channel="video", scheduled_for="2025-03-30T13:00:00Z",
                 created_at="2025-03-17T08:45:00Z", updated_at="2025-03-17T10:15:00Z", patient_id="p6",
                 medical_student_id="ms1", documents=["d5", "d6"]),
            dict(id="c7", type="medication", primary_concern="Drug interaction concerns",
                 description="I'm taking multiple medications and want to know if there are any potential interactions.",
                 status="IN_PROGRESS", communication_channel="text", created_at="2025-03-19T15:30:00Z",
                 updated_at="2025-03-20T10:20:00Z", patient_id="p7", medical_student_id="ms1", documents=["d7"]),
            dict(id="c8", type="symptoms", primary_concern="Persistent cough after cold",
                 description="I had a cold that has cleared up, but I still have a cough that won't go away after 3 weeks.",
                 status="RESOLVED", communication_channel="audio", created_at="2025-03-05T09:30:00Z",
                 completed_at="2025-03-08T11:15:00Z", rating=5,
                 feedback="Very helpful explanation about post-viral cough.", patient_id="p8", medical_student_id="ms1",
                 medical_student_notes="Patient reported 3-week cough after viral infection. Explained that post-viral cough can persist for 3-8 weeks."),
            dict(id="c9", type="imaging", primary_concern="Understanding X-ray results",
                 description="I had a chest X-ray and would like help understanding the results.",
                 status="RESOLVED", communication_channel="video", created_at="2025-03-01T14:45:00Z",
                 completed_at="2025-03-02T16:30:00Z", rating=4,
                 feedback="Good explanation, helped me understand what to ask my doctor.", patient_id="p9",
                 medical_student_id="ms1", documents=["d8"],
                 medical_student_notes="Reviewed chest X-ray showing minor infiltrates in lower right lobe, consistent with bronchitis."),
            dict(id="c10", type="general", primary_concern="Nutrition advice for diabetes",
                 description="I was recently diagnosed with Type 2 diabetes and need help understanding dietary changes.",
                 status="CLOSED", communication_channel="async", created_at="2025-02-20T10:15:00Z",
                 completed_at="2025-02-25T09:45:00Z", rating=5,
                 feedback="Excellent nutritional advice with practical meal suggestions.", patient_id="p10",
                 medical_student_id="ms1",
                 medical_student_notes="Provided information on low-glycemic diet, recommended consulting with dietitian."),
        ]
        for sample in samples:
            self._repo.save(Consultation.model_validate(sample))

    # Shared

    def get_consultation(self, consultation_id: str) -> Optional[Consultation]:
        return self._repo.get(consultation_id)

    def list_consultations(
        self,
        *,
        user_id: str,
        role: UserRole,
        status: Optional[ConsultationStatus] = None,
    ) -> List[Consultation]:
        """List consultations owned by a patient or assigned to a student."""

        statuses = {status} if status is not None else None
        if role == UserRole.PATIENT:
            found = self._repo.list_by_filters(patient_id=user_id, statuses=statuses)
        else:
            found = self._repo.list_by_filters(medical_student_id=user_id, statuses=statuses)
        return sorted(found, key=lambda c: c.created_at)

    # Patient operations

    def create_consultation(
        self,
        *,
        patient_id: str,
        type: ConsultationType,
        primary_concern: str,
        description: str,
        communication_channel: CommunicationChannel,
        scheduled_for: Optional[datetime] = None,
        documents: Optional[List[str]] = None,
    ) -> Consultation:
        consultation = Consultation(
            id=f"c{uuid4().hex[:12]}",
            type=type,
            primary_concern=primary_concern,
            description=description,
            status=ConsultationStatus.REQUESTED,
            communication_channel=communication_channel,
            scheduled_for=scheduled_for,
            created_at=_utcnow(),
            patient_id=patient_id,
            documents=list(documents or []),
        )
        self._repo.save(consultation)
        return consultation

    def update_consultation(self, consultation_id: str, updates: Dict[str, Any]) -> Optional[Consultation]:
        """Merge patient-editable fields into a consultation.

        Unknown keys raise ValueError; an unknown id returns None.
        """

        unknown = set(updates) - PATIENT_EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")

        consultation = self._repo.get(consultation_id)
        if consultation is None:
            return None
        if consultation.status in COMPLETED_STATUSES:
            raise ConsultationStateError("Completed consultations cannot be edited")

        # Validate the merged record so enum and datetime coercion applies to the updates.
        merged = Consultation.model_validate({**consultation.model_dump(), **updates, "updated_at": _utcnow()})
        self._repo.save(merged)
        return merged

    def submit_feedback(self, consultation_id: str, *, rating: int, feedback: Optional[str] = None) -> Optional[Consultation]:
        consultation = self._repo.get(consultation_id)
        if consultation is None:
            return None
        if consultation.status not in COMPLETED_STATUSES:
            raise ConsultationStateError("Feedback can only be given for completed consultations")

        consultation.rating = rating
        consultation.feedback = feedback
        consultation.updated_at = _utcnow()
        self._repo.save(consultation)
        return consultation

    # Medical student operations

    def get_board(self, medical_student_id: str) -> ConsultationBoard:
        declined = self._declined.get(medical_student_id, set())
        available = [
            c
            for c in self._repo.list_by_filters(statuses={ConsultationStatus.REQUESTED}, unassigned_only=True)
            if c.id not in declined
        ]
        assigned = self._repo.list_by_filters(medical_student_id=medical_student_id, statuses=ASSIGNED_STATUSES)
        completed = self._repo.list_by_filters(medical_student_id=medical_student_id, statuses=COMPLETED_STATUSES)
        return ConsultationBoard(
            available=sorted(available, key=lambda c: c.created_at),
            assigned=sorted(assigned, key=lambda c: c.created_at),
            completed=sorted(completed, key=lambda c: c.created_at),
        )

    def accept_consultation(self, consultation_id: str, *, medical_student_id: str) -> Optional[Consultation]:
        """Assign an open consultation to a student.

        Accepting a consultation the same student already holds returns it
        unchanged.
        """

        consultation = self._repo.get(consultation_id)
        if consultation is None:
            return None

        if consultation.medical_student_id == medical_student_id:
            return consultation
        if consultation.medical_student_id is not None:
            raise ConsultationStateError("Consultation is already assigned to another medical student")
        if consultation.status != ConsultationStatus.REQUESTED:
            raise ConsultationStateError(f"Consultation cannot be accepted in status {consultation.status.value}")

        consultation.status = ConsultationStatus.ASSIGNED
        consultation.medical_student_id = medical_student_id
        consultation.updated_at = _utcnow()
        self._repo.save(consultation)
        self._declined.get(medical_student_id, set()).discard(consultation_id)
        logger.info("Consultation %s accepted by %s", consultation_id, medical_student_id)
        return consultation

    def decline_consultation(self, consultation_id: str, *, medical_student_id: str) -> Optional[Consultation]:
        consultation = self._repo.get(consultation_id)
        if consultation is None:
            return None
        if consultation.status != ConsultationStatus.REQUESTED or consultation.medical_student_id is not None:
            raise ConsultationStateError("Only open consultation requests can be declined")

        self._declined.setdefault(medical_student_id, set()).add(consultation_id)
        return consultation

    def update_consultation_status(
        self,
        consultation_id: str,
        status: ConsultationStatus,
        *,
        medical_student_id: str,
        scheduled_for: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Optional[Consultation]:
        """Advance an assigned consultation along its lifecycle.

        RESOLVED and CLOSED stamp ``completed_at``. Moving backwards is
        rejected; repeating the current status only updates schedule/notes.
        """

        if status not in STUDENT_SETTABLE_STATUSES:
            raise ValueError(f"Status {status.value} cannot be set directly")

        consultation = self._repo.get(consultation_id)
        if consultation is None:
            return None
        if consultation.medical_student_id != medical_student_id:
            raise ConsultationStateError("Consultation is not assigned to this medical student")
        if STATUS_ORDER.index(status) < STATUS_ORDER.index(consultation.status):
            raise ConsultationStateError(
                f"Cannot move consultation from {consultation.status.value} back to {status.value}"
            )

        now = _utcnow()
        if status != consultation.status and status in COMPLETED_STATUSES:
            consultation.completed_at = consultation.completed_at or now
        consultation.status = status
        consultation.updated_at = now
        if scheduled_for is not None:
            consultation.scheduled_for = scheduled_for
        if notes is not None:
            consultation.medical_student_notes = notes
        self._repo.save(consultation)
        return consultation


consultation_service = InMemoryConsultationService(seed=settings.seed_demo_data)
