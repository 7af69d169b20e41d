from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from src.backend.domain.models.consultation import (
    CommunicationChannel,
    Consultation,
    ConsultationStatus,
    ConsultationType,
)


class Base(DeclarativeBase):
    pass


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite returns naive datetimes even for timezone-aware columns.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ConsultationORM(Base):
    __tablename__ = "consultations"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    type: Mapped[str] = mapped_column(String, nullable=False)
    primary_concern: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, index=True)
    communication_channel: Mapped[str] = mapped_column(String, nullable=False)
    scheduled_for: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    patient_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    medical_student_id: Mapped[Optional[str]] = mapped_column(String, nullable=True, index=True)
    # Document ids are stored as a comma-separated list.
    documents: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    medical_student_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @classmethod
    def from_domain(cls, consultation: Consultation) -> "ConsultationORM":
        orm = cls(id=consultation.id)
        orm.update_from_domain(consultation)
        return orm

    def update_from_domain(self, consultation: Consultation) -> None:
        self.type = consultation.type.value
        self.primary_concern = consultation.primary_concern
        self.description = consultation.description
        self.status = consultation.status.value
        self.communication_channel = consultation.communication_channel.value
        self.scheduled_for = consultation.scheduled_for
        self.completed_at = consultation.completed_at
        self.rating = consultation.rating
        self.feedback = consultation.feedback
        self.created_at = consultation.created_at
        self.updated_at = consultation.updated_at
        self.patient_id = consultation.patient_id
        self.medical_student_id = consultation.medical_student_id
        self.documents = ",".join(consultation.documents) if consultation.documents else None
        self.medical_student_notes = consultation.medical_student_notes

    def to_domain(self) -> Consultation:
        return Consultation(
            id=self.id,
            type=ConsultationType(self.type),
            primary_concern=self.primary_concern,
            description=self.description,
            status=ConsultationStatus(self.status),
            communication_channel=CommunicationChannel(self.communication_channel),
            scheduled_for=_as_utc(self.scheduled_for),
            completed_at=_as_utc(self.completed_at),
            rating=self.rating,
            feedback=self.feedback,
            created_at=_as_utc(self.created_at),
            updated_at=_as_utc(self.updated_at),
            patient_id=self.patient_id,
            medical_student_id=self.medical_student_id,
            documents=[d for d in (self.documents or "").split(",") if d],
            medical_student_notes=self.medical_student_notes,
        )
