from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class PatientStatistics(BaseModel):
    active_consultations: int
    completed_consultations: int
    documents_uploaded: int
    last_checkup_days: Optional[int] = None
    active_medications: int


class MedicalStudentStatistics(BaseModel):
    medical_student_id: str
    available_consultations: int
    active_consultations: int
    completed_consultations: int
    average_rating: Optional[float] = None
