from __future__ import annotations

from typing import Optional

from src.backend.domain.models.analytics import MedicalStudentStatistics, PatientStatistics
from src.backend.domain.models.consultation import ACTIVE_STATUSES, COMPLETED_STATUSES
from src.backend.domain.models.user import UserRole
from src.backend.services.consultations.service import consultation_service
from src.backend.services.documents.service import document_service
from src.backend.services.health.service import health_service


class AnalyticsService:
    def compute_patient_statistics(self, patient_id: str) -> PatientStatistics:
        consultations = consultation_service.list_consultations(user_id=patient_id, role=UserRole.PATIENT)
        summary = health_service.get_health_summary(patient_id)

        return PatientStatistics(
            active_consultations=sum(1 for c in consultations if c.status in ACTIVE_STATUSES),
            completed_consultations=sum(1 for c in consultations if c.status in COMPLETED_STATUSES),
            documents_uploaded=len(document_service.list_documents(patient_id)),
            last_checkup_days=summary.last_checkup_days,
            active_medications=summary.medication_count,
        )

    def compute_medical_student_statistics(self, medical_student_id: str) -> MedicalStudentStatistics:
        board = consultation_service.get_board(medical_student_id)

        ratings = [c.rating for c in board.completed if c.rating is not None]
        average_rating: Optional[float] = None
        if ratings:
            average_rating = round(sum(ratings) / len(ratings), 2)

        return MedicalStudentStatistics(
            medical_student_id=medical_student_id,
            available_consultations=len(board.available),
            active_consultations=len(board.assigned),
            completed_consultations=len(board.completed),
            average_rating=average_rating,
        )


analytics_service = AnalyticsService()
