from __future__ import annotations

from typing import Collection, Dict, Iterable, Optional

from src.backend.domain.models.consultation import Consultation, ConsultationStatus
from src.backend.infra.db.repositories import ConsultationRepository


class InMemoryConsultationRepository(ConsultationRepository):
    def __init__(self) -> None:
        self._consultations: Dict[str, Consultation] = {}

    def get(self, consultation_id: str) -> Optional[Consultation]:
        consultation = self._consultations.get(consultation_id)
        if consultation is None:
            return None
        # Hand out copies so callers only change stored state through save().
        return consultation.model_copy(deep=True)

    def list_by_filters(
        self,
        *,
        patient_id: Optional[str] = None,
        medical_student_id: Optional[str] = None,
        statuses: Optional[Collection[ConsultationStatus]] = None,
        unassigned_only: bool = False,
    ) -> Iterable[Consultation]:
        for consultation in list(self._consultations.values()):
            if patient_id is not None and consultation.patient_id != patient_id:
                continue
            if medical_student_id is not None and consultation.medical_student_id != medical_student_id:
                continue
            if statuses is not None and consultation.status not in statuses:
                continue
            if unassigned_only and consultation.medical_student_id is not None:
                continue
            yield consultation.model_copy(deep=True)

    def save(self, consultation: Consultation) -> None:
        self._consultations[consultation.id] = consultation.model_copy(deep=True)


consultation_repository: ConsultationRepository = InMemoryConsultationRepository()
