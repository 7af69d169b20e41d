from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Collection, Iterable, Optional

from src.backend.domain.models.consultation import Consultation, ConsultationStatus


class ConsultationRepository(ABC):
    @abstractmethod
    def get(self, consultation_id: str) -> Optional[Consultation]:
        raise NotImplementedError

    @abstractmethod
    def list_by_filters(
        self,
        *,
        patient_id: Optional[str] = None,
        medical_student_id: Optional[str] = None,
        statuses: Optional[Collection[ConsultationStatus]] = None,
        unassigned_only: bool = False,
    ) -> Iterable[Consultation]:
        raise NotImplementedError

    @abstractmethod
    def save(self, consultation: Consultation) -> None:
        raise NotImplementedError
