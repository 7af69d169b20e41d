from __future__ import annotations

from typing import Collection, Iterable, Optional

from sqlalchemy import select

from src.backend.domain.models.consultation import Consultation, ConsultationStatus
from src.backend.infra.db.models import ConsultationORM
from src.backend.infra.db.repositories import ConsultationRepository
from src.backend.infra.db.session import SessionFactory


class SqlConsultationRepository(ConsultationRepository):
    """SQLAlchemy-backed ConsultationRepository.

    Each call opens a short-lived session from the injected factory, so the
    repository is safe to share between requests.
    """

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def get(self, consultation_id: str) -> Optional[Consultation]:
        session = self._session_factory()
        try:
            orm = session.get(ConsultationORM, consultation_id)
            if orm is None:
                return None
            return orm.to_domain()
        finally:
            session.close()

    def list_by_filters(
        self,
        *,
        patient_id: Optional[str] = None,
        medical_student_id: Optional[str] = None,
        statuses: Optional[Collection[ConsultationStatus]] = None,
        unassigned_only: bool = False,
    ) -> Iterable[Consultation]:
        """Return consultations matching optional filters, oldest first."""

        session = self._session_factory()
        try:
            query = select(ConsultationORM)
            if patient_id is not None:
                query = query.where(ConsultationORM.patient_id == patient_id)
            if medical_student_id is not None:
                query = query.where(ConsultationORM.medical_student_id == medical_student_id)
            if statuses is not None:
                query = query.where(ConsultationORM.status.in_([s.value for s in statuses]))
            if unassigned_only:
                query = query.where(ConsultationORM.medical_student_id.is_(None))
            query = query.order_by(ConsultationORM.created_at)

            return [orm.to_domain() for orm in session.scalars(query).all()]
        finally:
            session.close()

    def save(self, consultation: Consultation) -> None:
        """Insert or update a Consultation in the database."""

        session = self._session_factory()
        try:
            existing = session.get(ConsultationORM, consultation.id)
            if existing is None:
                session.add(ConsultationORM.from_domain(consultation))
            else:
                existing.update_from_domain(consultation)
            session.commit()
        finally:
            session.close()
