from datetime import datetime, timezone

from src.backend.domain.models.consultation import (
    CommunicationChannel,
    Consultation,
    ConsultationStatus,
    ConsultationType,
)
from src.backend.config import settings
from src.backend.infra.db import inmemory as repos
from src.backend.infra.db.bootstrap import init_sql_repositories
from src.backend.infra.db.inmemory import InMemoryConsultationRepository
from src.backend.infra.db.models import Base
from src.backend.infra.db.session import create_sqlalchemy_engine, create_sqlalchemy_session_factory
from src.backend.infra.db.sql_consultations import SqlConsultationRepository
from src.backend.services.consultations.service import InMemoryConsultationService


def _repository(tmp_path):
    engine = create_sqlalchemy_engine(f"sqlite:///{tmp_path / 'murph.db'}")
    Base.metadata.create_all(engine)
    return SqlConsultationRepository(create_sqlalchemy_session_factory(engine))


def _consultation(cid, *, patient_id="p1", created_day=1, **overrides):
    data = dict(
        id=cid,
        type=ConsultationType.LAB_RESULT,
        primary_concern="Blood test",
        description="Explain my results",
        communication_channel=CommunicationChannel.VIDEO,
        created_at=datetime(2025, 3, created_day, 10, 0, tzinfo=timezone.utc),
        patient_id=patient_id,
    )
    data.update(overrides)
    return Consultation(**data)


def test_save_and_get_round_trip(tmp_path):
    repo = _repository(tmp_path)
    repo.save(_consultation("c1", documents=["d1", "d2"]))

    loaded = repo.get("c1")
    assert loaded is not None
    assert loaded.documents == ["d1", "d2"]
    assert loaded.status == ConsultationStatus.REQUESTED
    assert loaded.created_at == datetime(2025, 3, 1, 10, 0, tzinfo=timezone.utc)
    assert repo.get("missing") is None


def test_save_updates_existing_row(tmp_path):
    repo = _repository(tmp_path)
    consultation = _consultation("c1")
    repo.save(consultation)

    consultation.status = ConsultationStatus.ASSIGNED
    consultation.medical_student_id = "ms1"
    repo.save(consultation)

    loaded = repo.get("c1")
    assert loaded.status == ConsultationStatus.ASSIGNED
    assert loaded.medical_student_id == "ms1"


def test_list_by_filters(tmp_path):
    repo = _repository(tmp_path)
    repo.save(_consultation("c2", created_day=2))
    repo.save(_consultation("c1", created_day=1))
    repo.save(_consultation("c3", patient_id="p2", status=ConsultationStatus.ASSIGNED, medical_student_id="ms1"))

    assert [c.id for c in repo.list_by_filters(patient_id="p1")] == ["c1", "c2"]
    assert [c.id for c in repo.list_by_filters(unassigned_only=True)] == ["c1", "c2"]
    assert [c.id for c in repo.list_by_filters(statuses={ConsultationStatus.ASSIGNED})] == ["c3"]
    assert [c.id for c in repo.list_by_filters(medical_student_id="ms1")] == ["c3"]


def test_service_accept_flow_on_sql(tmp_path, monkeypatch):
    monkeypatch.setattr(repos, "consultation_repository", _repository(tmp_path))
    service = InMemoryConsultationService()

    created = service.create_consultation(
        patient_id="p1",
        type=ConsultationType.MEDICATION,
        primary_concern="Dosage",
        description="How much should I take?",
        communication_channel=CommunicationChannel.TEXT,
    )
    service.accept_consultation(created.id, medical_student_id="ms9")

    board = service.get_board("ms9")
    assert [c.id for c in board.assigned] == [created.id]


def test_init_sql_repositories_is_noop_without_flag():
    assert init_sql_repositories() is False


def test_init_sql_repositories_forced(tmp_path, monkeypatch):
    monkeypatch.setattr(repos, "consultation_repository", repos.consultation_repository)
    assert init_sql_repositories(f"sqlite:///{tmp_path / 'forced.db'}", force=True) is True
    assert isinstance(repos.consultation_repository, SqlConsultationRepository)


def test_init_sql_repositories_carries_demo_data_into_empty_database(tmp_path, monkeypatch):
    memory = InMemoryConsultationRepository()
    memory.save(_consultation("c1", documents=["d1"]))
    monkeypatch.setattr(repos, "consultation_repository", memory)
    monkeypatch.setattr(settings, "seed_demo_data", True)
    url = f"sqlite:///{tmp_path / 'seeded.db'}"

    init_sql_repositories(url, force=True)
    seeded = repos.consultation_repository.get("c1")
    assert seeded is not None
    assert seeded.documents == ["d1"]

    # A database that already holds rows is left as it is.
    other = InMemoryConsultationRepository()
    other.save(_consultation("c2"))
    monkeypatch.setattr(repos, "consultation_repository", other)
    init_sql_repositories(url, force=True)
    assert [c.id for c in repos.consultation_repository.list_by_filters()] == ["c1"]


def test_init_sql_repositories_without_demo_data_starts_empty(tmp_path, monkeypatch):
    memory = InMemoryConsultationRepository()
    memory.save(_consultation("c1"))
    monkeypatch.setattr(repos, "consultation_repository", memory)
    monkeypatch.setattr(settings, "seed_demo_data", False)

    init_sql_repositories(f"sqlite:///{tmp_path / 'empty.db'}", force=True)
    assert list(repos.consultation_repository.list_by_filters()) == []
