from __future__ import annotations

import logging
from typing import Optional

from src.backend.config import settings
from src.backend.infra.db import inmemory as inmemory_repos
from src.backend.infra.db.models import Base
from src.backend.infra.db.session import create_sqlalchemy_engine, create_sqlalchemy_session_factory
from src.backend.infra.db.sql_consultations import SqlConsultationRepository

logger = logging.getLogger(__name__)


def init_sql_repositories(database_url: Optional[str] = None, *, force: bool = False) -> bool:
    """Optionally switch the in-memory consultation repository to SQL.

    If USE_SQL_REPOS is not enabled (and ``force`` is not set) or no database
    URL is configured, this is a no-op and the in-memory repository remains
    active. Returns True when the SQL repository was installed.
    """

    if not (settings.use_sql_repos or force):
        return False

    db_url = database_url or settings.database_url
    if not db_url:
        logger.warning("USE_SQL_REPOS is enabled but DATABASE_URL is not set; keeping in-memory repositories")
        return False

    engine = create_sqlalchemy_engine(db_url)

    # Create tables if they do not exist. A real deployment would run
    # migrations instead.
    Base.metadata.create_all(engine)

    session_factory = create_sqlalchemy_session_factory(engine)

    sql_repository = SqlConsultationRepository(session_factory)

    # Demo consultations are seeded in memory at import; carry them over into
    # an empty database so the SQL store starts with the same data.
    if settings.seed_demo_data and not list(sql_repository.list_by_filters()):
        seeded = list(inmemory_repos.consultation_repository.list_by_filters())
        for consultation in seeded:
            sql_repository.save(consultation)
        logger.info("Seeded %d demo consultations into the SQL repository", len(seeded))

    # Services look the repository up through this module at call time, so
    # swapping the attribute is enough to rewire them.
    inmemory_repos.consultation_repository = sql_repository
    logger.info("Using SQL consultation repository")
    return True
