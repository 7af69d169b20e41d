from __future__ import annotations

import logging
import secrets
from typing import Dict, Optional, Tuple
from uuid import uuid4

from pydantic import ValidationError

from src.backend.config import settings
from src.backend.domain.models.user import User, UserRole
from src.backend.infra.storage.sessions import SessionStorageBackend, session_key, session_storage_backend

logger = logging.getLogger(__name__)

# Emails containing this marker belong to medical students.
MEDICAL_STUDENT_EMAIL_MARKER = "med-uni"

DEFAULT_DISPLAY_NAME = "Test User"


def role_for_email(email: str) -> UserRole:
    return UserRole.MEDICAL_STUDENT if MEDICAL_STUDENT_EMAIL_MARKER in email else UserRole.PATIENT


def display_name_from_email(email: str) -> str:
    """Derive a display name from the local part of an email address.

    ``maria.schmidt@example.com`` becomes ``Maria Schmidt``.
    """

    local_part = email.split("@")[0]
    name = " ".join(part[:1].upper() + part[1:] for part in local_part.split("."))
    return name if name.strip() else DEFAULT_DISPLAY_NAME


class InMemoryUserService:
    """In-memory user directory plus session handling.

    Users are keyed by email. Sessions map an opaque token to the
    JSON-serialized user in the session storage backend, so a session keeps
    returning the user as it was when the session was created.
    """

    def __init__(self, *, storage: Optional[SessionStorageBackend] = None, seed: bool = False) -> None:
        self._by_email: Dict[str, User] = {}
        self._storage = storage or session_storage_backend
        if seed:
            self._seed_defaults()

    def _seed_defaults(self) -> None:
        for user_id, name, email, role in (
            ("p1", "Maria Schmidt", "maria.schmidt@example.com", UserRole.PATIENT),
            ("p2", "Thomas Weber", "thomas.weber@example.com", UserRole.PATIENT),
            ("p3", "Anna Becker", "anna.becker@example.com", UserRole.PATIENT),
            ("p4", "Klaus Hoffmann", "klaus.hoffmann@example.com", UserRole.PATIENT),
            ("ms1", "Lena Fischer", "lena.fischer@med-uni.example.com", UserRole.MEDICAL_STUDENT),
        ):
            self._store(User(id=user_id, name=name, email=email, role=role))

    def _store(self, user: User) -> None:
        self._by_email[user.email.lower()] = user

    # Users

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self._by_email.get(email.lower())

    def login(self, *, email: str, password: str) -> Tuple[str, User]:
        """Authenticate by email and open a session.

        The role is always derived from the email. A returning user keeps
        their id and name.
        """

        if not password:
            raise ValueError("Password is required")

        role = role_for_email(email)
        existing = self.get_user_by_email(email)
        if existing is None:
            user = User(id=f"user_{uuid4().hex[:12]}", name=display_name_from_email(email), email=email, role=role)
        else:
            user = existing.model_copy(update={"role": role})
        self._store(user)
        return self._open_session(user), user

    def register(self, *, name: str, email: str, password: str, role: UserRole) -> Tuple[str, User]:
        if not password:
            raise ValueError("Password is required")

        existing = self.get_user_by_email(email)
        user_id = existing.id if existing is not None else f"user_{uuid4().hex[:12]}"
        user = User(id=user_id, name=name, email=email, role=role)
        self._store(user)
        return self._open_session(user), user

    # Sessions

    def _open_session(self, user: User) -> str:
        token = secrets.token_urlsafe(32)
        self._storage.set_item(session_key(token), user.model_dump_json())
        return token

    def get_session_user(self, token: str) -> Optional[User]:
        raw = self._storage.get_item(session_key(token))
        if raw is None:
            return None
        try:
            return User.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable stored session")
            self._storage.remove_item(session_key(token))
            return None

    def logout(self, token: str) -> None:
        self._storage.remove_item(session_key(token))


user_service = InMemoryUserService(seed=settings.seed_demo_data)
