from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from src.backend.domain.models.user import UserRole


class ConsultationMessage(BaseModel):
    """A chat message exchanged on a text or async consultation."""

    id: UUID
    consultation_id: str
    sender_id: str
    sender_role: UserRole
    content: str
    sent_at: datetime
