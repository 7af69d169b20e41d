from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List
from uuid import uuid4

from src.backend.domain.models.consultation import Consultation, ConsultationStatus
from src.backend.domain.models.message import ConsultationMessage
from src.backend.domain.models.user import User


class MessagingError(ValueError):
    """Raised when a message cannot be posted to a consultation."""


class InMemoryMessageService:
    """Message threads for text and async consultations, keyed by consultation id."""

    def __init__(self) -> None:
        self._threads: Dict[str, List[ConsultationMessage]] = {}

    def send_message(self, consultation: Consultation, *, sender: User, content: str) -> ConsultationMessage:
        if not content.strip():
            raise ValueError("Message content is required")
        if consultation.status == ConsultationStatus.CLOSED:
            raise MessagingError("Consultation is closed")

        message = ConsultationMessage(
            id=uuid4(),
            consultation_id=consultation.id,
            sender_id=sender.id,
            sender_role=sender.role,
            content=content,
            sent_at=datetime.now(timezone.utc),
        )
        self._threads.setdefault(consultation.id, []).append(message)
        return message

    def list_messages(self, consultation_id: str) -> List[ConsultationMessage]:
        return sorted(self._threads.get(consultation_id, []), key=lambda m: m.sent_at)


message_service = InMemoryMessageService()
