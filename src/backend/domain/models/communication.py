from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from src.backend.domain.models.consultation import CommunicationChannel


class CallStatus(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class CallState(BaseModel):
    """Snapshot of the simulated call for a consultation."""

    consultation_id: str
    active_channel: CommunicationChannel
    status: CallStatus = CallStatus.IDLE
    # Whole seconds since the call connected.
    call_duration: int = 0
    # 0-100 quality indicator.
    call_quality: int = 100
    is_muted: bool = False
    is_camera_off: bool = False
    is_screen_sharing: bool = False
    is_speaker_on: bool = False
    error_message: Optional[str] = None
