from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from src.backend.config import settings
from src.backend.domain.models.communication import CallState, CallStatus
from src.backend.domain.models.consultation import CommunicationChannel, ConsultationStatus

logger = logging.getLogger(__name__)

CALL_CHANNELS = {CommunicationChannel.VIDEO, CommunicationChannel.AUDIO}

CALL_NOT_ALLOWED_MESSAGE = "Call can only be started in video or audio channels for in-progress consultations"
CONNECTION_FAILED_MESSAGE = "Failed to establish connection. Please try again."


class CallStateError(ValueError):
    """Raised when a call action is not permitted in the current state."""


@dataclass
class _CallSession:
    consultation_id: str
    active_channel: CommunicationChannel
    # Consultation channel last seen; a change resets the active channel.
    preferred_channel: CommunicationChannel
    status: CallStatus = CallStatus.IDLE
    call_duration: int = 0
    call_quality: int = 100
    is_muted: bool = False
    is_camera_off: bool = False
    is_screen_sharing: bool = False
    is_speaker_on: bool = False
    error_message: Optional[str] = None

    # Timer bookkeeping, in clock seconds.
    connect_due: Optional[float] = None
    connect_fails: bool = False
    connected_at: Optional[float] = None
    quality_ticks: int = 0
    reset_due: Optional[float] = None

    def reset_controls(self) -> None:
        self.call_duration = 0
        self.is_muted = False
        self.is_camera_off = False
        self.is_screen_sharing = False
        self.is_speaker_on = False

    def to_state(self) -> CallState:
        return CallState(
            consultation_id=self.consultation_id,
            active_channel=self.active_channel,
            status=self.status,
            call_duration=self.call_duration,
            call_quality=self.call_quality,
            is_muted=self.is_muted,
            is_camera_off=self.is_camera_off,
            is_screen_sharing=self.is_screen_sharing,
            is_speaker_on=self.is_speaker_on,
            error_message=self.error_message,
        )


@dataclass
class CallTimings:
    connect_delay: float = field(default_factory=lambda: settings.call_connect_delay_seconds)
    reset_delay: float = field(default_factory=lambda: settings.call_reset_delay_seconds)
    quality_interval: float = field(default_factory=lambda: settings.call_quality_interval_seconds)
    failure_rate: float = field(default_factory=lambda: settings.call_failure_rate)


class InMemoryCallService:
    """Simulated call signalling, one session per consultation.

    There is no media transport. Status changes that would be driven by
    timers (connecting -> connected/error, duration and quality ticks,
    disconnected -> idle) are applied lazily from the injected clock whenever
    a session is read or changed.
    """

    def __init__(
        self,
        *,
        clock: Optional[Callable[[], float]] = None,
        rng: Optional[random.Random] = None,
        timings: Optional[CallTimings] = None,
    ) -> None:
        self._sessions: Dict[str, _CallSession] = {}
        self._clock = clock or time.monotonic
        self._rng = rng or random.Random()
        self._timings = timings or CallTimings()

    def _session(
        self,
        consultation_id: str,
        *,
        preferred_channel: CommunicationChannel,
        consultation_status: ConsultationStatus,
    ) -> _CallSession:
        session = self._sessions.get(consultation_id)
        if session is None:
            session = _CallSession(
                consultation_id=consultation_id,
                active_channel=preferred_channel,
                preferred_channel=preferred_channel,
            )
            self._sessions[consultation_id] = session

        self._advance(session)

        if session.preferred_channel != preferred_channel:
            # The consultation moved to another channel; drop any call on the old one.
            session.preferred_channel = preferred_channel
            self._reset(session)
        # Calls only live while the consultation is in progress.
        elif consultation_status != ConsultationStatus.IN_PROGRESS and (
            session.status != CallStatus.IDLE or session.error_message is not None
        ):
            self._reset(session)
        return session

    def _reset(self, session: _CallSession) -> None:
        session.active_channel = session.preferred_channel
        session.status = CallStatus.IDLE
        session.reset_controls()
        session.error_message = None
        session.connect_due = None
        session.connected_at = None
        session.reset_due = None

    def _advance(self, session: _CallSession) -> None:
        now = self._clock()

        if session.status == CallStatus.CONNECTING and session.connect_due is not None and now >= session.connect_due:
            if session.connect_fails:
                session.status = CallStatus.ERROR
                session.error_message = CONNECTION_FAILED_MESSAGE
                logger.info("Simulated call for consultation %s failed to connect", session.consultation_id)
            else:
                session.status = CallStatus.CONNECTED
                session.connected_at = session.connect_due
                session.quality_ticks = 0
            session.connect_due = None

        if session.status == CallStatus.CONNECTED and session.connected_at is not None:
            elapsed = now - session.connected_at
            session.call_duration = int(elapsed)
            ticks = int(elapsed // self._timings.quality_interval) if self._timings.quality_interval > 0 else 0
            if ticks > session.quality_ticks:
                session.call_quality = self._rng.randint(60, 99)
                session.quality_ticks = ticks

        if session.status == CallStatus.DISCONNECTED and session.reset_due is not None and now >= session.reset_due:
            session.status = CallStatus.IDLE
            session.reset_controls()
            session.reset_due = None

    # Queries

    def get_state(
        self,
        consultation_id: str,
        *,
        preferred_channel: CommunicationChannel,
        consultation_status: ConsultationStatus,
    ) -> CallState:
        session = self._session(
            consultation_id, preferred_channel=preferred_channel, consultation_status=consultation_status
        )
        return session.to_state()

    # Commands

    def start_call(
        self,
        consultation_id: str,
        *,
        preferred_channel: CommunicationChannel,
        consultation_status: ConsultationStatus,
    ) -> CallState:
        session = self._session(
            consultation_id, preferred_channel=preferred_channel, consultation_status=consultation_status
        )

        if session.active_channel not in CALL_CHANNELS or consultation_status != ConsultationStatus.IN_PROGRESS:
            session.error_message = CALL_NOT_ALLOWED_MESSAGE
            raise CallStateError(CALL_NOT_ALLOWED_MESSAGE)
        if session.status not in {CallStatus.IDLE, CallStatus.ERROR}:
            raise CallStateError(f"Cannot start a call while {session.status.value}")

        session.status = CallStatus.CONNECTING
        session.error_message = None
        session.call_quality = 100
        session.connect_due = self._clock() + self._timings.connect_delay
        session.connect_fails = self._rng.random() < self._timings.failure_rate
        self._advance(session)
        return session.to_state()

    def end_call(
        self,
        consultation_id: str,
        *,
        preferred_channel: CommunicationChannel,
        consultation_status: ConsultationStatus,
    ) -> CallState:
        session = self._session(
            consultation_id, preferred_channel=preferred_channel, consultation_status=consultation_status
        )
        if session.active_channel not in CALL_CHANNELS or session.status not in {
            CallStatus.CONNECTED,
            CallStatus.CONNECTING,
        }:
            raise CallStateError("There is no active call to end")

        self._disconnect(session)
        self._advance(session)
        return session.to_state()

    def _disconnect(self, session: _CallSession) -> None:
        # Duration stays frozen at its last value until the reset.
        session.status = CallStatus.DISCONNECTED
        session.connect_due = None
        session.connected_at = None
        session.reset_due = self._clock() + self._timings.reset_delay

    def set_active_channel(
        self,
        consultation_id: str,
        channel: CommunicationChannel,
        *,
        preferred_channel: CommunicationChannel,
        consultation_status: ConsultationStatus,
    ) -> CallState:
        """Switch channel, hanging up a connected call first."""

        session = self._session(
            consultation_id, preferred_channel=preferred_channel, consultation_status=consultation_status
        )
        if session.active_channel in CALL_CHANNELS and session.status == CallStatus.CONNECTED:
            self._disconnect(session)
        if session.status == CallStatus.DISCONNECTED:
            session.reset_controls()

        session.active_channel = channel
        session.status = CallStatus.IDLE
        session.error_message = None
        session.connect_due = None
        session.reset_due = None
        return session.to_state()

    def toggle(
        self,
        consultation_id: str,
        control: str,
        *,
        preferred_channel: CommunicationChannel,
        consultation_status: ConsultationStatus,
    ) -> CallState:
        """Flip one of the in-call controls.

        ``control`` is one of ``mute``, ``camera``, ``speaker`` or
        ``screen_sharing``. Controls only change while connected.
        """

        attribute = _CONTROL_ATTRIBUTES.get(control)
        if attribute is None:
            raise ValueError(f"Unknown call control: {control}")

        session = self._session(
            consultation_id, preferred_channel=preferred_channel, consultation_status=consultation_status
        )
        if session.status != CallStatus.CONNECTED:
            raise CallStateError("Call controls are only available while connected")

        setattr(session, attribute, not getattr(session, attribute))
        return session.to_state()


_CONTROL_ATTRIBUTES = {
    "mute": "is_muted",
    "camera": "is_camera_off",
    "speaker": "is_speaker_on",
    "screen_sharing": "is_screen_sharing",
}


call_service = InMemoryCallService()
