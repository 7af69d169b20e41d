import random

import pytest
from fastapi import status

from src.backend.domain.models.communication import CallStatus
from src.backend.domain.models.consultation import CommunicationChannel, ConsultationStatus
from src.backend.services.communication.service import (
    CALL_NOT_ALLOWED_MESSAGE,
    CONNECTION_FAILED_MESSAGE,
    CallStateError,
    CallTimings,
    InMemoryCallService,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class StubRandom(random.Random):
    """Deterministic draws: fixed failure roll and fixed quality."""

    def __init__(self, roll: float = 0.5, quality: int = 77) -> None:
        super().__init__(0)
        self.roll = roll
        self.quality = quality

    def random(self) -> float:
        return self.roll

    def randint(self, a: int, b: int) -> int:
        return self.quality


IN_PROGRESS_VIDEO = {
    "preferred_channel": CommunicationChannel.VIDEO,
    "consultation_status": ConsultationStatus.IN_PROGRESS,
}


@pytest.fixture
def clock():
    return FakeClock()


def _service(clock, roll=0.5, quality=77):
    timings = CallTimings(connect_delay=2, reset_delay=2, quality_interval=5, failure_rate=0.1)
    return InMemoryCallService(clock=clock, rng=StubRandom(roll, quality), timings=timings)


def test_initial_state_uses_consultation_channel(clock):
    state = _service(clock).get_state("c1", **IN_PROGRESS_VIDEO)
    assert state.status == CallStatus.IDLE
    assert state.active_channel == CommunicationChannel.VIDEO
    assert state.call_quality == 100
    assert state.error_message is None


def test_call_connects_counts_and_resets(clock):
    service = _service(clock)

    assert service.start_call("c1", **IN_PROGRESS_VIDEO).status == CallStatus.CONNECTING

    clock.now = 1.9
    assert service.get_state("c1", **IN_PROGRESS_VIDEO).status == CallStatus.CONNECTING

    clock.now = 2.0
    state = service.get_state("c1", **IN_PROGRESS_VIDEO)
    assert state.status == CallStatus.CONNECTED
    assert state.call_duration == 0

    clock.now = 6.5
    state = service.get_state("c1", **IN_PROGRESS_VIDEO)
    assert state.call_duration == 4
    assert state.call_quality == 100

    clock.now = 7.0
    state = service.get_state("c1", **IN_PROGRESS_VIDEO)
    assert state.call_duration == 5
    assert state.call_quality == 77

    assert service.toggle("c1", "mute", **IN_PROGRESS_VIDEO).is_muted
    assert service.toggle("c1", "camera", **IN_PROGRESS_VIDEO).is_camera_off

    clock.now = 8.0
    ended = service.end_call("c1", **IN_PROGRESS_VIDEO)
    assert ended.status == CallStatus.DISCONNECTED
    assert ended.call_duration == 6

    clock.now = 9.5
    state = service.get_state("c1", **IN_PROGRESS_VIDEO)
    assert state.status == CallStatus.DISCONNECTED
    assert state.call_duration == 6

    clock.now = 10.0
    state = service.get_state("c1", **IN_PROGRESS_VIDEO)
    assert state.status == CallStatus.IDLE
    assert state.call_duration == 0
    assert not state.is_muted
    assert not state.is_camera_off


def test_failed_connection_reports_error_and_can_retry(clock):
    service = _service(clock, roll=0.05)
    service.start_call("c1", **IN_PROGRESS_VIDEO)

    clock.now = 2.0
    state = service.get_state("c1", **IN_PROGRESS_VIDEO)
    assert state.status == CallStatus.ERROR
    assert state.error_message == CONNECTION_FAILED_MESSAGE

    retried = service.start_call("c1", **IN_PROGRESS_VIDEO)
    assert retried.status == CallStatus.CONNECTING
    assert retried.error_message is None


def test_start_rejected_outside_call_channels(clock):
    service = _service(clock)
    context = {
        "preferred_channel": CommunicationChannel.TEXT,
        "consultation_status": ConsultationStatus.IN_PROGRESS,
    }

    with pytest.raises(CallStateError) as excinfo:
        service.start_call("c1", **context)
    assert str(excinfo.value) == CALL_NOT_ALLOWED_MESSAGE
    assert service.get_state("c1", **context).error_message == CALL_NOT_ALLOWED_MESSAGE


def test_start_rejected_when_not_in_progress(clock):
    service = _service(clock)
    with pytest.raises(CallStateError):
        service.start_call(
            "c1",
            preferred_channel=CommunicationChannel.AUDIO,
            consultation_status=ConsultationStatus.SCHEDULED,
        )


@pytest.mark.parametrize("control", ["mute", "camera", "speaker", "screen_sharing"])
def test_toggles_require_connected_call(clock, control):
    service = _service(clock)
    before = service.get_state("c1", **IN_PROGRESS_VIDEO)

    with pytest.raises(CallStateError):
        service.toggle("c1", control, **IN_PROGRESS_VIDEO)

    assert service.get_state("c1", **IN_PROGRESS_VIDEO) == before


def test_unknown_control_is_rejected(clock):
    with pytest.raises(ValueError):
        _service(clock).toggle("c1", "volume", **IN_PROGRESS_VIDEO)


def test_leaving_in_progress_resets_call(clock):
    service = _service(clock)
    service.start_call("c1", **IN_PROGRESS_VIDEO)
    clock.now = 3.0
    service.toggle("c1", "speaker", **IN_PROGRESS_VIDEO)

    state = service.get_state(
        "c1",
        preferred_channel=CommunicationChannel.VIDEO,
        consultation_status=ConsultationStatus.RESOLVED,
    )
    assert state.status == CallStatus.IDLE
    assert not state.is_speaker_on
    assert state.call_duration == 0
    assert state.error_message is None


def test_switching_channel_ends_connected_call(clock):
    service = _service(clock)
    service.start_call("c1", **IN_PROGRESS_VIDEO)
    clock.now = 4.0
    service.toggle("c1", "mute", **IN_PROGRESS_VIDEO)

    state = service.set_active_channel("c1", CommunicationChannel.TEXT, **IN_PROGRESS_VIDEO)
    assert state.status == CallStatus.IDLE
    assert state.active_channel == CommunicationChannel.TEXT
    assert not state.is_muted
    assert state.call_duration == 0

    with pytest.raises(CallStateError):
        service.start_call("c1", **IN_PROGRESS_VIDEO)


def test_consultation_channel_change_resyncs_call(clock):
    service = _service(clock)
    service.start_call("c1", **IN_PROGRESS_VIDEO)
    clock.now = 3.0
    service.toggle("c1", "mute", **IN_PROGRESS_VIDEO)

    text = {
        "preferred_channel": CommunicationChannel.TEXT,
        "consultation_status": ConsultationStatus.IN_PROGRESS,
    }
    state = service.get_state("c1", **text)
    assert state.active_channel == CommunicationChannel.TEXT
    assert state.status == CallStatus.IDLE
    assert not state.is_muted

    with pytest.raises(CallStateError):
        service.start_call("c1", **text)


def test_end_without_active_call_is_rejected(clock):
    with pytest.raises(CallStateError):
        _service(clock).end_call("c1", **IN_PROGRESS_VIDEO)


async def _in_progress_video_consultation(client, login):
    patient_headers, _ = await login()
    student_headers, _ = await login(student=True)
    created = (
        await client.post(
            "/api/v1/consultations/",
            json={
                "type": "symptoms",
                "primary_concern": "Rash",
                "description": "Rash after antibiotics",
                "communication_channel": "video",
            },
            headers=patient_headers,
        )
    ).json()
    cid = created["id"]
    await client.post(f"/api/v1/medical-student/consultations/{cid}/accept", headers=student_headers)
    return cid, patient_headers, student_headers


async def test_call_endpoints(client, login):
    cid, patient_headers, student_headers = await _in_progress_video_consultation(client, login)
    base = f"/api/v1/consultations/{cid}/call"

    # Still ASSIGNED: calls are not allowed yet.
    early = await client.post(f"{base}/start", headers=patient_headers)
    assert early.status_code == status.HTTP_409_CONFLICT

    await client.post(
        f"/api/v1/medical-student/consultations/{cid}/status",
        json={"status": "IN_PROGRESS"},
        headers=student_headers,
    )

    state = await client.get(base, headers=patient_headers)
    assert state.status_code == status.HTTP_200_OK
    assert state.json()["status"] == "idle"
    assert state.json()["active_channel"] == "video"

    started = await client.post(f"{base}/start", headers=student_headers)
    assert started.status_code == status.HTTP_200_OK
    assert started.json()["status"] == "connecting"

    toggle = await client.post(f"{base}/toggle/mute", headers=patient_headers)
    assert toggle.status_code == status.HTTP_409_CONFLICT

    unknown = await client.post(f"{base}/toggle/volume", headers=patient_headers)
    assert unknown.status_code == status.HTTP_400_BAD_REQUEST

    ended = await client.post(f"{base}/end", headers=patient_headers)
    assert ended.status_code == status.HTTP_200_OK
    assert ended.json()["status"] == "disconnected"

    switched = await client.put(f"{base}/channel", json={"channel": "text"}, headers=patient_headers)
    assert switched.json()["active_channel"] == "text"
    assert switched.json()["status"] == "idle"


async def test_call_requires_participant(client, login):
    cid, _, _ = await _in_progress_video_consultation(client, login)
    outsider_headers, _ = await login()
    resp = await client.get(f"/api/v1/consultations/{cid}/call", headers=outsider_headers)
    assert resp.status_code == status.HTTP_403_FORBIDDEN


async def test_call_follows_consultation_channel_change(client, login):
    cid, patient_headers, student_headers = await _in_progress_video_consultation(client, login)
    await client.post(
        f"/api/v1/medical-student/consultations/{cid}/status",
        json={"status": "IN_PROGRESS"},
        headers=student_headers,
    )
    base = f"/api/v1/consultations/{cid}/call"
    assert (await client.get(base, headers=patient_headers)).json()["active_channel"] == "video"

    patched = await client.patch(
        f"/api/v1/consultations/{cid}",
        json={"communication_channel": "text"},
        headers=patient_headers,
    )
    assert patched.status_code == status.HTTP_200_OK

    state = await client.get(base, headers=patient_headers)
    assert state.json()["active_channel"] == "text"

    started = await client.post(f"{base}/start", headers=patient_headers)
    assert started.status_code == status.HTTP_409_CONFLICT
