from datetime import datetime, timezone

import pytest
from fastapi import status

from src.backend.services.health.service import InMemoryHealthService, bmi_category


@pytest.mark.parametrize(
    "bmi, expected",
    [
        (0, "Unknown"),
        (-3, "Unknown"),
        (18.4, "Underweight"),
        (18.5, "Normal"),
        (24.9, "Normal"),
        (25, "Overweight"),
        (29.9, "Overweight"),
        (30, "Obese"),
    ],
)
def test_bmi_category_boundaries(bmi, expected):
    assert bmi_category(bmi) == expected


def test_unknown_patient_gets_stable_default_profile():
    service = InMemoryHealthService()
    profile = service.get_health_profile("p99")
    assert profile.id == "hp_default_p99"
    assert profile.height == "175 cm"
    assert profile.weight == "70 kg"
    assert profile.bmi == 22.9
    assert profile.blood_pressure == "120/80 mmHg"
    assert profile.blood_type == "O+"

    service.update_health_profile("p99", {"weight": "72 kg"})
    assert service.get_health_profile("p99").weight == "72 kg"


def test_seeded_summary():
    service = InMemoryHealthService(seed=True)
    summary = service.get_health_summary("p1", now=datetime(2025, 3, 17, 0, 0, tzinfo=timezone.utc))
    assert summary.condition_count == 2
    assert summary.medication_count == 2
    assert summary.allergy_count == 2
    assert summary.last_checkup_days == 30
    assert summary.bmi_category == "Overweight"


def test_summary_counts_started_days():
    service = InMemoryHealthService(seed=True)
    afternoon = datetime(2025, 3, 17, 15, 30, tzinfo=timezone.utc)
    assert service.get_health_summary("p1", now=afternoon).last_checkup_days == 31


def test_summary_day_difference_is_absolute():
    service = InMemoryHealthService(seed=True)
    summary = service.get_health_summary("p3", now=datetime(2025, 2, 20, 12, 0, tzinfo=timezone.utc))
    assert summary.last_checkup_days == 8
    assert summary.bmi_category == "Normal"


def test_update_rejects_identity_fields():
    service = InMemoryHealthService()
    with pytest.raises(ValueError):
        service.update_health_profile("p1", {"patient_id": "p2"})


async def test_patient_reads_and_updates_own_profile(client, login):
    headers, user = await login()
    url = f"/api/v1/patients/{user['id']}/health-profile"

    resp = await client.get(url, headers=headers)
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json()["id"] == f"hp_default_{user['id']}"

    resp = await client.patch(
        url,
        json={"allergies": ["Peanuts"], "bmi": 31.2, "smoking_status": "Former"},
        headers=headers,
    )
    assert resp.status_code == status.HTTP_200_OK
    assert resp.json()["allergies"] == ["Peanuts"]
    assert resp.json()["height"] == "175 cm"

    summary = await client.get(f"/api/v1/patients/{user['id']}/health-summary", headers=headers)
    assert summary.status_code == status.HTTP_200_OK
    assert summary.json()["allergy_count"] == 1
    assert summary.json()["bmi_category"] == "Obese"


async def test_patient_cannot_read_another_patients_profile(client, login):
    headers, _ = await login()
    resp = await client.get("/api/v1/patients/p1/health-profile", headers=headers)
    assert resp.status_code == status.HTTP_403_FORBIDDEN


async def test_student_reads_profile_only_for_assigned_patient(client, login):
    patient_headers, patient = await login()
    student_headers, _ = await login(student=True)
    url = f"/api/v1/patients/{patient['id']}/health-profile"

    assert (await client.get(url, headers=student_headers)).status_code == status.HTTP_403_FORBIDDEN

    created = (
        await client.post(
            "/api/v1/consultations/",
            json={
                "type": "general",
                "primary_concern": "Checkup",
                "description": "General questions",
                "communication_channel": "async",
            },
            headers=patient_headers,
        )
    ).json()
    await client.post(f"/api/v1/medical-student/consultations/{created['id']}/accept", headers=student_headers)

    assert (await client.get(url, headers=student_headers)).status_code == status.HTTP_200_OK
    patch = await client.patch(url, json={"weight": "1 kg"}, headers=student_headers)
    assert patch.status_code == status.HTTP_403_FORBIDDEN
