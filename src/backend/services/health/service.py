from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Optional

from src.backend.config import settings
from src.backend.domain.models.health_profile import HealthSummary, PatientHealthProfile

_SEED_PROFILES = [
    # Maria Schmidt: cholesterol
    dict(
        id="hp1", patient_id="p1", height="168 cm", weight="72 kg", bmi=25.5, blood_pressure="125/82 mmHg",
        blood_type="A+", allergies=["Penicillin", "Dust mites"],
        medications=[
            dict(name="Atorvastatin", dosage="20mg", frequency="Once daily at night", start_date="2025-02-15"),
            dict(name="Cetirizine", dosage="10mg", frequency="As needed for allergies", start_date="2024-05-10"),
        ],
        chronic_conditions=["Hypercholesterolemia", "Seasonal allergies"],
        family_history=["Father: Heart disease", "Mother: Hypertension"],
        last_checkup="2025-02-15", smoking_status="Never", alcohol_consumption="Occasional",
        exercise_frequency="Light",
        recent_metrics=[
            dict(date="2025-03-19", values=dict(totalCholesterol=240, ldl=160, hdl=45, triglycerides=175)),
            dict(date="2025-01-15", values=dict(totalCholesterol=255, ldl=170, hdl=42, triglycerides=195)),
        ],
    ),
    # Thomas Weber: diabetes
    dict(
        id="hp2", patient_id="p2", height="182 cm", weight="92 kg", bmi=27.8, blood_pressure="138/88 mmHg",
        blood_type="O+", allergies=["Sulfa drugs"],
        medications=[
            dict(name="Metformin", dosage="500mg", frequency="Twice daily with meals", start_date="2025-03-10"),
            dict(name="Lisinopril", dosage="10mg", frequency="Once daily in the morning", start_date="2025-01-05"),
        ],
        chronic_conditions=["Type 2 Diabetes (newly diagnosed)", "Hypertension"],
        family_history=["Father: Type 2 Diabetes", "Mother: Hypertension"],
        last_checkup="2025-03-10", smoking_status="Former", alcohol_consumption="Moderate",
        exercise_frequency="Light",
        recent_metrics=[
            dict(date="2025-03-12", values=dict(hba1c=7.2, fastingGlucose=135, postprandialGlucose=195)),
        ],
    ),
    # Anna Becker: asthma
    dict(
        id="hp3", patient_id="p3", height="165 cm", weight="58 kg", bmi=21.3, blood_pressure="118/75 mmHg",
        blood_type="B-", allergies=["Pollen", "Cat dander"],
        medications=[
            dict(name="Salbutamol", dosage="100 mcg", frequency="As needed for asthma symptoms", start_date="2022-06-18"),
            dict(name="Fluticasone", dosage="250 mcg", frequency="Twice daily", start_date="2022-06-18"),
        ],
        chronic_conditions=["Asthma", "Seasonal allergies"],
        family_history=["Mother: Asthma", "Sister: Allergies"],
        last_checkup="2025-02-28", smoking_status="Never", alcohol_consumption="Occasional",
        exercise_frequency="Moderate",
        recent_metrics=[dict(date="2025-02-25", values=dict(fev1=75, fvc=88, fev1fvc=0.68))],
    ),
    # Klaus Hoffmann: heart condition
    dict(
        id="hp4", patient_id="p4", height="178 cm", weight="85 kg", bmi=26.8, blood_pressure="145/92 mmHg",
        blood_type="AB+", allergies=[],
        medications=[
            dict(name="Ramipril", dosage="5mg", frequency="Once daily in the morning", start_date="2025-03-15"),
            dict(name="Aspirin", dosage="81mg", frequency="Once daily", start_date="2025-01-10"),
        ],
        chronic_conditions=["Hypertension", "Coronary artery disease"],
        family_history=["Father: Heart attack at 62", "Brother: Hypertension"],
        last_checkup="2025-03-15", smoking_status="Former", alcohol_consumption="Occasional",
        exercise_frequency="Light",
        recent_metrics=[dict(date="2025-03-14", values=dict(systolicBP=145, diastolicBP=92, heartRate=78))],
    ),
]


def bmi_category(bmi: float) -> str:
    if bmi <= 0:
        return "Unknown"
    if bmi < 18.5:
        return "Underweight"
    if bmi < 25:
        return "Normal"
    if bmi < 30:
        return "Overweight"
    return "Obese"


def default_profile(patient_id: str) -> PatientHealthProfile:
    return PatientHealthProfile(
        id=f"hp_default_{patient_id}",
        patient_id=patient_id,
        height="175 cm",
        weight="70 kg",
        bmi=22.9,
        blood_pressure="120/80 mmHg",
        blood_type="O+",
        last_checkup=date(2025, 1, 1),
    )


class InMemoryHealthService:
    """Per-patient health profiles with a default for unknown patients."""

    def __init__(self, *, seed: bool = False) -> None:
        self._profiles: Dict[str, PatientHealthProfile] = {}
        if seed:
            for raw in _SEED_PROFILES:
                profile = PatientHealthProfile.model_validate(raw)
                self._profiles[profile.patient_id] = profile

    def get_health_profile(self, patient_id: str) -> PatientHealthProfile:
        profile = self._profiles.get(patient_id)
        if profile is None:
            profile = default_profile(patient_id)
            self._profiles[patient_id] = profile
        return profile

    def update_health_profile(self, patient_id: str, updates: Dict[str, Any]) -> PatientHealthProfile:
        current = self.get_health_profile(patient_id)
        protected = {"id", "patient_id"} & set(updates)
        if protected:
            raise ValueError(f"Fields cannot be updated: {', '.join(sorted(protected))}")
        updated = PatientHealthProfile.model_validate({**current.model_dump(), **updates})
        self._profiles[patient_id] = updated
        return updated

    def get_health_summary(self, patient_id: str, *, now: Optional[datetime] = None) -> HealthSummary:
        """Summarise a profile for the dashboard.

        ``last_checkup_days`` counts started days between ``now`` and midnight
        (UTC) of the checkup date: a checkup dated yesterday reads 2 once today
        is under way.
        """

        profile = self.get_health_profile(patient_id)

        last_checkup_days: Optional[int] = None
        if profile.last_checkup is not None:
            checkup = datetime.combine(profile.last_checkup, time.min, tzinfo=timezone.utc)
            elapsed = abs(((now or datetime.now(timezone.utc)) - checkup).total_seconds())
            last_checkup_days = math.ceil(elapsed / 86400)

        return HealthSummary(
            condition_count=len(profile.chronic_conditions),
            medication_count=len(profile.medications),
            allergy_count=len(profile.allergies),
            last_checkup_days=last_checkup_days,
            bmi_category=bmi_category(profile.bmi),
        )


health_service = InMemoryHealthService(seed=settings.seed_demo_data)
