from __future__ import annotations

from datetime import date as Date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SmokingStatus(str, Enum):
    NEVER = "Never"
    FORMER = "Former"
    CURRENT = "Current"


class AlcoholConsumption(str, Enum):
    NONE = "None"
    OCCASIONAL = "Occasional"
    MODERATE = "Moderate"
    HEAVY = "Heavy"


class ExerciseFrequency(str, Enum):
    NONE = "None"
    LIGHT = "Light"
    MODERATE = "Moderate"
    REGULAR = "Regular"
    INTENSE = "Intense"


class Medication(BaseModel):
    name: str
    dosage: str
    frequency: str
    start_date: Date


class HealthMetric(BaseModel):
    """A dated set of measurements; the metric names vary by condition."""

    date: Date
    values: Dict[str, float] = Field(default_factory=dict)


class PatientHealthProfile(BaseModel):
    id: str
    patient_id: str
    height: str
    weight: str
    bmi: float
    blood_pressure: str
    blood_type: str
    allergies: List[str] = Field(default_factory=list)
    medications: List[Medication] = Field(default_factory=list)
    chronic_conditions: List[str] = Field(default_factory=list)
    family_history: List[str] = Field(default_factory=list)
    last_checkup: Optional[Date] = None
    smoking_status: SmokingStatus = SmokingStatus.NEVER
    alcohol_consumption: AlcoholConsumption = AlcoholConsumption.NONE
    exercise_frequency: ExerciseFrequency = ExerciseFrequency.MODERATE
    recent_metrics: List[HealthMetric] = Field(default_factory=list)


class HealthSummary(BaseModel):
    condition_count: int
    medication_count: int
    allergy_count: int
    last_checkup_days: Optional[int] = None
    bmi_category: str
