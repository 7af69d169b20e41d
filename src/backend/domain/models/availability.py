from __future__ import annotations

from datetime import date as Date
from enum import Enum
from typing import List

from pydantic import BaseModel, Field

from src.backend.domain.models.consultation import CommunicationChannel, ConsultationType


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


class TimeSlot(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


WEEKDAYS: List[Weekday] = [
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
]


class DayAvailability(BaseModel):
    morning: bool = False
    afternoon: bool = False
    evening: bool = False

    def any_active(self) -> bool:
        return self.morning or self.afternoon or self.evening


class WeeklySchedule(BaseModel):
    monday: DayAvailability = Field(default_factory=DayAvailability)
    tuesday: DayAvailability = Field(default_factory=DayAvailability)
    wednesday: DayAvailability = Field(default_factory=DayAvailability)
    thursday: DayAvailability = Field(default_factory=DayAvailability)
    friday: DayAvailability = Field(default_factory=DayAvailability)
    saturday: DayAvailability = Field(default_factory=DayAvailability)
    sunday: DayAvailability = Field(default_factory=DayAvailability)

    def get_day(self, day: Weekday) -> DayAvailability:
        return getattr(self, day.value)

    def set_day(self, day: Weekday, availability: DayAvailability) -> None:
        setattr(self, day.value, availability)


class ExcludedDate(BaseModel):
    date: Date
    reason: str = Field(min_length=1)


class ConsultationTypeExpertise(BaseModel):
    type: ConsultationType
    enabled: bool = True
    # 1 = beginner, 5 = expert
    expertise: int = Field(default=3, ge=1, le=5)


class CommunicationPreference(BaseModel):
    type: CommunicationChannel
    enabled: bool = True
    notes: str = ""


class AvailabilitySettings(BaseModel):
    medical_student_id: str
    weekly_schedule: WeeklySchedule = Field(default_factory=WeeklySchedule)
    excluded_dates: List[ExcludedDate] = Field(default_factory=list)
    consultation_types: List[ConsultationTypeExpertise] = Field(default_factory=list)
    communication_preferences: List[CommunicationPreference] = Field(default_factory=list)
