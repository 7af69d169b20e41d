from __future__ import annotations

from datetime import date
from typing import Dict, Optional

from src.backend.domain.models.availability import (
    WEEKDAYS,
    AvailabilitySettings,
    CommunicationPreference,
    ConsultationTypeExpertise,
    DayAvailability,
    ExcludedDate,
    TimeSlot,
    Weekday,
    WeeklySchedule,
)
from src.backend.domain.models.consultation import CommunicationChannel, ConsultationType


class AvailabilityConflictError(ValueError):
    """Raised when an edit collides with existing availability data."""


def default_settings(medical_student_id: str) -> AvailabilitySettings:
    def day(morning: bool, afternoon: bool) -> DayAvailability:
        return DayAvailability(morning=morning, afternoon=afternoon, evening=False)

    return AvailabilitySettings(
        medical_student_id=medical_student_id,
        weekly_schedule=WeeklySchedule(
            monday=day(True, True),
            tuesday=day(True, True),
            wednesday=day(True, False),
            thursday=day(True, True),
            friday=day(True, True),
            saturday=day(False, False),
            sunday=day(False, False),
        ),
        consultation_types=[
            ConsultationTypeExpertise(type=ConsultationType.LAB_RESULT, expertise=4),
            ConsultationTypeExpertise(type=ConsultationType.MEDICATION, expertise=3),
            ConsultationTypeExpertise(type=ConsultationType.IMAGING, expertise=2),
            ConsultationTypeExpertise(type=ConsultationType.SYMPTOMS, expertise=3),
            ConsultationTypeExpertise(type=ConsultationType.GENERAL, expertise=5),
        ],
        communication_preferences=[CommunicationPreference(type=channel) for channel in CommunicationChannel],
    )


class InMemoryAvailabilityService:
    """Per-student availability settings.

    Every mutator returns the full, updated settings object.
    """

    def __init__(self) -> None:
        self._settings: Dict[str, AvailabilitySettings] = {}

    def get_settings(self, medical_student_id: str) -> AvailabilitySettings:
        current = self._settings.get(medical_student_id)
        if current is None:
            current = default_settings(medical_student_id)
            self._settings[medical_student_id] = current
        return current

    # Weekly schedule

    def replace_weekly_schedule(self, medical_student_id: str, schedule: WeeklySchedule) -> AvailabilitySettings:
        current = self.get_settings(medical_student_id)
        current.weekly_schedule = schedule.model_copy(deep=True)
        return current

    def toggle_time_slot(self, medical_student_id: str, day: Weekday, slot: TimeSlot) -> AvailabilitySettings:
        current = self.get_settings(medical_student_id)
        day_availability = current.weekly_schedule.get_day(day)
        setattr(day_availability, slot.value, not getattr(day_availability, slot.value))
        return current

    def toggle_day(self, medical_student_id: str, day: Weekday) -> AvailabilitySettings:
        """Turn every slot off if any is active, otherwise turn all on."""

        current = self.get_settings(medical_student_id)
        value = not current.weekly_schedule.get_day(day).any_active()
        current.weekly_schedule.set_day(day, DayAvailability(morning=value, afternoon=value, evening=value))
        return current

    def copy_from_previous_day(self, medical_student_id: str, day: Weekday) -> AvailabilitySettings:
        current = self.get_settings(medical_student_id)
        days = list(Weekday)
        index = days.index(day)
        if index > 0:
            previous = current.weekly_schedule.get_day(days[index - 1])
            current.weekly_schedule.set_day(day, previous.model_copy())
        return current

    def copy_to_weekdays(self, medical_student_id: str, day: Weekday) -> AvailabilitySettings:
        current = self.get_settings(medical_student_id)
        source = current.weekly_schedule.get_day(day).model_copy()
        for weekday in WEEKDAYS:
            current.weekly_schedule.set_day(weekday, source.model_copy())
        return current

    # Excluded dates

    def add_excluded_date(self, medical_student_id: str, *, excluded: date, reason: str) -> AvailabilitySettings:
        """Add a date the student is unavailable; the list stays sorted by date."""

        if not reason.strip():
            raise ValueError("Reason is required")

        current = self.get_settings(medical_student_id)
        if any(item.date == excluded for item in current.excluded_dates):
            raise AvailabilityConflictError("This date is already excluded")

        current.excluded_dates.append(ExcludedDate(date=excluded, reason=reason))
        current.excluded_dates.sort(key=lambda item: item.date)
        return current

    def remove_excluded_date(self, medical_student_id: str, excluded: date) -> AvailabilitySettings:
        current = self.get_settings(medical_student_id)
        current.excluded_dates = [item for item in current.excluded_dates if item.date != excluded]
        return current

    # Expertise and channels

    def update_consultation_type(
        self,
        medical_student_id: str,
        consultation_type: ConsultationType,
        *,
        enabled: Optional[bool] = None,
        expertise: Optional[int] = None,
    ) -> AvailabilitySettings:
        if expertise is not None and not 1 <= expertise <= 5:
            raise ValueError("Expertise must be between 1 and 5")

        current = self.get_settings(medical_student_id)
        for entry in current.consultation_types:
            if entry.type == consultation_type:
                if enabled is not None:
                    entry.enabled = enabled
                if expertise is not None:
                    entry.expertise = expertise
                break
        else:
            current.consultation_types.append(
                ConsultationTypeExpertise(
                    type=consultation_type,
                    enabled=True if enabled is None else enabled,
                    expertise=3 if expertise is None else expertise,
                )
            )
        return current

    def update_communication_preference(
        self,
        medical_student_id: str,
        channel: CommunicationChannel,
        *,
        enabled: Optional[bool] = None,
        notes: Optional[str] = None,
    ) -> AvailabilitySettings:
        current = self.get_settings(medical_student_id)
        for preference in current.communication_preferences:
            if preference.type == channel:
                if enabled is not None:
                    preference.enabled = enabled
                if notes is not None:
                    preference.notes = notes
                break
        else:
            current.communication_preferences.append(
                CommunicationPreference(
                    type=channel,
                    enabled=True if enabled is None else enabled,
                    notes=notes or "",
                )
            )
        return current


availability_service = InMemoryAvailabilityService()
