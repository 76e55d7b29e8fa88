import datetime as dt
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from core.timeslots import normalize_slot
from model.appointment_schema import CamelModel


def _normalize_all(values: list[str]) -> list[str]:
    return sorted({normalize_slot(v) for v in values})


class DayScheduleIn(CamelModel):
    date: dt.date
    available_slots: list[str] = Field(default_factory=list)

    @field_validator("available_slots")
    @classmethod
    def _slots(cls, values: list[str]) -> list[str]:
        return _normalize_all(values)


class CreateDoctorRequest(CamelModel):
    doctor_id: str = Field(min_length=1)
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    schedule: list[DayScheduleIn] = Field(default_factory=list)

    @field_validator("schedule")
    @classmethod
    def _unique_dates(cls, values: list[DayScheduleIn]) -> list[DayScheduleIn]:
        dates = [day.date for day in values]
        if len(dates) != len(set(dates)):
            raise ValueError("schedule may hold at most one entry per date")
        return values


class UpdateSlotsRequest(CamelModel):
    date: dt.date
    new_slots: list[str]

    @field_validator("new_slots")
    @classmethod
    def _slots(cls, values: list[str]) -> list[str]:
        return _normalize_all(values)


class DoctorSummary(CamelModel):
    doctor_id: str
    name: Optional[str] = None


class DayScheduleOut(CamelModel):
    date: dt.date
    available_slots: list[str]


class UpdateSlotsResponse(CamelModel):
    message: str
    date: dt.date
    available_slots: list[str]
    dropped_slots: list[str]
