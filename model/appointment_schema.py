import datetime as dt
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel

from core.timeslots import normalize_slot, to_naive_utc


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class AppointmentRequest(CamelModel):
    patient_name: str
    patient_email: EmailStr
    doctor_id: str
    appointment_time: datetime

    @field_validator("appointment_time")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class NewSlot(CamelModel):
    date: dt.date
    time: str

    @field_validator("time")
    @classmethod
    def _slot(cls, value: str) -> str:
        return normalize_slot(value)


class RescheduleRequest(CamelModel):
    appointment_id: int
    new_slot: NewSlot
    # sent by older clients, the appointment's own doctor is always used
    doctor_id: Optional[str] = None


class AppointmentOut(CamelModel):
    id: int
    patient_name: str
    patient_email: str
    doctor_id: str
    appointment_time: datetime
    status: str
    created_at: datetime
    rescheduled_at: Optional[datetime] = None


class RescheduleResponse(CamelModel):
    message: str
    appointment: AppointmentOut
    previous_time: datetime
    notification: str


class BookResponse(CamelModel):
    message: str
    appointment: AppointmentOut
