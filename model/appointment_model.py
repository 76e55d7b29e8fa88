import enum

from sqlalchemy import Column, Integer, DateTime, ForeignKey, String
from database import Base


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "Scheduled"
    RESCHEDULED = "Rescheduled"
    MISSED = "Missed"


ACTIVE_STATUSES = (AppointmentStatus.SCHEDULED.value, AppointmentStatus.RESCHEDULED.value)

# target status -> statuses it may be reached from
ALLOWED_SOURCES = {
    AppointmentStatus.RESCHEDULED: ACTIVE_STATUSES,
    AppointmentStatus.MISSED: ACTIVE_STATUSES,
}


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    patient_name = Column(String(100), nullable=False)
    patient_email = Column(String(255), nullable=False)
    doctor_id = Column(String(64), ForeignKey("doctors.doctor_id"), nullable=False, index=True)
    appointment_time = Column(DateTime, nullable=False, index=True)
    status = Column(String(20), default=AppointmentStatus.SCHEDULED.value, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)
    rescheduled_at = Column(DateTime, nullable=True)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES
