from sqlalchemy import Column, Integer, String, Date, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base


class Doctors(Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(100))
    email = Column(String(255))

    schedule = relationship(
        "DaySchedule",
        back_populates="doctor",
        order_by="DaySchedule.date",
        cascade="all, delete-orphan",
    )


class DaySchedule(Base):
    __tablename__ = "day_schedules"
    __table_args__ = (UniqueConstraint("doctor_id", "date", name="uq_day_schedule_doctor_date"),)

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(String(64), ForeignKey("doctors.doctor_id"), nullable=False, index=True)
    date = Column(Date, nullable=False)

    doctor = relationship("Doctors", back_populates="schedule")
    slots = relationship("TimeSlot", back_populates="schedule", cascade="all, delete-orphan")

    @property
    def available_slots(self) -> list[str]:
        return sorted(slot.time for slot in self.slots)


class TimeSlot(Base):
    """One free time of day; the row exists only while the slot is available."""

    __tablename__ = "time_slots"
    __table_args__ = (UniqueConstraint("schedule_id", "time", name="uq_time_slot_schedule_time"),)

    id = Column(Integer, primary_key=True, index=True)
    schedule_id = Column(Integer, ForeignKey("day_schedules.id"), nullable=False, index=True)
    time = Column(String(5), nullable=False)

    schedule = relationship("DaySchedule", back_populates="slots")
