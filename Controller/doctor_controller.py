import logging

from sqlalchemy.exc import IntegrityError

from core.errors import DuplicateDoctor
from database import Database
from model.doctor_model import Doctors, DaySchedule, TimeSlot
from model.doctor_schema import CreateDoctorRequest

logger = logging.getLogger(__name__)


class DoctorDirectory:
    """Administrative doctor records. Availability changes go through the booking service."""

    def __init__(self, database: Database):
        self.database = database

    def add_doctor(self, request: CreateDoctorRequest) -> Doctors:
        doctor = Doctors(doctor_id=request.doctor_id, name=request.name, email=request.email)
        for day in request.schedule:
            schedule = DaySchedule(date=day.date)
            schedule.slots = [TimeSlot(time=slot) for slot in day.available_slots]
            doctor.schedule.append(schedule)

        with self.database.transaction() as db:
            if db.query(Doctors.id).filter(Doctors.doctor_id == request.doctor_id).first():
                raise DuplicateDoctor(request.doctor_id)
            try:
                with db.begin_nested():
                    db.add(doctor)
            except IntegrityError:
                raise DuplicateDoctor(request.doctor_id)
        logger.info("Doctor %s added with %d schedule days", request.doctor_id, len(request.schedule))
        return doctor

    def list_doctors(self) -> list[Doctors]:
        with self.database.transaction() as db:
            return db.query(Doctors).order_by(Doctors.name, Doctors.doctor_id).all()
