import logging
from datetime import date
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from core.errors import DoctorNotFound
from database import Database
from model.doctor_model import Doctors, DaySchedule, TimeSlot

logger = logging.getLogger(__name__)


class SlotCalendar:
    """
    Per-doctor, per-date set of free time slots.

    A slot is free while its ``TimeSlot`` row exists. ``reserve`` deletes the
    row and ``release`` re-inserts it, so concurrent callers on the same slot
    are decided by the database: exactly one delete removes the row.
    """

    def __init__(self, database: Database):
        self.database = database

    # ------------------------
    # Reads
    # ------------------------
    def get_availability(self, doctor_id: str, day: date) -> set[str]:
        with self.database.transaction() as db:
            rows = (
                db.query(TimeSlot.time)
                .join(DaySchedule, TimeSlot.schedule_id == DaySchedule.id)
                .filter(DaySchedule.doctor_id == doctor_id, DaySchedule.date == day)
                .all()
            )
        return {row.time for row in rows}

    def get_schedule(self, doctor_id: str) -> list[DaySchedule]:
        with self.database.transaction() as db:
            self._require_doctor(db, doctor_id)
            return (
                db.query(DaySchedule)
                .options(selectinload(DaySchedule.slots))
                .filter(DaySchedule.doctor_id == doctor_id)
                .order_by(DaySchedule.date)
                .all()
            )

    def ensure_doctor(self, doctor_id: str) -> None:
        with self.database.transaction() as db:
            self._require_doctor(db, doctor_id)

    # ------------------------
    # Mutations
    # ------------------------
    def set_availability(self, doctor_id: str, day: date, slots: Iterable[str]) -> set[str]:
        """Replace (or create) the free slots of one date. No conflict checks here."""
        new_slots = set(slots)
        with self.database.transaction() as db:
            self._require_doctor(db, doctor_id)
            schedule = self._get_or_create_schedule(db, doctor_id, day)
            db.query(TimeSlot).filter(TimeSlot.schedule_id == schedule.id).delete(synchronize_session=False)
            db.add_all(TimeSlot(schedule_id=schedule.id, time=slot) for slot in sorted(new_slots))
        logger.info("Availability for %s on %s set to %s", doctor_id, day, sorted(new_slots))
        return new_slots

    def reserve(self, doctor_id: str, day: date, slot: str) -> bool:
        """Take ``slot`` out of the free set. False if it is not free (or there is no schedule)."""
        with self.database.transaction() as db:
            schedule_id = (
                db.query(DaySchedule.id)
                .filter(DaySchedule.doctor_id == doctor_id, DaySchedule.date == day)
                .scalar()
            )
            if schedule_id is None:
                return False
            removed = (
                db.query(TimeSlot)
                .filter(TimeSlot.schedule_id == schedule_id, TimeSlot.time == slot)
                .delete(synchronize_session=False)
            )
        if removed:
            logger.debug("Reserved %s %s %s", doctor_id, day, slot)
        return removed == 1

    def release(self, doctor_id: str, day: date, slot: str) -> None:
        """Put ``slot`` back into the free set. Releasing a free slot is a no-op."""
        with self.database.transaction() as db:
            schedule = self._get_or_create_schedule(db, doctor_id, day)
            try:
                with db.begin_nested():
                    db.add(TimeSlot(schedule_id=schedule.id, time=slot))
            except IntegrityError:
                logger.debug("Slot %s %s %s already free", doctor_id, day, slot)
                return
        logger.debug("Released %s %s %s", doctor_id, day, slot)

    # ------------------------
    # Helpers
    # ------------------------
    @staticmethod
    def _require_doctor(db: Session, doctor_id: str) -> None:
        exists = db.query(Doctors.id).filter(Doctors.doctor_id == doctor_id).first()
        if exists is None:
            raise DoctorNotFound(doctor_id)

    @staticmethod
    def _get_or_create_schedule(db: Session, doctor_id: str, day: date) -> DaySchedule:
        query = db.query(DaySchedule).filter(DaySchedule.doctor_id == doctor_id, DaySchedule.date == day)
        schedule = query.first()
        if schedule is not None:
            return schedule
        try:
            with db.begin_nested():
                schedule = DaySchedule(doctor_id=doctor_id, date=day)
                db.add(schedule)
        except IntegrityError:
            # created concurrently
            schedule = query.one()
        return schedule
