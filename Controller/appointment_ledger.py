import logging
from datetime import date, datetime, timedelta
from typing import Optional

from core.errors import AppointmentNotFound, InvalidTransition
from core.timeslots import SLOT_FORMAT
from database import Database
from model.appointment_model import (
    ACTIVE_STATUSES,
    ALLOWED_SOURCES,
    Appointment,
    AppointmentStatus,
)

logger = logging.getLogger(__name__)


class AppointmentLedger:
    """Appointment records and their status lifecycle. Records are never deleted."""

    def __init__(self, database: Database):
        self.database = database

    def create(
        self,
        patient_name: str,
        patient_email: str,
        doctor_id: str,
        appointment_time: datetime,
        created_at: datetime,
    ) -> Appointment:
        appointment = Appointment(
            patient_name=patient_name,
            patient_email=patient_email,
            doctor_id=doctor_id,
            appointment_time=appointment_time,
            status=AppointmentStatus.SCHEDULED.value,
            created_at=created_at,
        )
        with self.database.transaction() as db:
            db.add(appointment)
            db.flush()
            db.refresh(appointment)
        return appointment

    def find_by_id(self, appointment_id: int) -> Appointment:
        with self.database.transaction() as db:
            appointment = db.get(Appointment, appointment_id)
        if appointment is None:
            raise AppointmentNotFound(appointment_id)
        return appointment

    def list_all(self) -> list[Appointment]:
        with self.database.transaction() as db:
            return db.query(Appointment).order_by(Appointment.id).all()

    def transition(
        self,
        appointment_id: int,
        new_status: AppointmentStatus,
        new_time: Optional[datetime] = None,
        *,
        at: Optional[datetime] = None,
        due_by: Optional[datetime] = None,
    ) -> Appointment:
        """
        Move an appointment to ``new_status`` (and optionally ``new_time``).

        Done as one conditional UPDATE keyed by id and current status, so two
        concurrent transitions can never both apply to the same source state.
        ``due_by`` additionally requires ``appointment_time <= due_by``.
        """
        new_status = AppointmentStatus(new_status)
        sources = ALLOWED_SOURCES.get(new_status)

        with self.database.transaction() as db:
            if not sources:
                current = db.get(Appointment, appointment_id)
                if current is None:
                    raise AppointmentNotFound(appointment_id)
                raise InvalidTransition(current.status, new_status.value)

            values = {Appointment.status: new_status.value}
            if new_time is not None:
                values[Appointment.appointment_time] = new_time
            if new_status is AppointmentStatus.RESCHEDULED and at is not None:
                values[Appointment.rescheduled_at] = at

            query = db.query(Appointment).filter(
                Appointment.id == appointment_id,
                Appointment.status.in_(sources),
            )
            if due_by is not None:
                query = query.filter(Appointment.appointment_time <= due_by)
            updated = query.update(values, synchronize_session=False)

            current = db.get(Appointment, appointment_id)
            if current is None:
                raise AppointmentNotFound(appointment_id)
            if not updated:
                raise InvalidTransition(current.status, new_status.value)
        return current

    def undo_reschedule(self, previous: Appointment, moved_to: datetime) -> bool:
        """
        Put ``previous`` (a snapshot taken before a reschedule) back in place.

        Only applies while the record is still Rescheduled at ``moved_to``;
        returns False when something else has changed it since.
        """
        with self.database.transaction() as db:
            updated = (
                db.query(Appointment)
                .filter(
                    Appointment.id == previous.id,
                    Appointment.status == AppointmentStatus.RESCHEDULED.value,
                    Appointment.appointment_time == moved_to,
                )
                .update(
                    {
                        Appointment.status: previous.status,
                        Appointment.appointment_time: previous.appointment_time,
                        Appointment.rescheduled_at: previous.rescheduled_at,
                    },
                    synchronize_session=False,
                )
            )
        return bool(updated)

    def find_stale(self, now: datetime, grace: timedelta) -> list[Appointment]:
        cutoff = now - grace
        with self.database.transaction() as db:
            return (
                db.query(Appointment)
                .filter(
                    Appointment.status.in_(ACTIVE_STATUSES),
                    Appointment.appointment_time <= cutoff,
                )
                .order_by(Appointment.appointment_time)
                .all()
            )

    def find_conflict(
        self, doctor_id: str, when: datetime, exclude_id: Optional[int] = None
    ) -> Optional[Appointment]:
        """Another active appointment of ``doctor_id`` at exactly ``when``."""
        with self.database.transaction() as db:
            query = db.query(Appointment).filter(
                Appointment.doctor_id == doctor_id,
                Appointment.appointment_time == when,
                Appointment.status.in_(ACTIVE_STATUSES),
            )
            if exclude_id is not None:
                query = query.filter(Appointment.id != exclude_id)
            return query.first()

    def occupied_slots(self, doctor_id: str, day: date) -> set[str]:
        start = datetime.combine(day, datetime.min.time())
        with self.database.transaction() as db:
            rows = (
                db.query(Appointment.appointment_time)
                .filter(
                    Appointment.doctor_id == doctor_id,
                    Appointment.status.in_(ACTIVE_STATUSES),
                    Appointment.appointment_time >= start,
                    Appointment.appointment_time < start + timedelta(days=1),
                )
                .all()
            )
        return {row.appointment_time.strftime(SLOT_FORMAT) for row in rows}
