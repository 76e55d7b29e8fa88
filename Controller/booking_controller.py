import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterable

from Controller.appointment_ledger import AppointmentLedger
from Controller.slot_calendar import SlotCalendar
from core.errors import (
    InvalidTransition,
    SlotAlreadyBooked,
    SlotUnavailable,
    StoreFailure,
)
from core.notifications import RescheduleNotice
from core.timeslots import combine, normalize_slot, split_timestamp, to_naive_utc, utc_now
from model.appointment_model import Appointment, AppointmentStatus

logger = logging.getLogger(__name__)


@dataclass
class RescheduleResult:
    appointment: Appointment
    previous_time: datetime
    notice: RescheduleNotice


class BookingService:
    """
    Books and reschedules appointments against the slot calendar.

    The calendar and the ledger commit separately, so every multi-step
    operation undoes its reservation when a later step fails.
    """

    def __init__(
        self,
        calendar: SlotCalendar,
        ledger: AppointmentLedger,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.calendar = calendar
        self.ledger = ledger
        self.clock = clock

    # ------------------------
    # Book
    # ------------------------
    def book(
        self,
        doctor_id: str,
        patient_name: str,
        patient_email: str,
        appointment_time: datetime,
    ) -> Appointment:
        self.calendar.ensure_doctor(doctor_id)

        appointment_time = to_naive_utc(appointment_time)
        day, slot = split_timestamp(appointment_time)

        if not self.calendar.reserve(doctor_id, day, slot):
            raise SlotUnavailable(doctor_id, day, slot)

        try:
            appointment = self.ledger.create(
                patient_name, patient_email, doctor_id, appointment_time, created_at=self.clock()
            )
        except Exception:
            self._compensate(doctor_id, day, slot)
            raise

        logger.info("Booked appointment %s: %s with %s at %s", appointment.id, patient_name, doctor_id, appointment_time)
        return appointment

    # ------------------------
    # Reschedule
    # ------------------------
    def reschedule(self, appointment_id: int, new_date: date, new_time: str) -> RescheduleResult:
        appointment = self.ledger.find_by_id(appointment_id)
        if not appointment.is_active:
            raise InvalidTransition(appointment.status, AppointmentStatus.RESCHEDULED.value)

        doctor_id = appointment.doctor_id
        new_slot = normalize_slot(new_time)
        new_timestamp = combine(new_date, new_slot)
        old_day, old_slot = split_timestamp(appointment.appointment_time)

        if new_timestamp == appointment.appointment_time:
            raise SlotAlreadyBooked(doctor_id, new_timestamp)

        # fast path only, reserve below is what decides concurrent races
        if self.ledger.find_conflict(doctor_id, new_timestamp, exclude_id=appointment.id):
            raise SlotAlreadyBooked(doctor_id, new_timestamp)

        if not self.calendar.reserve(doctor_id, new_date, new_slot):
            raise SlotUnavailable(doctor_id, new_date, new_slot)

        try:
            updated = self.ledger.transition(
                appointment.id, AppointmentStatus.RESCHEDULED, new_timestamp, at=self.clock()
            )
        except Exception:
            self._compensate(doctor_id, new_date, new_slot)
            raise

        try:
            self.calendar.release(doctor_id, old_day, old_slot)
        except StoreFailure:
            logger.error(
                "Slot %s %s could not be released, moving appointment %s back",
                old_day, old_slot, appointment.id,
            )
            self._undo_reschedule(appointment, new_timestamp, new_date, new_slot)
            raise

        logger.info("Rescheduled appointment %s from %s to %s", appointment.id, appointment.appointment_time, new_timestamp)
        notice = RescheduleNotice(
            recipient=updated.patient_email,
            patient_name=updated.patient_name,
            new_date=new_date,
            new_time=new_slot,
        )
        return RescheduleResult(appointment=updated, previous_time=appointment.appointment_time, notice=notice)

    # ------------------------
    # Availability (admin)
    # ------------------------
    def update_availability(self, doctor_id: str, day: date, slots: Iterable[str]) -> tuple[set[str], set[str]]:
        """Replace the day's free slots, leaving out any held by an active appointment.

        Returns (applied, dropped).
        """
        self.calendar.ensure_doctor(doctor_id)
        requested = {normalize_slot(slot) for slot in slots}
        occupied = self.ledger.occupied_slots(doctor_id, day)
        dropped = requested & occupied
        if dropped:
            logger.warning("Not publishing booked slots for %s on %s: %s", doctor_id, day, sorted(dropped))
        applied = self.calendar.set_availability(doctor_id, day, requested - occupied)
        return applied, dropped

    def _compensate(self, doctor_id: str, day: date, slot: str) -> None:
        try:
            self.calendar.release(doctor_id, day, slot)
        except StoreFailure:
            logger.exception("Compensating release failed for %s %s %s", doctor_id, day, slot)
        else:
            logger.warning("Released reservation %s %s %s after a failed step", doctor_id, day, slot)

    def _undo_reschedule(self, previous: Appointment, moved_to: datetime, day: date, slot: str) -> None:
        # the new slot stays reserved whenever the appointment still sits on it
        try:
            undone = self.ledger.undo_reschedule(previous, moved_to)
        except StoreFailure:
            logger.exception("Could not move appointment %s back to %s", previous.id, previous.appointment_time)
            return
        if not undone:
            logger.warning("Appointment %s changed after its reschedule, leaving it at %s", previous.id, moved_to)
            return
        self._compensate(previous.doctor_id, day, slot)
