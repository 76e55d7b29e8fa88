"""
Missed-appointment sweeper.

Every ``interval`` it marks as Missed each active appointment whose time is
more than ``grace`` in the past. It only touches the ledger; the slot of a
missed appointment stays consumed.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from Controller.appointment_ledger import AppointmentLedger
from core.errors import InvalidTransition
from core.timeslots import utc_now
from model.appointment_model import AppointmentStatus

logger = logging.getLogger(__name__)


class MissedAppointmentSweeper:
    def __init__(
        self,
        ledger: AppointmentLedger,
        interval: timedelta = timedelta(minutes=1),
        grace: timedelta = timedelta(minutes=15),
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ledger = ledger
        self.interval = interval
        self.grace = grace
        self.clock = clock

        self.is_running = False
        self._task: Optional[asyncio.Task] = None

    def sweep_once(self) -> int:
        """Run one sweep and return how many appointments were marked Missed."""
        now = self.clock()
        cutoff = now - self.grace
        marked = 0

        for appointment in self.ledger.find_stale(now, self.grace):
            try:
                self.ledger.transition(appointment.id, AppointmentStatus.MISSED, due_by=cutoff)
            except InvalidTransition:
                # rescheduled or already marked since the scan
                logger.debug("Appointment %s changed before it could be marked missed", appointment.id)
                continue
            marked += 1
            logger.info("Marked appointment as missed: %s (id %s)", appointment.patient_name, appointment.id)

        return marked

    async def start(self) -> None:
        if self.is_running:
            logger.warning("Missed-appointment sweeper is already running")
            return

        self.is_running = True
        self._task = asyncio.create_task(self._run())
        logger.info(
            "Missed-appointment sweeper started (every %ss, grace %s)",
            self.interval.total_seconds(), self.grace,
        )

    async def stop(self) -> None:
        self.is_running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Missed-appointment sweeper stopped")

    async def _run(self) -> None:
        while self.is_running:
            try:
                await asyncio.to_thread(self.sweep_once)
            except Exception as e:
                logger.error("Error in missed-appointment sweep: %s", e)
            await asyncio.sleep(self.interval.total_seconds())
