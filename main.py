import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from Controller.appointment_ledger import AppointmentLedger
from Controller.booking_controller import BookingService
from Controller.doctor_controller import DoctorDirectory
from Controller.missed_sweeper import MissedAppointmentSweeper
from Controller.slot_calendar import SlotCalendar
from core.config import Settings
from core.exception_handlers import register_exception_handlers
from core.logging_config import setup_logging
from core.notifications import Notifier, build_notifier
from database import Database
from routers import appointment_router
from routers import doctor_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, notifier: Optional[Notifier] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(settings.database_url, echo=settings.sql_echo)
        database.create_all()

        calendar = SlotCalendar(database)
        ledger = AppointmentLedger(database)
        sweeper = MissedAppointmentSweeper(
            ledger, interval=settings.sweep_interval, grace=settings.missed_grace
        )

        app.state.settings = settings
        app.state.database = database
        app.state.calendar = calendar
        app.state.ledger = ledger
        app.state.directory = DoctorDirectory(database)
        app.state.booking_service = BookingService(calendar, ledger)
        app.state.notifier = notifier or build_notifier(settings)
        app.state.sweeper = sweeper

        if settings.sweep_enabled:
            await sweeper.start()
        logger.info("Appointment service started")
        try:
            yield
        finally:
            await sweeper.stop()
            database.dispose()
            logger.info("Appointment service stopped")

    setup_logging(settings.log_level)
    app = FastAPI(title="Doctor Appointment Scheduling", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/")
    def read_root():
        return {"message": "Appointment service is running"}

    # doctors & availability
    app.include_router(doctor_router.router)

    # appointments
    app.include_router(appointment_router.router)

    return app


app = create_app()


# uvicorn main:app --reload
