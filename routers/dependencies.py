from fastapi import Request

from Controller.appointment_ledger import AppointmentLedger
from Controller.booking_controller import BookingService
from Controller.doctor_controller import DoctorDirectory
from Controller.slot_calendar import SlotCalendar
from core.notifications import Notifier


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service


def get_calendar(request: Request) -> SlotCalendar:
    return request.app.state.calendar


def get_ledger(request: Request) -> AppointmentLedger:
    return request.app.state.ledger


def get_directory(request: Request) -> DoctorDirectory:
    return request.app.state.directory


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier
