"""
Error kinds raised by the scheduling core.

Every failure carries a stable ``kind`` string so callers can tell
"try a different slot" apart from "this appointment no longer exists".
"""


class BookingError(Exception):
    kind = "booking_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(BookingError):
    kind = "not_found"
    status_code = 404


class DoctorNotFound(NotFound):
    def __init__(self, doctor_id: str):
        super().__init__(f"Doctor not found: {doctor_id}")
        self.doctor_id = doctor_id


class AppointmentNotFound(NotFound):
    def __init__(self, appointment_id: int):
        super().__init__(f"Appointment not found: {appointment_id}")
        self.appointment_id = appointment_id


class SlotUnavailable(BookingError):
    kind = "slot_unavailable"
    status_code = 400

    def __init__(self, doctor_id: str, day, slot: str):
        super().__init__(f"Slot not available: {doctor_id} {day} {slot}")


class SlotAlreadyBooked(BookingError):
    kind = "slot_already_booked"
    status_code = 409

    def __init__(self, doctor_id: str, when):
        super().__init__(f"Slot already booked: {doctor_id} {when:%Y-%m-%d %H:%M}")


class InvalidTransition(BookingError):
    kind = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot move appointment from {current} to {requested}")
        self.current = current
        self.requested = requested


class DuplicateDoctor(BookingError):
    kind = "duplicate_doctor"
    status_code = 409

    def __init__(self, doctor_id: str):
        super().__init__(f"Doctor already exists: {doctor_id}")


class StoreFailure(BookingError):
    """Underlying persistence error. Transient; never retried by the core."""

    kind = "store_failure"
    status_code = 503
