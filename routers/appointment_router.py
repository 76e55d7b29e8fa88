from fastapi import APIRouter, BackgroundTasks, Depends

from Controller.appointment_ledger import AppointmentLedger
from Controller.booking_controller import BookingService
from core.notifications import Notifier, deliver_notice
from model.appointment_schema import (
    AppointmentOut,
    AppointmentRequest,
    BookResponse,
    RescheduleRequest,
    RescheduleResponse,
)
from routers.dependencies import get_booking_service, get_ledger, get_notifier

router = APIRouter(tags=["Appointments"])


@router.post("/book-appointment", status_code=201, response_model=BookResponse)
def book_appointment(request: AppointmentRequest, service: BookingService = Depends(get_booking_service)):
    appointment = service.book(
        request.doctor_id,
        request.patient_name,
        request.patient_email,
        request.appointment_time,
    )
    return BookResponse(
        message="Appointment booked successfully",
        appointment=AppointmentOut.model_validate(appointment),
    )


@router.get("/appointments", response_model=list[AppointmentOut])
def list_appointments(ledger: AppointmentLedger = Depends(get_ledger)):
    return ledger.list_all()


@router.get("/appointments/{appointment_id}", response_model=AppointmentOut)
def get_appointment(appointment_id: int, ledger: AppointmentLedger = Depends(get_ledger)):
    return ledger.find_by_id(appointment_id)


@router.post("/reschedule", response_model=RescheduleResponse)
def reschedule(
    request: RescheduleRequest,
    background_tasks: BackgroundTasks,
    service: BookingService = Depends(get_booking_service),
    notifier: Notifier = Depends(get_notifier),
):
    result = service.reschedule(request.appointment_id, request.new_slot.date, request.new_slot.time)
    # runs after the response, a delivery failure cannot undo the reschedule
    background_tasks.add_task(deliver_notice, notifier, result.notice)
    return RescheduleResponse(
        message="Appointment rescheduled, patient notification queued",
        appointment=AppointmentOut.model_validate(result.appointment),
        previous_time=result.previous_time,
        notification="queued",
    )
