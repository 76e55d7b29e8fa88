from fastapi import APIRouter, Depends

from Controller.booking_controller import BookingService
from Controller.doctor_controller import DoctorDirectory
from Controller.slot_calendar import SlotCalendar
from model.doctor_schema import (
    CreateDoctorRequest,
    DayScheduleOut,
    DoctorSummary,
    UpdateSlotsRequest,
    UpdateSlotsResponse,
)
from routers.dependencies import get_booking_service, get_calendar, get_directory

router = APIRouter(tags=["Doctors"])


@router.post("/add-doctor", status_code=201)
def add_doctor(request: CreateDoctorRequest, directory: DoctorDirectory = Depends(get_directory)):
    doctor = directory.add_doctor(request)
    return {"message": "Doctor added successfully", "doctorId": doctor.doctor_id}


@router.get("/doctors", response_model=list[DoctorSummary])
def list_doctors(directory: DoctorDirectory = Depends(get_directory)):
    return directory.list_doctors()


@router.put("/update-slots/{doctor_id}", response_model=UpdateSlotsResponse)
def update_slots(
    doctor_id: str,
    request: UpdateSlotsRequest,
    service: BookingService = Depends(get_booking_service),
):
    applied, dropped = service.update_availability(doctor_id, request.date, request.new_slots)
    return UpdateSlotsResponse(
        message="Slots updated successfully",
        date=request.date,
        available_slots=sorted(applied),
        dropped_slots=sorted(dropped),
    )


@router.get("/available-slots/{doctor_id}", response_model=list[DayScheduleOut])
def available_slots(doctor_id: str, calendar: SlotCalendar = Depends(get_calendar)):
    return calendar.get_schedule(doctor_id)
