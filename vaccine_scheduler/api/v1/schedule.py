from fastapi import APIRouter, Depends, status
from typing import List

from ...api.deps import get_current_session, get_reservation_coordinator, get_scheduler_service
from ...schemas.schedule import (
    AppointmentResponse, AvailabilityRequest, AvailabilityResponse, DosesRequest,
    ReservationRequest, ReservationResponse, ScheduleResponse, VaccineResponse
)
from ...services import ReservationCoordinator, SchedulerService, UserSession
from ...services.session import require_patient

router = APIRouter(tags=["Scheduling"])


@router.get("/schedule/{slot_date}", response_model=ScheduleResponse)
def search_caregiver_schedule(
    slot_date: str,
    session: UserSession = Depends(get_current_session),
    scheduler: SchedulerService = Depends(get_scheduler_service),
):
    """Caregivers free on a date, plus every vaccine and its stock."""
    return scheduler.search_schedule(session, slot_date)


@router.post("/reservations", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def reserve(
    request: ReservationRequest,
    session: UserSession = Depends(get_current_session),
    coordinator: ReservationCoordinator = Depends(get_reservation_coordinator),
):
    """Reserve one dose with an available caregiver."""
    patient = require_patient(session)
    reservation = coordinator.reserve(patient.username, request.date, request.vaccine)
    return ReservationResponse(
        appointment_id=reservation.appointment_id,
        caregiver_username=reservation.caregiver_username,
    )


@router.post("/availability", response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
def upload_availability(
    request: AvailabilityRequest,
    session: UserSession = Depends(get_current_session),
    scheduler: SchedulerService = Depends(get_scheduler_service),
):
    slot_date = scheduler.upload_availability(session, request.date)
    return AvailabilityResponse(caregiver_username=session.username, date=slot_date)


@router.post("/vaccines/doses", response_model=VaccineResponse)
def add_doses(
    request: DosesRequest,
    session: UserSession = Depends(get_current_session),
    scheduler: SchedulerService = Depends(get_scheduler_service),
):
    doses = scheduler.add_doses(session, request.vaccine, request.amount)
    return VaccineResponse(name=request.vaccine.strip(), doses=doses)


@router.get("/appointments", response_model=List[AppointmentResponse])
def show_appointments(
    session: UserSession = Depends(get_current_session),
    scheduler: SchedulerService = Depends(get_scheduler_service),
):
    """Appointments of the current patient or caregiver, oldest id first."""
    return scheduler.show_appointments(session)


@router.delete("/appointments/{appointment_id}")
def cancel_appointment(
    appointment_id: int,
    session: UserSession = Depends(get_current_session),
    scheduler: SchedulerService = Depends(get_scheduler_service),
):
    scheduler.cancel(session, appointment_id)
