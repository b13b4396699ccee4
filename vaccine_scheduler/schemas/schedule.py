from datetime import date
from pydantic import BaseModel, ConfigDict
from typing import List, Union


class ReservationRequest(BaseModel):
    # Kept as text so the YYYY-MM-DD check is the same as the shell's
    date: str
    vaccine: str


class ReservationResponse(BaseModel):
    appointment_id: int
    caregiver_username: str


class AvailabilityRequest(BaseModel):
    date: str


class AvailabilityResponse(BaseModel):
    caregiver_username: str
    date: date


class DosesRequest(BaseModel):
    vaccine: str
    amount: Union[int, str]


class VaccineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    doses: int


class ScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    caregivers: List[str]
    vaccines: List[VaccineResponse]


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    caregiver_username: str
    vaccine_name: str
    patient_username: str
    date: date
