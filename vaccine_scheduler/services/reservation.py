"""Reservation of one dose and one caregiver slot for a patient.

A reservation walks through::

    VALIDATING -> RESERVING_STOCK -> CLAIMING_SLOT -> PERSISTING -> COMMITTED

and can drop to FAILED from any step. Stock, slot and appointment are
written in one database transaction, so a failure after the dose was taken
(no slot, id collision, storage fault) rolls the dose back with everything
else. Stock is reserved before the slot because it is the resource shared
by every date.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from sqlalchemy.orm import sessionmaker
import logging

from ..core.config import settings
from ..core.database import storage_errors
from ..core.errors import (
    DuplicateKey, NoAvailability, NotFound, ReservationFailed, SchedulerError
)
from ..core.validation import parse_date, require_name
from ..models.patient import Patient
from .appointments import AppointmentLedger
from .availability import AvailabilityLedger
from .inventory import VaccineInventory

logger = logging.getLogger(__name__)


class ReservationState(str, Enum):
    VALIDATING = "validating"
    RESERVING_STOCK = "reserving_stock"
    CLAIMING_SLOT = "claiming_slot"
    PERSISTING = "persisting"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(frozen=True)
class Reservation:
    appointment_id: int
    caregiver_username: str


class _Attempt:
    """Tracks the state of one reservation attempt for logging."""

    def __init__(self, patient_username: str, attempt: int):
        self.patient_username = patient_username
        self.attempt = attempt
        self.state = ReservationState.VALIDATING

    def advance(self, state: ReservationState) -> None:
        logger.debug(
            f"Reservation for {self.patient_username} (attempt {self.attempt}): "
            f"{self.state.value} -> {state.value}"
        )
        self.state = state


class ReservationCoordinator:
    def __init__(self, session_factory: sessionmaker, retries: int = None):
        self.session_factory = session_factory
        self.retries = settings.RESERVATION_RETRIES if retries is None else retries

    def reserve(self, patient_username: str, appointment_date, vaccine_name: str) -> Reservation:
        """Book one dose of ``vaccine_name`` with a caregiver free that day."""
        appointment_date = parse_date(appointment_date)
        vaccine_name = require_name(vaccine_name)

        for attempt in range(1, self.retries + 2):
            tracker = _Attempt(patient_username, attempt)
            try:
                reservation = self._attempt(tracker, patient_username, appointment_date, vaccine_name)
            except DuplicateKey:
                tracker.advance(ReservationState.FAILED)
                logger.warning(
                    f"Appointment id collision for {patient_username} on {appointment_date}, "
                    f"attempt {attempt} rolled back"
                )
                continue
            except SchedulerError as exc:
                tracker.advance(ReservationState.FAILED)
                logger.info(f"Reservation for {patient_username} failed: {exc.message}")
                raise

            tracker.advance(ReservationState.COMMITTED)
            logger.info(
                f"Appointment {reservation.appointment_id} booked: {patient_username} with "
                f"{reservation.caregiver_username} on {appointment_date} ({vaccine_name})"
            )
            return reservation

        raise ReservationFailed()

    def _attempt(
        self,
        tracker: _Attempt,
        patient_username: str,
        appointment_date: date,
        vaccine_name: str,
    ) -> Reservation:
        # Leaving the block through any exception rolls back every step
        with storage_errors(), self.session_factory.begin() as db:
            if db.get(Patient, patient_username) is None:
                raise NotFound(f"Patient {patient_username} does not exist!")

            inventory = VaccineInventory(db)
            if inventory.find(vaccine_name) is None:
                raise NotFound(
                    f"{vaccine_name} is not available at this time. Check availability of other vaccines!"
                )

            tracker.advance(ReservationState.RESERVING_STOCK)
            inventory.try_decrement(vaccine_name)

            tracker.advance(ReservationState.CLAIMING_SLOT)
            caregiver_username = AvailabilityLedger(db).claim_one_for_date(appointment_date)
            if caregiver_username is None:
                raise NoAvailability(appointment_date)

            tracker.advance(ReservationState.PERSISTING)
            ledger = AppointmentLedger(db)
            appointment_id = ledger.next_id()
            ledger.record(
                appointment_id,
                caregiver_username,
                vaccine_name,
                patient_username,
                appointment_date,
            )

        return Reservation(appointment_id=appointment_id, caregiver_username=caregiver_username)
