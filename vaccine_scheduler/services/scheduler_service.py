from dataclasses import dataclass
from datetime import date
from sqlalchemy.orm import sessionmaker
from typing import List, Optional
import logging

from ..core.database import storage_errors
from ..core.errors import DuplicateKey, OperationUnavailable
from ..core.validation import parse_date, parse_dose_amount, require_name
from ..models.appointment import Appointment
from .appointments import AppointmentLedger
from .availability import AvailabilityLedger
from .inventory import VaccineInventory
from .session import UserSession, require_caregiver, require_session

logger = logging.getLogger(__name__)

CANCEL_UNAVAILABLE = "Sorry, operation currently not available."


@dataclass(frozen=True)
class VaccineStock:
    name: str
    doses: int


@dataclass(frozen=True)
class ScheduleView:
    date: date
    caregivers: List[str]
    vaccines: List[VaccineStock]


class SchedulerService:
    """Caregiver uploads, dose top-ups and read-only schedule queries.

    Each call is its own transaction.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def upload_availability(self, session: Optional[UserSession], slot_date) -> date:
        caregiver = require_caregiver(session)
        slot_date = parse_date(slot_date)

        with storage_errors(), self.session_factory.begin() as db:
            AvailabilityLedger(db).publish(caregiver.username, slot_date)
        return slot_date

    def add_doses(self, session: Optional[UserSession], vaccine_name: str, amount) -> int:
        """Create the vaccine or top it up; returns the new dose count."""
        require_caregiver(session)
        vaccine_name = require_name(vaccine_name)
        amount = parse_dose_amount(amount)

        try:
            return self._add_doses(vaccine_name, amount)
        except DuplicateKey:
            # Another session created the vaccine between our lookup and insert
            logger.warning(f"Vaccine {vaccine_name} created concurrently, retrying as top-up")
            return self._add_doses(vaccine_name, amount)

    def _add_doses(self, vaccine_name: str, amount: int) -> int:
        with storage_errors(), self.session_factory.begin() as db:
            inventory = VaccineInventory(db)
            if inventory.find(vaccine_name) is None:
                inventory.create(vaccine_name, amount)
            elif amount > 0:
                inventory.increase(vaccine_name, amount)
            return inventory.find(vaccine_name).doses

    def search_schedule(self, session: Optional[UserSession], slot_date) -> ScheduleView:
        require_session(session)
        slot_date = parse_date(slot_date)

        with storage_errors(), self.session_factory() as db:
            caregivers = AvailabilityLedger(db).list_caregivers_for_date(slot_date)
            vaccines = [
                VaccineStock(name=vaccine.name, doses=vaccine.doses)
                for vaccine in VaccineInventory(db).list_all()
            ]
        return ScheduleView(date=slot_date, caregivers=caregivers, vaccines=vaccines)

    def show_appointments(self, session: Optional[UserSession]) -> List[Appointment]:
        session = require_session(session)

        with storage_errors(), self.session_factory() as db:
            ledger = AppointmentLedger(db)
            if session.is_patient:
                return ledger.list_for_patient(session.username)
            return ledger.list_for_caregiver(session.username)

    def cancel(self, session: Optional[UserSession], appointment_id) -> None:
        raise OperationUnavailable(CANCEL_UNAVAILABLE)
