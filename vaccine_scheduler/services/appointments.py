from datetime import date
from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List
import logging

from ..core.errors import DuplicateKey
from ..models.appointment import Appointment

logger = logging.getLogger(__name__)


class AppointmentLedger:
    """Durable record of confirmed appointments and their ids."""

    def __init__(self, db: Session):
        self.db = db

    def next_id(self) -> int:
        """Return one more than the highest id issued so far.

        Only safe inside the same transaction as the matching ``record``.
        PostgreSQL readers would otherwise see the same maximum, so the
        table is locked there; SQLite transactions already hold the write
        lock.
        """
        if self.db.get_bind().dialect.name == "postgresql":
            self.db.execute(text("LOCK TABLE appointments IN EXCLUSIVE MODE"))

        current_max = self.db.scalar(select(func.coalesce(func.max(Appointment.id), 0)))
        return current_max + 1

    def record(
        self,
        appointment_id: int,
        caregiver_username: str,
        vaccine_name: str,
        patient_username: str,
        appointment_date: date,
    ) -> Appointment:
        if self.db.get(Appointment, appointment_id) is not None:
            raise DuplicateKey(f"Appointment id {appointment_id} is already in use!")

        appointment = Appointment(
            id=appointment_id,
            caregiver_username=caregiver_username,
            vaccine_name=vaccine_name,
            patient_username=patient_username,
            date=appointment_date,
        )
        self.db.add(appointment)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise DuplicateKey(f"Appointment id {appointment_id} is already in use!") from exc

        return appointment

    def list_for_patient(self, patient_username: str) -> List[Appointment]:
        return list(self.db.scalars(
            select(Appointment)
            .where(Appointment.patient_username == patient_username)
            .order_by(Appointment.id)
        ))

    def list_for_caregiver(self, caregiver_username: str) -> List[Appointment]:
        return list(self.db.scalars(
            select(Appointment)
            .where(Appointment.caregiver_username == caregiver_username)
            .order_by(Appointment.id)
        ))
