from datetime import date
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..core.errors import DuplicateKey
from ..models.availability import Availability

logger = logging.getLogger(__name__)

# Extra attempts when another session deletes the chosen slot first
CLAIM_RETRIES = 1


class AvailabilityLedger:
    """Caregiver slots, keyed by (caregiver, date).

    Slots are handed out lowest caregiver username first.
    """

    def __init__(self, db: Session):
        self.db = db

    def publish(self, caregiver_username: str, slot_date: date) -> Availability:
        existing = self.db.get(Availability, (caregiver_username, slot_date))
        if existing is not None:
            raise DuplicateKey(f"Availability for {slot_date} was already uploaded!")

        slot = Availability(caregiver_username=caregiver_username, date=slot_date)
        self.db.add(slot)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise DuplicateKey(f"Availability for {slot_date} was already uploaded!") from exc

        logger.info(f"Caregiver {caregiver_username} published availability for {slot_date}")
        return slot

    def list_caregivers_for_date(self, slot_date: date) -> List[str]:
        return list(self.db.scalars(
            select(Availability.caregiver_username)
            .where(Availability.date == slot_date)
            .order_by(Availability.caregiver_username)
        ))

    def claim_one_for_date(self, slot_date: date) -> Optional[str]:
        """Remove one slot for ``slot_date`` and return its caregiver.

        Returns ``None`` when no slot is left. The candidate row is locked
        where the backend supports it; the delete's row count is the final
        word on whether this session won the slot.
        """
        skipped: List[str] = []

        for _ in range(CLAIM_RETRIES + 1):
            query = (
                select(Availability.caregiver_username)
                .where(Availability.date == slot_date)
                .order_by(Availability.caregiver_username)
                .limit(1)
                .with_for_update(skip_locked=True)
            )
            if skipped:
                query = query.where(Availability.caregiver_username.not_in(skipped))

            caregiver_username = self.db.scalar(query)
            if caregiver_username is None:
                return None

            result = self.db.execute(
                delete(Availability)
                .where(
                    Availability.caregiver_username == caregiver_username,
                    Availability.date == slot_date,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                logger.debug(f"Claimed slot {caregiver_username}/{slot_date}")
                return caregiver_username

            logger.warning(f"Slot {caregiver_username}/{slot_date} was claimed concurrently")
            skipped.append(caregiver_username)

        return None
