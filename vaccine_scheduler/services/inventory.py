from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from ..core.errors import DuplicateKey, InsufficientStock, InvalidArgument, NotFound
from ..core.validation import MAX_DOSES
from ..models.vaccine import Vaccine

logger = logging.getLogger(__name__)


class VaccineInventory:
    """Per-vaccine dose counters.

    Works inside the caller's transaction: nothing here commits, so a
    decrement can be undone by rolling back the surrounding unit of work.
    """

    def __init__(self, db: Session):
        self.db = db

    def find(self, name: str) -> Optional[Vaccine]:
        """Exact-match lookup; ``None`` when the vaccine is unknown."""
        return self.db.get(Vaccine, name, populate_existing=True)

    def list_all(self) -> List[Vaccine]:
        return list(self.db.scalars(select(Vaccine).order_by(Vaccine.name)))

    def create(self, name: str, initial_doses: int) -> Vaccine:
        if initial_doses < 0:
            raise InvalidArgument("Number of doses must be a non-negative integer!")
        if self.find(name) is not None:
            raise DuplicateKey(f"Vaccine {name} already exists!")

        vaccine = Vaccine(name=name, doses=initial_doses)
        self.db.add(vaccine)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise DuplicateKey(f"Vaccine {name} already exists!") from exc

        logger.info(f"Created vaccine {name} with {initial_doses} doses")
        return vaccine

    def increase(self, name: str, amount: int) -> None:
        if amount <= 0:
            raise InvalidArgument("Number of doses to add must be positive!")

        result = self.db.execute(
            update(Vaccine)
            .where(Vaccine.name == name, Vaccine.doses <= MAX_DOSES - amount)
            .values(doses=Vaccine.doses + amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            if self.find(name) is None:
                raise NotFound(f"{name} is not a known vaccine!")
            raise InvalidArgument(f"Adding {amount} doses would exceed the stock limit of {MAX_DOSES}!")

        logger.info(f"Added {amount} doses of {name}")

    def try_decrement(self, name: str, amount: int = 1) -> None:
        """Take ``amount`` doses only if that many are in stock.

        The check and the write are one conditional UPDATE, so two callers
        racing for the last dose cannot both succeed.
        """
        if amount <= 0:
            raise InvalidArgument("Number of doses to take must be positive!")

        result = self.db.execute(
            update(Vaccine)
            .where(Vaccine.name == name, Vaccine.doses >= amount)
            .values(doses=Vaccine.doses - amount)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InsufficientStock(name)
