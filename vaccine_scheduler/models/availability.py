from sqlalchemy import Column, String, Date, ForeignKey
from sqlalchemy.orm import relationship

from ..core.database import Base

class Availability(Base):
    """One caregiver's published slot for one calendar date."""
    __tablename__ = "availabilities"

    caregiver_username = Column(String(255), ForeignKey("caregivers.username"), primary_key=True)
    date = Column(Date, primary_key=True, index=True)

    caregiver = relationship("Caregiver", back_populates="availabilities")

    def __repr__(self):
        return f"<Availability(caregiver='{self.caregiver_username}', date='{self.date}')>"
