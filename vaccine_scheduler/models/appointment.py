from sqlalchemy import Column, Integer, String, Date, ForeignKey
from sqlalchemy.orm import relationship

from ..core.database import Base

class Appointment(Base):
    __tablename__ = "appointments"

    # Assigned by the appointment ledger, never by the database
    id = Column(Integer, primary_key=True, autoincrement=False)

    caregiver_username = Column(String(255), ForeignKey("caregivers.username"), nullable=False, index=True)
    vaccine_name = Column(String(255), ForeignKey("vaccines.name"), nullable=False)
    patient_username = Column(String(255), ForeignKey("patients.username"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)

    # Relationships
    patient = relationship("Patient", back_populates="appointments")
    caregiver = relationship("Caregiver", back_populates="appointments")

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient='{self.patient_username}', caregiver='{self.caregiver_username}', date='{self.date}')>"
