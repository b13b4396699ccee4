from sqlalchemy import Column, String, LargeBinary
from sqlalchemy.orm import relationship

from ..core.database import Base

class Caregiver(Base):
    __tablename__ = "caregivers"

    username = Column(String(255), primary_key=True)
    password_salt = Column(LargeBinary(16), nullable=False)
    password_hash = Column(String(255), nullable=False)

    # Relationships
    availabilities = relationship("Availability", back_populates="caregiver")
    appointments = relationship("Appointment", back_populates="caregiver", order_by="Appointment.id")

    def __repr__(self):
        return f"<Caregiver(username='{self.username}')>"
