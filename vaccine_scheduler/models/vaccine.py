from sqlalchemy import Column, Integer, String, CheckConstraint

from ..core.database import Base

class Vaccine(Base):
    __tablename__ = "vaccines"
    __table_args__ = (
        CheckConstraint("doses >= 0", name="ck_vaccines_doses_non_negative"),
    )

    name = Column(String(255), primary_key=True)
    doses = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<Vaccine(name='{self.name}', doses={self.doses})>"
