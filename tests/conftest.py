import os

os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test.db")

import pytest

from vaccine_scheduler.core.database import build_engine, build_session_factory, init_db
from vaccine_scheduler.core.security import UserRole
from vaccine_scheduler.models import Caregiver, Patient, Vaccine
from vaccine_scheduler.services import UserSession

STRONG_PASSWORD = "Str0ng!Pass"


@pytest.fixture
def engine(tmp_path):
    """A fresh SQLite database file per test."""
    engine = build_engine(f"sqlite:///{tmp_path / 'scheduler.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def seed(session_factory):
    """Insert rows directly, bypassing the services under test."""
    def _seed(caregivers=(), patients=(), vaccines=None):
        with session_factory.begin() as db:
            for username in caregivers:
                db.add(Caregiver(username=username, password_salt=b"0" * 16, password_hash="x"))
            for username in patients:
                db.add(Patient(username=username, password_salt=b"0" * 16, password_hash="x"))
            for name, doses in (vaccines or {}).items():
                db.add(Vaccine(name=name, doses=doses))
    return _seed


@pytest.fixture
def doses_of(session_factory):
    def _doses_of(name):
        with session_factory() as db:
            vaccine = db.get(Vaccine, name)
            return None if vaccine is None else vaccine.doses
    return _doses_of


@pytest.fixture
def caregiver_session():
    return UserSession(username="cg1", role=UserRole.CAREGIVER)


@pytest.fixture
def patient_session():
    return UserSession(username="pat1", role=UserRole.PATIENT)
