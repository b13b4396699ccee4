"""Concurrent reservations against one shared database file."""

from concurrent.futures import ThreadPoolExecutor
from datetime import date
import threading

import pytest

from vaccine_scheduler.core.errors import InsufficientStock, NoAvailability
from vaccine_scheduler.services import AppointmentLedger, AvailabilityLedger, ReservationCoordinator

MAY_1 = date(2024, 5, 1)


def run_concurrently(coordinator, patients, vaccine="flu"):
    """Fire one reservation per patient at the same moment."""
    barrier = threading.Barrier(len(patients))

    def attempt(patient):
        barrier.wait()
        try:
            return coordinator.reserve(patient, "2024-05-01", vaccine)
        except (InsufficientStock, NoAvailability) as exc:
            return exc

    with ThreadPoolExecutor(max_workers=len(patients)) as pool:
        return list(pool.map(attempt, patients))


@pytest.fixture
def setup_date(session_factory, seed):
    def _setup(caregivers, patients, doses):
        seed(caregivers=caregivers, patients=patients, vaccines={"flu": doses})
        with session_factory.begin() as db:
            for username in caregivers:
                AvailabilityLedger(db).publish(username, MAY_1)
    return _setup


class TestConcurrentReservations:

    def test_stock_limits_successes(self, session_factory, setup_date, doses_of):
        """Test N reservations against K < N doses yield exactly K successes."""
        patients = [f"pat{i}" for i in range(8)]
        setup_date(caregivers=[f"cg{i}" for i in range(8)], patients=patients, doses=3)

        results = run_concurrently(ReservationCoordinator(session_factory), patients)

        successes = [r for r in results if not isinstance(r, Exception)]
        shortages = [r for r in results if isinstance(r, InsufficientStock)]
        assert len(successes) == 3
        assert len(shortages) == 5
        assert doses_of("flu") == 0

        ids = [r.appointment_id for r in successes]
        assert sorted(ids) == [1, 2, 3]
        assert len({r.caregiver_username for r in successes}) == 3

    def test_last_dose_goes_to_one_patient(self, session_factory, setup_date, doses_of):
        setup_date(caregivers=["cg1", "cg2"], patients=["pat1", "pat2"], doses=1)

        results = run_concurrently(ReservationCoordinator(session_factory), ["pat1", "pat2"])

        assert sum(1 for r in results if not isinstance(r, Exception)) == 1
        assert sum(1 for r in results if isinstance(r, InsufficientStock)) == 1
        assert doses_of("flu") == 0

    def test_slots_are_never_shared(self, session_factory, setup_date, doses_of):
        """Test that concurrent reservations for one date split the slots."""
        patients = [f"pat{i}" for i in range(6)]
        setup_date(caregivers=["cg1", "cg2"], patients=patients, doses=10)

        results = run_concurrently(ReservationCoordinator(session_factory), patients)

        successes = [r for r in results if not isinstance(r, Exception)]
        assert sorted(r.caregiver_username for r in successes) == ["cg1", "cg2"]
        assert sum(1 for r in results if isinstance(r, NoAvailability)) == 4
        # Doses taken by the failed attempts were rolled back
        assert doses_of("flu") == 8

        with session_factory() as db:
            assert AvailabilityLedger(db).list_caregivers_for_date(MAY_1) == []
            recorded = [
                appointment.id
                for patient in patients
                for appointment in AppointmentLedger(db).list_for_patient(patient)
            ]
        assert sorted(recorded) == [1, 2]
