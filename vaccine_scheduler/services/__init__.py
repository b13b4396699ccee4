from .account_service import AccountService, AccountStore
from .appointments import AppointmentLedger
from .availability import AvailabilityLedger
from .inventory import VaccineInventory
from .reservation import Reservation, ReservationCoordinator, ReservationState
from .scheduler_service import ScheduleView, SchedulerService, VaccineStock
from .session import UserSession

__all__ = [
    "AccountService",
    "AccountStore",
    "AppointmentLedger",
    "AvailabilityLedger",
    "Reservation",
    "ReservationCoordinator",
    "ReservationState",
    "ScheduleView",
    "SchedulerService",
    "UserSession",
    "VaccineInventory",
    "VaccineStock",
]
