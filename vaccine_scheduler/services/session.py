from dataclasses import dataclass
from typing import Optional

from ..core.errors import AuthFailure, PermissionDenied
from ..core.security import UserRole


@dataclass(frozen=True)
class UserSession:
    """The single identity bound to one interactive session.

    Created at login, dropped at logout, and passed explicitly into every
    operation that needs to know who is acting.
    """
    username: str
    role: UserRole

    @property
    def is_patient(self) -> bool:
        return self.role == UserRole.PATIENT

    @property
    def is_caregiver(self) -> bool:
        return self.role == UserRole.CAREGIVER


def require_session(session: Optional[UserSession]) -> UserSession:
    if session is None:
        raise AuthFailure("Please login first!")
    return session


def require_patient(session: Optional[UserSession]) -> UserSession:
    if session is None or not session.is_patient:
        raise PermissionDenied("Please login as a patient first!")
    return session


def require_caregiver(session: Optional[UserSession]) -> UserSession:
    if session is None or not session.is_caregiver:
        raise PermissionDenied("Please login as a caregiver first!")
    return session
