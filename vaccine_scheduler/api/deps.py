from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import sessionmaker

from ..core.database import get_session_factory, storage_errors
from ..core.errors import AuthFailure
from ..core.security import verify_token
from ..services import (
    AccountService, AccountStore, ReservationCoordinator, SchedulerService, UserSession
)

security = HTTPBearer(auto_error=False)


def get_account_service(session_factory: sessionmaker = Depends(get_session_factory)) -> AccountService:
    return AccountService(session_factory)


def get_scheduler_service(session_factory: sessionmaker = Depends(get_session_factory)) -> SchedulerService:
    return SchedulerService(session_factory)


def get_reservation_coordinator(
    session_factory: sessionmaker = Depends(get_session_factory)
) -> ReservationCoordinator:
    return ReservationCoordinator(session_factory)


def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    session_factory: sessionmaker = Depends(get_session_factory),
) -> UserSession:
    """Turn the bearer token into the session it was issued for."""
    if credentials is None:
        raise AuthFailure("Please login first!")

    token_payload = verify_token(credentials.credentials)
    if not token_payload or not token_payload.sub or not token_payload.role:
        raise AuthFailure("Invalid or expired token")

    with storage_errors(), session_factory() as db:
        account = AccountStore(db).find(token_payload.role, token_payload.sub)
    if account is None:
        raise AuthFailure("User not found")

    return UserSession(username=account.username, role=token_payload.role)
