from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from typing import Optional, Union
import logging

from ..core.database import storage_errors
from ..core.errors import AuthFailure, DuplicateKey, InvalidArgument
from ..core.security import (
    PASSWORD_GUIDELINES, UserRole, generate_salt, get_password_hash,
    is_strong_password, verify_password
)
from ..models.caregiver import Caregiver
from ..models.patient import Patient
from .session import UserSession

logger = logging.getLogger(__name__)

Account = Union[Patient, Caregiver]

ACCOUNT_MODELS = {
    UserRole.PATIENT: Patient,
    UserRole.CAREGIVER: Caregiver,
}


class AccountStore:
    """Lookup and persistence of patient and caregiver credentials."""

    def __init__(self, db: Session):
        self.db = db

    def find(self, role: UserRole, username: str) -> Optional[Account]:
        return self.db.get(ACCOUNT_MODELS[role], username)

    def username_taken(self, username: str) -> bool:
        """A username may belong to a patient or a caregiver, never both."""
        return any(self.find(role, username) is not None for role in ACCOUNT_MODELS)

    def create(self, role: UserRole, username: str, salt: bytes, password_hash: str) -> Account:
        account = ACCOUNT_MODELS[role](
            username=username,
            password_salt=salt,
            password_hash=password_hash,
        )
        self.db.add(account)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise DuplicateKey("Username taken, try again!") from exc
        return account


class AccountService:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def register(self, role: UserRole, username: str, password: str) -> Account:
        """Register a new patient or caregiver."""
        if not username or not password:
            raise InvalidArgument("Username and password are required!")

        if not is_strong_password(password):
            raise InvalidArgument(PASSWORD_GUIDELINES)

        salt = generate_salt()
        password_hash = get_password_hash(password, salt)

        with storage_errors(), self.session_factory.begin() as db:
            store = AccountStore(db)
            if store.username_taken(username):
                raise DuplicateKey("Username taken, try again!")
            account = store.create(role, username, salt, password_hash)

        logger.info(f"Created {role.value} account {username}")
        return account

    def authenticate(self, role: UserRole, username: str, password: str) -> UserSession:
        """Check credentials and open a session for that identity."""
        with storage_errors(), self.session_factory() as db:
            account = AccountStore(db).find(role, username)

        if account is None or not verify_password(password, account.password_hash):
            logger.info(f"Failed {role.value} login for {username}")
            raise AuthFailure("Invalid username or password!")

        return UserSession(username=account.username, role=role)
