from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from passlib.hash import pbkdf2_sha256
from pydantic import BaseModel
import re
import secrets
from enum import Enum

from .config import settings

# Password hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

SALT_SIZE = 16

# 8-20 characters with upper, lower, digit and one special character
STRONG_PASSWORD_PATTERN = re.compile(
    r"^(?=.*[0-9])(?=.*[a-z])(?=.*[A-Z])(?=.*[!@#&()\[\]{}:;',?/*~$^+=<>\-]).{8,20}$"
)

PASSWORD_GUIDELINES = (
    "Password is too weak, please follow the following guidelines when creating password!\n"
    "At least 8 characters.\n"
    "A mixture of both uppercase and lowercase letters.\n"
    "A mixture of letters and numbers.\n"
    "Inclusion of at least one special character, from \"!\", \"@\", \"#\", \"?\"."
)


class UserRole(str, Enum):
    PATIENT = "patient"
    CAREGIVER = "caregiver"


class TokenPayload(BaseModel):
    sub: Optional[str] = None
    role: Optional[UserRole] = None
    exp: Optional[int] = None


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


# Password utilities
def generate_salt() -> bytes:
    """Generate a random per-account salt."""
    return secrets.token_bytes(SALT_SIZE)


def get_password_hash(password: str, salt: bytes) -> str:
    """Hash a password with the given salt."""
    return pbkdf2_sha256.using(salt=salt, rounds=settings.PASSWORD_HASH_ROUNDS).hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def is_strong_password(password: str) -> bool:
    return STRONG_PASSWORD_PATTERN.match(password) is not None


# JWT utilities
def create_access_token(
    username: str,
    role: UserRole,
    expires_delta: Optional[timedelta] = None
) -> Token:
    """Create a bearer token carrying one logged-in identity."""
    expires_delta = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta

    encoded_jwt = jwt.encode(
        {"sub": username, "role": role.value, "exp": expire},
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )
    return Token(access_token=encoded_jwt, expires_in=int(expires_delta.total_seconds()))


def verify_token(token: str) -> Optional[TokenPayload]:
    """Verify and decode JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )

        return TokenPayload(**payload)

    except JWTError:
        return None
