from pydantic import BaseModel, ConfigDict, Field

from ..core.security import UserRole


class AccountCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class UserLogin(BaseModel):
    username: str
    password: str
    role: UserRole


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    username: str
    role: UserRole


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: AccountResponse
