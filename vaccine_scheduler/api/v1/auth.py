from fastapi import APIRouter, Depends, status

from ...api.deps import get_account_service, get_current_session
from ...core.security import UserRole, create_access_token
from ...schemas.auth import AccountCreate, AccountResponse, TokenResponse, UserLogin
from ...services import AccountService, UserSession

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/patients", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def register_patient(
    account_data: AccountCreate,
    accounts: AccountService = Depends(get_account_service),
):
    """Register a new patient."""
    account = accounts.register(UserRole.PATIENT, account_data.username, account_data.password)
    return AccountResponse(username=account.username, role=UserRole.PATIENT)


@router.post("/caregivers", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def register_caregiver(
    account_data: AccountCreate,
    accounts: AccountService = Depends(get_account_service),
):
    """Register a new caregiver."""
    account = accounts.register(UserRole.CAREGIVER, account_data.username, account_data.password)
    return AccountResponse(username=account.username, role=UserRole.CAREGIVER)


@router.post("/login", response_model=TokenResponse)
def login(
    login_data: UserLogin,
    accounts: AccountService = Depends(get_account_service),
):
    """Authenticate a patient or caregiver and return a session token."""
    session = accounts.authenticate(login_data.role, login_data.username, login_data.password)
    token = create_access_token(session.username, session.role)

    return TokenResponse(
        access_token=token.access_token,
        token_type=token.token_type,
        expires_in=token.expires_in,
        user=AccountResponse(username=session.username, role=session.role),
    )


@router.get("/me", response_model=AccountResponse)
def get_current_user_info(
    session: UserSession = Depends(get_current_session)
):
    """Get the identity bound to the current token."""
    return AccountResponse(username=session.username, role=session.role)
