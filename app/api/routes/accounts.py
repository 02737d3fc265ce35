from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_account_service
from app.schemas.account import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse
from app.services.account_service import AccountService

router = APIRouter(tags=["Accounts"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    service: AccountService = Depends(get_account_service),
) -> RegisterResponse:
    """Register a new account.

    Returns the created account without its password hash.

    Raises:
        ValidationAppError: 400 when fullname, phonenumber, email or password is missing.
        DuplicateEmailError: 409 when the email is already registered.
    """
    account = await service.register(payload)
    return RegisterResponse(user=account)


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    service: AccountService = Depends(get_account_service),
) -> LoginResponse:
    """Check an email/password pair.

    No session or token is issued; the response only echoes public account
    fields.

    Raises:
        InvalidCredentialsError: 400 for an unknown email or a wrong password.
    """
    account = await service.login(payload.email, payload.password)
    return LoginResponse(user=account)
