from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.config import AppSettings, get_settings
from app.core.security import AUTH_COOKIE_NAME
from app.db.session import get_session
from app.models.users import LoginRequest, LoginResponse, RegisterRequest, RegisterResponse, UserSummary
from app.services.users import AccountService

router = APIRouter(prefix="/auth", tags=["auth"])


def get_account_service(
    session: Session = Depends(get_session),
    settings: AppSettings = Depends(get_settings),
) -> AccountService:
    return AccountService.from_session(session, settings)


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, service: AccountService = Depends(get_account_service)) -> RegisterResponse:
    user = service.register(payload)
    return RegisterResponse(user_id=user.id, data=UserSummary.model_validate(user))


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    response: Response,
    service: AccountService = Depends(get_account_service),
    settings: AppSettings = Depends(get_settings),
) -> LoginResponse:
    result = service.login(payload)
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=result.token,
        max_age=settings.jwt_expire_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        path="/",
    )
    return LoginResponse(token=result.token, data=UserSummary.model_validate(result.user))
