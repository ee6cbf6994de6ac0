import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from odysea.api.schemas import AuthResponse, LoginRequest, RegisterRequest, UserRead, UserResponse
from odysea.core.security import (
    authenticate_user,
    create_access_token,
    get_current_user,
    get_password_hash,
)
from odysea.core.settings import Settings, get_settings
from odysea.core.timing import performance_timer
from odysea.db import crud
from odysea.db.models import User
from odysea.db.session import get_db_session

logger = structlog.get_logger(__name__)

router = APIRouter()


def issue_token(user: User, settings: Settings) -> str:
    return create_access_token({"sub": str(user.id), "email": user.email}, settings)


@router.post("/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid input or email already registered"},
    },
    summary="User registration",
)
async def register(
    request: Request,
    payload: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    """Create an account and sign it in"""
    async with performance_timer("user_registration"):
        if await crud.get_user_by_email(session, payload.email):
            logger.warning("user_registration_duplicate_email", email=payload.email)
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User already exists",
            )

        try:
            user = await crud.create_user(
                session, payload.email, payload.name, get_password_hash(payload.password)
            )
        except IntegrityError:
            # lost a race with a concurrent registration for the same email
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="User already exists",
            )

        logger.info(
            "user_registration_success",
            user_id=str(user.id),
            ip_address=request.client.host if request.client else None,
        )
        return AuthResponse(user=UserRead.model_validate(user), token=issue_token(user, settings))


@router.post("/login",
    response_model=AuthResponse,
    responses={
        401: {"description": "Invalid credentials"},
    },
    summary="User login",
)
async def login(
    request: Request,
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    """Exchange email and password for an access token"""
    async with performance_timer("user_login"):
        user = await authenticate_user(payload.email, payload.password, session)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid credentials",
                headers={"WWW-Authenticate": "Bearer"},
            )

        logger.info(
            "user_login_success",
            user_id=str(user.id),
            ip_address=request.client.host if request.client else None,
        )
        return AuthResponse(user=UserRead.model_validate(user), token=issue_token(user, settings))


@router.get("/me", response_model=UserResponse, summary="Get current user")
async def me(current_user: User = Depends(get_current_user)):
    return UserResponse(user=UserRead.model_validate(current_user))
