"""
ExtraBeam Backend - Authentication Routes
=========================================

What:  Account login/registration under /api/auth and the back-office admin
       login at POST /api/login.
How:   Tokens are stateless HS256 JWTs sent back as
       `Authorization: Bearer <token>`. Logout only acknowledges: the client
       drops its token, nothing is revoked server-side.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from extrabeam.database import get_db_session
from extrabeam.dependencies import get_current_user
from extrabeam.schemas.auth import (
    AdminLoginRequest,
    AuthUser,
    LoginRequest,
    LoginResponse,
    MeResponse,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
)
from extrabeam.schemas.common import ErrorResponse, MessageResponse
from extrabeam.services.auth_service import auth_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])
admin_router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing e-mail or password", "model": ErrorResponse},
        401: {"description": "Wrong credentials", "model": ErrorResponse},
    },
    summary="Log in with e-mail and password",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> LoginResponse:
    return await auth_service.login(db, body.email, body.password)


@router.post(
    "/register",
    status_code=201,
    response_model=RegisterResponse,
    responses={
        400: {"description": "Invalid role or missing entreprise names", "model": ErrorResponse},
        409: {"description": "E-mail already registered", "model": ErrorResponse},
    },
    summary="Create a freelance or client account",
    description=(
        "Freelance accounts also get an entreprise with a unique slug and the "
        "default billing settings; client accounts get their clients row."
    ),
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> RegisterResponse:
    return await auth_service.register(db, body)


@router.get(
    "/me",
    response_model=MeResponse,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Current user",
)
async def me(user: AuthUser = Depends(get_current_user)) -> MeResponse:
    return MeResponse(user=user)


@router.post("/logout", response_model=MessageResponse, summary="Log out")
async def logout() -> MessageResponse:
    return MessageResponse(message="Déconnecté avec succès")


@admin_router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        400: {"description": "Password missing", "model": ErrorResponse},
        401: {"description": "Wrong password", "model": ErrorResponse},
    },
    summary="Back-office login",
    description="Compares the password with ADMIN_SECRET and returns a one-hour admin token.",
)
async def admin_login(body: AdminLoginRequest) -> TokenResponse:
    return auth_service.admin_login(body.password)
