"""
Travel Story Backend — Account Route Handlers
===============================================

What:  POST /create-account, POST /login, GET /get-user.
How:   Thin handlers: read the body, delegate to AuthService, return its result.
       GET /get-user is the only route here behind the auth guard.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from travelstory.database import get_db_session
from travelstory.dependencies import Identity, get_auth_service, get_current_identity
from travelstory.schemas.auth import (
    AuthResponse,
    CreateAccountRequest,
    LoginRequest,
    UserProfileResponse,
)
from travelstory.schemas.common import ErrorResponse
from travelstory.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Accounts"])


@router.post(
    "/create-account",
    status_code=201,
    response_model=AuthResponse,
    responses={
        400: {"description": "Missing fields or email already registered", "model": ErrorResponse},
    },
    summary="Register a new account",
)
async def create_account(
    body: CreateAccountRequest,
    db: AsyncSession = Depends(get_db_session),
    accounts: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    return await accounts.create_account(
        db=db,
        full_name=body.full_name,
        email=body.email,
        password=body.password,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={
        400: {"description": "Email or password missing", "model": ErrorResponse},
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Exchange email and password for an access token",
)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
    accounts: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    return await accounts.login(db=db, email=body.email, password=body.password)


@router.get(
    "/get-user",
    response_model=UserProfileResponse,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Fetch the caller's own profile",
)
async def get_user(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db_session),
    accounts: AuthService = Depends(get_auth_service),
) -> UserProfileResponse:
    return await accounts.get_current_user(db=db, user_id=identity.user_id)
