"""
Travel Story Backend — Account Service
========================================

What:  Registration, login, and current-user lookup.
How:   bcrypt hashing (run in Starlette's thread pool so the event loop keeps
       serving other requests), SQLAlchemy for the users table, TokenService
       for access tokens.
Who:   Called by the /create-account, /login and /get-user route handlers.

Login never tells the caller whether the email exists: an unknown email and
a wrong password both raise the same AuthError. The difference is logged.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from travelstory.config import settings
from travelstory.exceptions import AuthError, ConflictError, DatabaseError, ValidationError
from travelstory.models.user import User
from travelstory.schemas.auth import AuthResponse, UserProfile, UserProfileResponse, UserPublic
from travelstory.services.passwords import hash_password, verify_password
from travelstory.services.token_service import TokenService, token_service

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """
    Business logic for user accounts.

    Responsibilities:
        - create_account(): validate, reject duplicates, hash, persist, issue token
        - login(): verify credentials, issue token
        - get_current_user(): resolve a verified identity to a profile
    """

    def __init__(self, tokens: TokenService, bcrypt_rounds: int = 10):
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds

    async def _find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up user by email: %s", str(e))
            raise DatabaseError(
                message="Could not look up the account. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def create_account(
        self,
        db: AsyncSession,
        full_name: Optional[str],
        email: Optional[str],
        password: Optional[str],
    ) -> AuthResponse:
        """
        Register a new user and sign them in.

        Raises:
            ValidationError: Any field missing or blank (→ 400)
            ConflictError: Email already registered (→ 400)
            DatabaseError: Insert failed for another reason (→ 500)
        """
        if not full_name or not full_name.strip() or not email or not email.strip() or not password:
            raise ValidationError(message="All fields are required")

        email = normalize_email(email)
        if await self._find_by_email(db, email) is not None:
            raise ConflictError(message="User already exists")

        hashed = await run_in_threadpool(hash_password, password, self.bcrypt_rounds)

        user = User(full_name=full_name.strip(), email=email, password=hashed)
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            await db.rollback()
            raise ConflictError(message="User already exists")
        except SQLAlchemyError as e:
            logger.error("Database error creating account: %s", str(e))
            raise DatabaseError(
                message="Could not create the account. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Account created: %s", user.id)
        return AuthResponse(
            user=UserPublic(full_name=user.full_name, email=user.email),
            access_token=self.tokens.issue(user.id),
            message="Registration Successful",
        )

    async def login(
        self,
        db: AsyncSession,
        email: Optional[str],
        password: Optional[str],
    ) -> AuthResponse:
        """
        Authenticate with email and password.

        Raises:
            ValidationError: Email or password missing (→ 400)
            AuthError: Unknown email or wrong password (→ 401)
        """
        if not email or not email.strip() or not password:
            raise ValidationError(message="Email and Password are required")

        user = await self._find_by_email(db, normalize_email(email))
        if user is None:
            logger.info("Login failed: no account for the given email")
            raise AuthError(message=INVALID_CREDENTIALS)

        if not await run_in_threadpool(verify_password, password, user.password):
            logger.info("Login failed: wrong password for user %s", user.id)
            raise AuthError(message=INVALID_CREDENTIALS)

        return AuthResponse(
            user=UserPublic(full_name=user.full_name, email=user.email),
            access_token=self.tokens.issue(user.id),
            message="Login Successful",
        )

    async def get_current_user(self, db: AsyncSession, user_id: uuid.UUID) -> UserProfileResponse:
        """
        Look up the user behind a verified token.

        Raises:
            AuthError: The id no longer resolves to a user (→ 401)
        """
        try:
            user = await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the user. Please try again.",
                context={"user_id": str(user_id)},
            )

        if user is None:
            raise AuthError(message="Unauthorized")

        return UserProfileResponse(user=UserProfile.model_validate(user))


auth_service = AuthService(tokens=token_service, bcrypt_rounds=settings.bcrypt_rounds)
