"""
Travel Story Backend — Access Token Service
=============================================

What:  Issues and verifies signed, time-limited identity tokens.
How:   HS256 JWTs through python-jose. The payload carries exactly two claims:
       `userId` (string UUID) and `exp` (issuance + lifetime).
Who:   AuthService issues tokens at registration and login; the auth guard in
       `travelstory.dependencies` verifies them on every protected request.

The service is constructed with its secret, algorithm and lifetime instead of
reading settings, so tests can sign tokens with a foreign secret or a negative
lifetime and watch verification fail.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from travelstory.config import settings
from travelstory.exceptions import AuthError

logger = logging.getLogger(__name__)

USER_ID_CLAIM = "userId"


class TokenService:
    """Signs and verifies access tokens with a single server-held secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        lifetime: timedelta = timedelta(hours=72),
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.lifetime = lifetime

    def issue(self, user_id: uuid.UUID, now: Optional[datetime] = None) -> str:
        """
        Create a token for `user_id` expiring `lifetime` after `now`.

        Args:
            user_id: Id of the authenticated user
            now: Issuance instant (defaults to the current UTC time)

        Returns:
            Encoded JWT string
        """
        issued_at = now or datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            USER_ID_CLAIM: str(user_id),
            "exp": issued_at + self.lifetime,
        }
        token: str = jwt.encode(payload, self.secret, algorithm=self.algorithm)
        return token

    def verify(self, token: str) -> uuid.UUID:
        """
        Decode `token` and return the user id it carries.

        Raises:
            AuthError: Expired, malformed, wrongly signed, or missing a valid
                `userId` claim.
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            logger.info("Rejected expired access token")
            raise AuthError(message="Token has expired")
        except JWTError as e:
            logger.info("Rejected invalid access token: %s", str(e))
            raise AuthError(message="Invalid token")

        raw_user_id = payload.get(USER_ID_CLAIM)
        if not isinstance(raw_user_id, str):
            raise AuthError(message="Invalid token")
        try:
            return uuid.UUID(raw_user_id)
        except ValueError:
            raise AuthError(message="Invalid token")


token_service = TokenService(
    secret=settings.access_token_secret,
    algorithm=settings.jwt_algorithm,
    lifetime=timedelta(hours=settings.access_token_expire_hours),
)
