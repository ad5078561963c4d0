"""
Travel Story Backend — Request Dependencies and Auth Guard
============================================================

What:  FastAPI dependencies shared by the routers: the service providers and
       the bearer-token guard that protects every story and profile route.
How:   Routers built with `route_class=AuthenticatedRoute` verify the token
       before FastAPI reads the request body, so a caller without a valid
       token gets 401 even when the body is malformed. Handlers then declare
       `identity: Identity = Depends(get_current_identity)`, which returns
       the identity already verified for this request.

The guard is a pure gate: it verifies the token signature and expiry and
injects the user id. It never touches the database; resolving the id to a
user row is GET /get-user's job.
"""

from dataclasses import dataclass
from typing import Any, Callable, Coroutine, Optional
from uuid import UUID

from fastapi import Depends, Request, Response
from fastapi.routing import APIRoute
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from travelstory.exceptions import AuthError
from travelstory.services.auth_service import AuthService, auth_service
from travelstory.services.media_service import MediaService, media_service
from travelstory.services.story_service import StoryService, story_service
from travelstory.services.token_service import TokenService, token_service

# auto_error=False: a missing header must produce our own 401 body
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, as proven by a verified access token."""
    user_id: UUID


# ── Service providers ─────────────────────────────────────────────────────
# Overridable through app.dependency_overrides in tests

def get_token_service() -> TokenService:
    return token_service


def get_auth_service() -> AuthService:
    return auth_service


def get_story_service() -> StoryService:
    return story_service


def get_media_service() -> MediaService:
    return media_service


# ── Auth guard ────────────────────────────────────────────────────────────

def _verify(credentials: Optional[HTTPAuthorizationCredentials], tokens: TokenService) -> Identity:
    if credentials is None or not credentials.credentials:
        raise AuthError(message="Unauthorized")
    return Identity(user_id=tokens.verify(credentials.credentials))


async def authenticate(request: Request) -> Identity:
    """
    Verify the request's bearer token once and remember the result.

    Raises:
        AuthError: No `Authorization: Bearer <token>` header, or the token is
            expired, malformed, or signed with another secret.
    """
    identity: Optional[Identity] = getattr(request.state, "identity", None)
    if identity is None:
        provider = request.app.dependency_overrides.get(get_token_service, get_token_service)
        identity = _verify(await bearer_scheme(request), provider())
        request.state.identity = identity
    return identity


class AuthenticatedRoute(APIRoute):
    """
    APIRoute that rejects unauthenticated requests before body parsing.

    FastAPI decodes and validates the body before it resolves dependencies,
    so a dependency alone would answer a token-less malformed request
    with 400 instead of 401.
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        handler = super().get_route_handler()

        async def guarded_handler(request: Request) -> Response:
            await authenticate(request)
            return await handler(request)

        return guarded_handler


async def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """
    The caller's identity; verified here unless the route already did it.

    Raises:
        AuthError: Missing, expired, malformed, or foreign-signed token.
    """
    identity: Optional[Identity] = getattr(request.state, "identity", None)
    if identity is None:
        identity = _verify(credentials, tokens)
        request.state.identity = identity
    return identity
