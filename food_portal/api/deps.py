"""Shared dependencies: bearer auth and the per-request session."""
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from food_portal.errors import AuthError, AuthErrorKind
from food_portal.services.session import Session

security = HTTPBearer(auto_error=False)


def anonymous_session(request: Request) -> Session:
    """A session with nobody signed in, bound to the app's event bus."""
    return Session(events=request.app.state.events, inflight=request.app.state.inflight)


async def get_session(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Session:
    if not credentials:
        raise AuthError(AuthErrorKind.INVALID_CREDENTIALS, "Not authenticated")
    return await Session.restore(
        credentials.credentials,
        events=request.app.state.events,
        inflight=request.app.state.inflight,
    )


# Type aliases for route injection
CurrentSession = Annotated[Session, Depends(get_session)]
AnonymousSession = Annotated[Session, Depends(anonymous_session)]
