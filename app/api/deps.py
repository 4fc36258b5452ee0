"""FastAPI dependencies for the API layer."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from agropal.realtime import AuthenticationError, Identity, RealtimeHub
from app.services.notifications import NotificationStore

bearer_scheme = HTTPBearer(auto_error=False)


def get_realtime_hub(request: Request) -> RealtimeHub:
    return request.app.state.realtime


def get_notification_store(hub: RealtimeHub = Depends(get_realtime_hub)) -> NotificationStore:
    return hub.store


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    hub: RealtimeHub = Depends(get_realtime_hub),
) -> Identity:
    """Resolve the caller from the bearer token or raise an HTTP 401 error."""

    token = credentials.credentials if credentials is not None else None
    try:
        return await hub.verifier.resolve(token)
    except AuthenticationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
