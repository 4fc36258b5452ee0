"""Presence lookups for the authenticated caller."""

from fastapi import APIRouter, Depends

from agropal.realtime import Identity, RealtimeHub
from app.api.deps import get_current_user, get_realtime_hub
from app.schemas import RealtimeStatus

router = APIRouter(prefix="/realtime", tags=["realtime"])


@router.get("/status", response_model=RealtimeStatus)
async def realtime_status(
    current_user: Identity = Depends(get_current_user),
    hub: RealtimeHub = Depends(get_realtime_hub),
) -> RealtimeStatus:
    return RealtimeStatus(
        online=hub.delivery.is_user_online(current_user.user_id),
        connected_users=hub.delivery.get_connected_users_count(),
    )
