"""REST endpoints for reading and managing stored notifications."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from agropal.realtime import Identity
from app.api.deps import get_current_user, get_notification_store
from app.config import get_settings
from app.models import (
    InvalidStatusTransition,
    Notification,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from app.schemas import MarkAllReadResult, NotificationList, NotificationStats, Pagination
from app.services.notifications import NotificationStore

router = APIRouter(prefix="/notifications", tags=["notifications"])

settings = get_settings()


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")


@router.get("", response_model=NotificationList)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.notifications_page_size, ge=1, le=settings.notifications_max_page_size),
    status_filter: NotificationStatus | None = Query(None, alias="status"),
    type_filter: NotificationType | None = Query(None, alias="type"),
    priority: NotificationPriority | None = Query(None),
    current_user: Identity = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
) -> NotificationList:
    """Return the caller's unexpired notifications, newest first."""

    result = await store.list_for_user(
        current_user.user_id,
        page=page,
        limit=limit,
        status=status_filter,
        notification_type=type_filter,
        priority=priority,
    )
    unread = await store.count_unread(current_user.user_id)
    return NotificationList(
        notifications=result.items,
        pagination=Pagination(page=result.page, limit=result.limit, total=result.total, pages=result.pages),
        unread_count=unread,
    )


@router.get("/stats", response_model=NotificationStats)
async def notification_stats(
    current_user: Identity = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
) -> NotificationStats:
    summary = await store.stats(current_user.user_id)
    return NotificationStats(
        stats=summary["stats"],
        total_notifications=summary["totalNotifications"],
        unread_notifications=summary["unreadNotifications"],
    )


@router.put("/read-all", response_model=MarkAllReadResult)
async def mark_all_notifications_read(
    current_user: Identity = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
) -> MarkAllReadResult:
    updated = await store.mark_all_read(current_user.user_id)
    return MarkAllReadResult(updated=updated)


@router.put("/{notification_id}/read", response_model=Notification)
async def mark_notification_read(
    notification_id: str,
    current_user: Identity = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
) -> Notification:
    try:
        notification = await store.mark_read(notification_id, user_id=current_user.user_id)
    except InvalidStatusTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from None
    if notification is None:
        raise _not_found()
    return notification


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    response_model=None,
)
async def delete_notification(
    notification_id: str,
    current_user: Identity = Depends(get_current_user),
    store: NotificationStore = Depends(get_notification_store),
) -> Response:
    if not await store.delete(notification_id, user_id=current_user.user_id):
        raise _not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
