"""
Notification routes
"""
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from uuid import UUID
import logging

from ...config import settings
from ...application import NotificationService
from ...infrastructure.push import NotificationPublisher, get_notification_publisher
from ...schemas import (
    CurrentUser,
    MarkAllReadResponse,
    MessageResponse,
    NotificationResponse,
    NotificationsResponse,
)
from ..dependencies import get_current_user, get_notification_service, resolve_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationsResponse)
async def list_notifications(
    limit: int = Query(settings.NOTIFICATION_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Your notifications, newest first"""
    notifications = await service.list_for_user(current_user.id, limit, offset)
    unread_count = await service.unread_count(current_user.id)
    return NotificationsResponse(
        notifications=[NotificationResponse.from_domain(n) for n in notifications],
        unread_count=unread_count,
    )


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    updated = await service.mark_all_read(current_user.id)
    return MarkAllReadResponse(updated=updated)


@router.post("/{notification_id}/read", response_model=MessageResponse)
async def mark_read(
    notification_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    await service.mark_read(notification_id, current_user.id)
    return MessageResponse(message="Notification marked as read")


@router.websocket("/ws")
async def notifications_socket(
    ws: WebSocket,
    publisher: NotificationPublisher = Depends(get_notification_publisher),
):
    """Live push of new notifications for the authenticated user"""
    token = ws.query_params.get("token")
    if not token:
        await ws.close(code=4001)
        return

    try:
        user = await resolve_user(token)
    except HTTPException as e:
        logger.info(f"Rejected notification socket: {e.detail}")
        await ws.close(code=4003)
        return

    if not publisher.redis:
        await ws.close(code=status.WS_1013_TRY_AGAIN_LATER)
        return

    await ws.accept()
    try:
        async for payload in publisher.subscribe(user.id):
            await ws.send_json(payload)
    except WebSocketDisconnect:
        logger.debug(f"Notification socket closed for {user.id}")
