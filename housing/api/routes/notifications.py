from fastapi import APIRouter, Depends, Query
from typing import List

from housing.api.deps import get_repository
from housing.core.auth import CurrentUser, get_current_user
from housing.core.exceptions import NotFoundError
from housing.schemas.notification import NotificationOut
from housing.services.repository import HousingRepository

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationOut])
def list_notifications(
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
    limit: int = Query(100, ge=1, le=500),
):
    return repo.list_notifications(current_user.scope, limit=limit)


@router.get("/unread", response_model=List[NotificationOut])
def list_unread(
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
    limit: int = Query(100, ge=1, le=500),
):
    return repo.list_notifications(current_user.scope, unread_only=True, limit=limit)


@router.post("/{notification_id}/read", response_model=NotificationOut)
def mark_read(
    notification_id: int,
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    notification = repo.get_notification(notification_id)
    if notification is None or not current_user.scope.allows(notification.sector_id):
        raise NotFoundError("notification", notification_id)
    notification.is_read = True
    repo.commit()
    repo.refresh(notification)
    return notification


@router.post("/read-all")
def mark_all_read(
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Mark every unread notification the caller can see as read.
    """
    unread = repo.list_notifications(current_user.scope, unread_only=True, limit=10_000)
    for notification in unread:
        notification.is_read = True
    repo.commit()
    return {"updated": len(unread)}
