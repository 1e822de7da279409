"""
Router pour la file de notifications admin (CAF et demandes de modification en attente).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.auth import CurrentUser, require_admin
from app.database import get_db
from app.exceptions import to_http_exception
from app.schemas.caf import CafDecision, CafTransitionResponse
from app.schemas.notification import VALID_KINDS, NotificationResponse
from app.services import notification_service

router = APIRouter(prefix="/api/v1/notifications", tags=["Notifications"])


@router.get("", response_model=List[NotificationResponse], summary="Lister les notifications")
def list_notifications(
    kind: Optional[str] = None,
    _: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Notifications en attente, de la plus récente à la plus ancienne. Filtre optionnel : new_caf, edit_request."""
    if kind is not None and kind not in VALID_KINDS:
        raise HTTPException(status_code=422, detail=f"Type invalide. Valeurs acceptées : {sorted(VALID_KINDS)}")
    return notification_service.list_notifications(db, kind)


@router.post(
    "/{notification_id}/resolve",
    response_model=CafTransitionResponse,
    summary="Traiter une notification",
)
def resolve_notification(
    notification_id: str,
    data: CafDecision,
    _: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Approuve ou refuse le CAF / la demande de modification liée à la notification.
    404 si la notification a déjà été traitée.
    """
    try:
        return notification_service.resolve_notification(db, notification_id, data)
    except ValueError as e:
        raise to_http_exception(e)
