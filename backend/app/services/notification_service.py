"""
File de notifications admin.

Vue calculée sur les CAF : aucune table dédiée. Une notification existe tant
que le CAF est pending (new_caf) ou porte une demande de modification
(edit_request). Sa résolution délègue au workflow, dans la même transaction.
"""

import uuid
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from app.models.caf import STATUS_PENDING, CafRecord
from app.schemas.caf import CafDecision, CafTransitionResponse
from app.schemas.notification import KIND_EDIT_REQUEST, KIND_NEW_CAF, NotificationResponse
from app.services import caf_workflow

logger = logging.getLogger(__name__)

# État workflow attendu pour chaque type de notification
KIND_STATES = {
    KIND_NEW_CAF: STATUS_PENDING,
    KIND_EDIT_REQUEST: caf_workflow.STATE_EDIT_PENDING,
}


def notification_id(kind: str, caf_id: uuid.UUID) -> str:
    return f"{kind}:{caf_id}"


def parse_notification_id(value: str) -> Tuple[str, uuid.UUID]:
    """Décompose "<kind>:<caf_id>". Lève NotFoundError si l'ID est mal formé."""
    kind, _, raw_id = value.partition(":")
    if kind not in KIND_STATES:
        raise NotFoundError("Notification introuvable.")
    try:
        return kind, uuid.UUID(raw_id)
    except ValueError:
        raise NotFoundError("Notification introuvable.")


def to_notification(caf: CafRecord) -> Optional[NotificationResponse]:
    """Projette un CAF en notification, ou None s'il n'attend aucune décision."""
    state = caf_workflow.workflow_state(caf)
    if state == STATUS_PENDING:
        return NotificationResponse(
            id=notification_id(KIND_NEW_CAF, caf.id),
            kind=KIND_NEW_CAF,
            caf_id=caf.id,
            enrollment_no=caf.enrollment_no,
            student_name=caf.full_name,
            timestamp=caf.submitted_at,
            details={
                "enrollment_no": caf.enrollment_no,
                "branch": caf.branch,
                "current_cgpa": caf.current_cgpa,
            },
        )
    if state == caf_workflow.STATE_EDIT_PENDING:
        return NotificationResponse(
            id=notification_id(KIND_EDIT_REQUEST, caf.id),
            kind=KIND_EDIT_REQUEST,
            caf_id=caf.id,
            enrollment_no=caf.enrollment_no,
            student_name=caf.full_name,
            timestamp=caf.edit_requested_at,
            details={"fields": caf.edit_patch or {}},
        )
    return None


def list_notifications(db: Session, kind: Optional[str] = None) -> List[NotificationResponse]:
    """Retourne les notifications en attente, de la plus récente à la plus ancienne."""
    if kind == KIND_NEW_CAF:
        condition = CafRecord.status == STATUS_PENDING
    elif kind == KIND_EDIT_REQUEST:
        condition = CafRecord.edit_pending.is_(True)
    else:
        condition = or_(CafRecord.status == STATUS_PENDING, CafRecord.edit_pending.is_(True))

    cafs = db.execute(select(CafRecord).where(condition)).scalars().all()

    notifications = []
    for caf in cafs:
        notification = to_notification(caf)
        if notification is None or (kind is not None and notification.kind != kind):
            continue
        notifications.append(notification)

    notifications.sort(key=lambda n: n.timestamp or datetime.min, reverse=True)
    return notifications


def resolve_notification(db: Session, value: str, data: CafDecision) -> CafTransitionResponse:
    """
    Traite une notification : approuve ou refuse le CAF / la demande associée.
    La notification disparaît d'elle-même puisque l'état du CAF change.
    """
    kind, caf_id = parse_notification_id(value)
    result = caf_workflow.resolve_caf(db, caf_id, data, expected_state=KIND_STATES[kind])
    logger.info("Notification %s traitée (%s)", value, data.decision)
    return result
