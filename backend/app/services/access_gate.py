"""
Accès aux fonctionnalités étudiant selon le statut du CAF.
Recalculé à chaque appel, aucun cache.
"""

import uuid

from sqlalchemy.orm import Session

from app.models.caf import STATUS_APPROVED, STATUS_NOT_SUBMITTED
from app.schemas.caf import AccessGateResponse
from app.services import caf_workflow


def access_gate(status: str) -> AccessGateResponse:
    """Stages, campagnes et entretiens blancs ouverts ssi le CAF est approuvé.
    Une demande de modification en cours ne reverrouille rien."""
    unlocked = status == STATUS_APPROVED
    return AccessGateResponse(
        caf_form=True,
        internships=unlocked,
        placements=unlocked,
        mock_interviews=unlocked,
    )


def get_access_gate(db: Session, caf_id: uuid.UUID) -> AccessGateResponse:
    caf = caf_workflow.get_caf(db, caf_id)
    return access_gate(caf.status)


def get_student_access_gate(db: Session, enrollment_no: str) -> AccessGateResponse:
    caf = caf_workflow.get_caf_by_enrollment(db, enrollment_no)
    return access_gate(caf.status if caf is not None else STATUS_NOT_SUBMITTED)
