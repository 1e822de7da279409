"""
Router pour le formulaire de candidature campus (CAF).
Étudiant : soumission, consultation, demande de modification, accès.
Admin    : détail, décision (approbation/refus), évaluateur.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth import CurrentUser, require_admin, require_student
from app.database import get_db
from app.exceptions import to_http_exception
from app.schemas.caf import (
    AccessGateResponse,
    CafDecision,
    CafEditRequest,
    CafResponse,
    CafSubmission,
    CafSubmitResponse,
    CafTransitionResponse,
    EvaluatorAssign,
)
from app.services import access_gate, caf_workflow

router = APIRouter(prefix="/api/v1/caf", tags=["CAF"])


# --- Espace étudiant ---

@router.get("/me", response_model=CafResponse, summary="Consulter son CAF")
def get_my_caf(user: CurrentUser = Depends(require_student), db: Session = Depends(get_db)):
    """Retourne le CAF de l'étudiant connecté, ou le statut not_submitted s'il n'en a pas."""
    return caf_workflow.to_response(caf_workflow.get_caf_by_enrollment(db, user.subject))


@router.post("", response_model=CafSubmitResponse, status_code=201, summary="Soumettre son CAF")
def submit_caf(
    data: CafSubmission,
    user: CurrentUser = Depends(require_student),
    db: Session = Depends(get_db),
):
    """
    Soumet le CAF (premier envoi ou nouvel envoi après refus).

    - La déclaration doit être acceptée
    - 10e obligatoire, 12e ou diplôme selon le parcours
    - Statut résultant : pending (une notification new_caf apparaît côté admin)
    """
    try:
        return caf_workflow.submit_caf(db, user.subject, data)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/me/edit-request", response_model=CafTransitionResponse, summary="Demander une modification")
def request_edit(
    data: CafEditRequest,
    user: CurrentUser = Depends(require_student),
    db: Session = Depends(get_db),
):
    """
    Demande la modification de champs d'un CAF approuvé.
    Seuls les champs de la liste blanche sont acceptés ; le CAF reste approuvé.
    """
    try:
        return caf_workflow.request_edit(db, user.subject, data)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/me/access", response_model=AccessGateResponse, summary="Fonctionnalités accessibles")
def get_my_access(user: CurrentUser = Depends(require_student), db: Session = Depends(get_db)):
    """Stages, campagnes et entretiens blancs sont ouverts ssi le CAF est approuvé."""
    return access_gate.get_student_access_gate(db, user.subject)


# --- Espace admin ---

@router.get("/{caf_id}", response_model=CafResponse, summary="Détail d'un CAF")
def get_caf(caf_id: uuid.UUID, _: CurrentUser = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        return caf_workflow.to_response(caf_workflow.get_caf(db, caf_id))
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/{caf_id}/access", response_model=AccessGateResponse, summary="Accès d'un étudiant")
def get_access(caf_id: uuid.UUID, _: CurrentUser = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        return access_gate.get_access_gate(db, caf_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/{caf_id}/resolve", response_model=CafTransitionResponse, summary="Approuver ou refuser")
def resolve_caf(
    caf_id: uuid.UUID,
    data: CafDecision,
    _: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Décision sur un CAF en attente ou sur une demande de modification.

    - decision : approve | reject
    - reason   : obligatoire pour refuser un CAF en attente
    - version  : optionnelle, refus 409 si le CAF a changé depuis la lecture
    """
    try:
        return caf_workflow.resolve_caf(db, caf_id, data)
    except ValueError as e:
        raise to_http_exception(e)


@router.put("/{caf_id}/evaluator", response_model=CafResponse, summary="Affecter un évaluateur")
def assign_evaluator(
    caf_id: uuid.UUID,
    data: EvaluatorAssign,
    _: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    try:
        return caf_workflow.assign_evaluator(db, caf_id, data.evaluator_id)
    except ValueError as e:
        raise to_http_exception(e)
