"""
Service métier du workflow CAF : soumission, revue admin et demandes de
modification après approbation.

Ce module est le seul à modifier CafRecord.status / edit_pending. Les
transitions autorisées sont décrites par la table TRANSITIONS ; tout autre
couple (état, événement) lève InvalidTransitionError.

Concurrence : chaque transition relit le CAF avec SELECT ... FOR UPDATE, et la
colonne version (version_id_col) détecte les écritures concurrentes restantes.
"""

import uuid
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.config import settings
from app.exceptions import (
    ConflictError,
    FieldNotEditableError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from app.models.caf import (
    STATUS_APPROVED,
    STATUS_NOT_SUBMITTED,
    STATUS_PENDING,
    STATUS_REJECTED,
    CafRecord,
)
from app.models.student import Student
from app.models.user import User
from app.schemas.caf import (
    CAF_FORM_FIELDS,
    CafDecision,
    CafEditRequest,
    CafResponse,
    CafSubmission,
    CafSubmitResponse,
    CafTransitionResponse,
)

logger = logging.getLogger(__name__)

EVENT_SUBMIT = "submit"
EVENT_APPROVE = "approve"
EVENT_REJECT = "reject"
EVENT_REQUEST_EDIT = "request_edit"

# État composite : statut approved + demande de modification en attente
STATE_EDIT_PENDING = "approved+edit_pending"

TRANSITIONS = {
    (STATUS_NOT_SUBMITTED, EVENT_SUBMIT): STATUS_PENDING,
    (STATUS_REJECTED, EVENT_SUBMIT): STATUS_PENDING,
    (STATUS_PENDING, EVENT_APPROVE): STATUS_APPROVED,
    (STATUS_PENDING, EVENT_REJECT): STATUS_REJECTED,
    (STATUS_APPROVED, EVENT_REQUEST_EDIT): STATE_EDIT_PENDING,
    (STATE_EDIT_PENDING, EVENT_APPROVE): STATUS_APPROVED,
    (STATE_EDIT_PENDING, EVENT_REJECT): STATUS_APPROVED,
}

EVALUATOR_ROLES = {"ADMIN", "EVALUATOR"}

# Cycles d'études sans 12e classique
NO_TWELFTH_BOARDS = {"Diploma", "Not Applicable"}


def workflow_state(caf: Optional[CafRecord]) -> str:
    """État courant du workflow (absence de CAF = not_submitted)."""
    if caf is None:
        return STATUS_NOT_SUBMITTED
    if caf.status == STATUS_APPROVED and caf.edit_pending:
        return STATE_EDIT_PENDING
    return caf.status


def next_state(state: str, event: str) -> str:
    """Retourne l'état cible ou lève InvalidTransitionError. Jamais de no-op silencieux."""
    target = TRANSITIONS.get((state, event))
    if target is None:
        logger.warning("Transition refusée : %s depuis %s", event, state)
        raise InvalidTransitionError(state, event)
    return target


def _apply_state(caf: CafRecord, target: str) -> None:
    if target == STATE_EDIT_PENDING:
        caf.status = STATUS_APPROVED
        caf.edit_pending = True
    else:
        caf.status = target
        caf.edit_pending = False


# --- Lecture ---

def get_caf_by_enrollment(db: Session, enrollment_no: str, for_update: bool = False) -> Optional[CafRecord]:
    stmt = select(CafRecord).where(CafRecord.enrollment_no == enrollment_no)
    if for_update:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def get_caf(db: Session, caf_id: uuid.UUID, for_update: bool = False) -> CafRecord:
    """Retourne un CAF par son ID ou lève NotFoundError."""
    stmt = select(CafRecord).where(CafRecord.id == caf_id)
    if for_update:
        stmt = stmt.with_for_update()
    caf = db.execute(stmt).scalar_one_or_none()
    if caf is None:
        raise NotFoundError("CAF introuvable.")
    return caf


def caf_form_payload(caf: CafRecord) -> Dict[str, Any]:
    """Champs du formulaire tels que stockés sur le CAF."""
    return {field: getattr(caf, field) for field in CAF_FORM_FIELDS}


def to_response(caf: Optional[CafRecord]) -> CafResponse:
    if caf is None:
        return CafResponse(status=STATUS_NOT_SUBMITTED)
    return CafResponse(
        id=caf.id,
        enrollment_no=caf.enrollment_no,
        status=caf.status,
        edit_pending=bool(caf.edit_pending),
        edit_patch=caf.edit_patch,
        edit_requested_at=caf.edit_requested_at,
        edit_rejection_reason=caf.edit_rejection_reason,
        rejection_reason=caf.rejection_reason,
        evaluator_id=caf.evaluator_id,
        submitted_at=caf.submitted_at,
        reviewed_at=caf.reviewed_at,
        version=caf.version,
        form=caf_form_payload(caf),
    )


def _transition_response(caf: CafRecord) -> CafTransitionResponse:
    return CafTransitionResponse(
        caf_id=caf.id,
        status=caf.status,
        edit_pending=bool(caf.edit_pending),
        version=caf.version,
    )


# --- Validation ---

def _errors_from_pydantic(exc: PydanticValidationError) -> Dict[str, str]:
    errors = {}
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "form"
        errors.setdefault(field, err["msg"])
    return errors


def check_submission(data: CafSubmission) -> None:
    """
    Règles transverses de soumission :
    - déclaration acceptée
    - un relevé académique par cycle terminé (10e toujours, 12e ou diplôme)
    - années de passage dans l'ordre chronologique
    """
    errors: Dict[str, str] = {}

    if not data.declaration:
        errors["declaration"] = "La déclaration doit être acceptée pour soumettre le CAF."

    if data.twelfth_board not in NO_TWELFTH_BOARDS:
        if data.twelfth_percentage is None:
            errors["twelfth_percentage"] = "Le pourcentage de 12e est obligatoire."
        if data.twelfth_year_of_passing is None:
            errors["twelfth_year_of_passing"] = "L'année de passage de 12e est obligatoire."
        elif data.twelfth_year_of_passing <= data.tenth_year_of_passing:
            errors["twelfth_year_of_passing"] = "L'année de 12e doit suivre celle de 10e."

    if data.twelfth_board == "Diploma":
        if data.diploma_percentage is None:
            errors["diploma_percentage"] = "Le pourcentage du diplôme est obligatoire."
        if data.diploma_year_of_passing is not None and data.diploma_year_of_passing <= data.tenth_year_of_passing:
            errors["diploma_year_of_passing"] = "L'année du diplôme doit suivre celle de 10e."

    if errors:
        raise ValidationError(errors)


def _validate_patch(caf: CafRecord, patch: Dict[str, Any]) -> CafSubmission:
    """Valide les valeurs demandées avec les mêmes règles qu'une soumission."""
    payload = caf_form_payload(caf)
    payload["enrollment_no"] = caf.enrollment_no
    payload.update(patch)
    try:
        return CafSubmission.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(_errors_from_pydantic(exc)) from exc


def _check_evaluator(db: Session, evaluator_id: Optional[uuid.UUID]) -> None:
    if evaluator_id is None:
        return
    user = db.get(User, evaluator_id)
    if user is None or user.role not in EVALUATOR_ROLES:
        raise ValidationError({"evaluator_id": "Évaluateur inconnu."})


def _check_version(caf: CafRecord, expected: Optional[int]) -> None:
    if expected is not None and expected != caf.version:
        raise ConflictError("Le CAF a été modifié entre-temps. Rechargez-le et réessayez.")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except (StaleDataError, IntegrityError) as exc:
        db.rollback()
        raise ConflictError("Le CAF a été modifié entre-temps. Rechargez-le et réessayez.") from exc


def _sync_student_snapshot(db: Session, caf: CafRecord) -> None:
    """Recopie l'instantané académique approuvé sur la fiche étudiant."""
    student = db.get(Student, caf.enrollment_no)
    if student is None:
        student = Student(enrollment_no=caf.enrollment_no, full_name=caf.full_name, branch=caf.branch)
        db.add(student)
    student.current_cgpa = caf.current_cgpa
    student.tenth_percentage = caf.tenth_percentage
    student.twelfth_percentage = caf.twelfth_percentage
    student.backlogs_active = caf.backlogs_active
    student.backlogs_history = caf.backlogs_history


# --- Transitions ---

def submit_caf(db: Session, enrollment_no: str, data: CafSubmission) -> CafSubmitResponse:
    """
    Soumet le CAF d'un étudiant (not_submitted ou rejected → pending).

    Étapes :
    1. Valider les règles transverses (ValidationError, aucun changement d'état)
    2. Verrouiller le CAF existant et vérifier la transition
    3. Créer/mettre à jour la fiche étudiant (identité) et le CAF
    """
    if data.enrollment_no != enrollment_no:
        raise ValidationError({"enrollment_no": "Le numéro d'inscription ne correspond pas à l'étudiant connecté."})
    check_submission(data)

    caf = get_caf_by_enrollment(db, data.enrollment_no, for_update=True)
    target = next_state(workflow_state(caf), EVENT_SUBMIT)
    _check_evaluator(db, data.evaluator_id)

    # L'identité n'a encore jamais été approuvée : on la (re)prend du formulaire
    student = db.get(Student, data.enrollment_no)
    if student is None:
        student = Student(enrollment_no=data.enrollment_no, full_name=data.full_name, branch=data.branch)
        db.add(student)
        db.flush()  # la ligne students doit exister avant caf_records (clé étrangère)
    else:
        student.full_name = data.full_name
        student.branch = data.branch

    if caf is None:
        caf = CafRecord(
            id=uuid.uuid4(), enrollment_no=data.enrollment_no, status=STATUS_NOT_SUBMITTED, edit_pending=False
        )
        db.add(caf)

    for field, value in data.model_dump(exclude={"enrollment_no"}).items():
        setattr(caf, field, value)

    _apply_state(caf, target)
    caf.rejection_reason = None
    caf.edit_patch = None
    caf.submitted_at = datetime.now()
    caf.reviewed_at = None

    _commit(db)
    db.refresh(caf)

    logger.info("CAF soumis : %s (%s) → %s", data.enrollment_no, caf.id, caf.status)
    return CafSubmitResponse(
        caf_id=caf.id,
        status=caf.status,
        submitted_at=caf.submitted_at,
        version=caf.version,
    )


def request_edit(
    db: Session,
    enrollment_no: str,
    data: CafEditRequest,
    editable_fields: Optional[Iterable[str]] = None,
) -> CafTransitionResponse:
    """
    Demande de modification d'un CAF approuvé (approved → approved+edit_pending).

    Les champs hors liste blanche sont refusés (FieldNotEditableError) : aucune
    demande n'est enregistrée. Le statut approved n'est pas remis en cause.
    """
    allowlist = set(editable_fields if editable_fields is not None else settings.CAF_EDITABLE_FIELDS)

    caf = get_caf_by_enrollment(db, enrollment_no, for_update=True)
    state = workflow_state(caf)
    target = next_state(state, EVENT_REQUEST_EDIT)
    _check_version(caf, data.version)

    not_editable = set(data.fields) - allowlist
    if not_editable:
        logger.warning("Demande de modification refusée pour %s : %s", enrollment_no, sorted(not_editable))
        raise FieldNotEditableError(not_editable)

    validated = _validate_patch(caf, data.fields)

    _apply_state(caf, target)
    caf.edit_patch = validated.model_dump(mode="json", include=set(data.fields))
    caf.edit_requested_at = datetime.now()
    caf.edit_rejection_reason = None

    _commit(db)
    db.refresh(caf)

    logger.info("Demande de modification CAF %s : %s", caf.id, sorted(data.fields))
    return _transition_response(caf)


def resolve_caf(
    db: Session,
    caf_id: uuid.UUID,
    data: CafDecision,
    expected_state: Optional[str] = None,
) -> CafTransitionResponse:
    """
    Décision admin sur un CAF.

    - pending : approve → approved (instantané étudiant écrit) ; reject → rejected (motif obligatoire)
    - approved+edit_pending : approve → champs fusionnés ; reject → demande écartée

    expected_state : état attendu par l'appelant (notification). S'il a changé
    depuis, la notification est considérée comme déjà traitée.
    """
    caf = get_caf(db, caf_id, for_update=True)
    _check_version(caf, data.version)

    state = workflow_state(caf)
    if expected_state is not None and state != expected_state:
        raise NotFoundError("Notification introuvable ou déjà traitée.")
    target = next_state(state, data.decision)

    if state == STATUS_PENDING:
        if data.decision == EVENT_REJECT and not data.reason:
            raise ValidationError({"reason": "Un motif de refus est obligatoire."})
        _apply_state(caf, target)
        caf.reviewed_at = datetime.now()
        if data.decision == EVENT_APPROVE:
            caf.rejection_reason = None
            _sync_student_snapshot(db, caf)
        else:
            caf.rejection_reason = data.reason
    else:
        if data.decision == EVENT_APPROVE:
            validated = _validate_patch(caf, caf.edit_patch or {})
            for field, value in validated.model_dump(include=set(caf.edit_patch or {})).items():
                setattr(caf, field, value)
            _sync_student_snapshot(db, caf)
        else:
            caf.edit_rejection_reason = data.reason
        _apply_state(caf, target)
        caf.edit_patch = None
        caf.edit_requested_at = None

    _commit(db)
    db.refresh(caf)

    logger.info("CAF %s : %s depuis %s → %s", caf.id, data.decision, state, workflow_state(caf))
    return _transition_response(caf)


def assign_evaluator(db: Session, caf_id: uuid.UUID, evaluator_id: Optional[uuid.UUID]) -> CafResponse:
    """Affecte (ou retire) l'évaluateur d'un CAF. Ne change pas le statut."""
    caf = get_caf(db, caf_id, for_update=True)
    if caf.status == STATUS_NOT_SUBMITTED:
        raise InvalidTransitionError(caf.status, "assign_evaluator")
    _check_evaluator(db, evaluator_id)

    caf.evaluator_id = evaluator_id
    _commit(db)
    db.refresh(caf)

    logger.info("CAF %s : évaluateur %s", caf.id, evaluator_id)
    return to_response(caf)
