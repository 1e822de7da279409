"""
Service métier pour les campagnes de recrutement (placement drives).
"""

import uuid
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from app.models.placement_drive import PlacementDrive
from app.models.student import Student
from app.schemas.placement import EligibilityCriteria, PlacementDriveCreate, PlacementDriveResponse
from app.services import caf_workflow
from app.services.eligibility import eligible_drives

logger = logging.getLogger(__name__)


def create_drive(db: Session, data: PlacementDriveCreate) -> PlacementDriveResponse:
    drive = PlacementDrive(
        id=uuid.uuid4(),
        company_name=data.company_name,
        location=data.location,
        job_description=data.job_description,
        drive_date=data.drive_date,
        min_cgpa=data.eligibility_criteria.min_cgpa,
        allowed_branches=data.eligibility_criteria.allowed_branches,
        max_backlogs=data.eligibility_criteria.max_backlogs,
    )
    db.add(drive)
    db.commit()
    db.refresh(drive)

    logger.info("Campagne créée : %s (%s)", drive.company_name, drive.id)
    return _to_response(drive)


def _all_drives(db: Session) -> List[PlacementDrive]:
    return db.execute(
        select(PlacementDrive).order_by(PlacementDrive.drive_date.desc().nulls_last(), PlacementDrive.company_name)
    ).scalars().all()


def list_drives(db: Session) -> List[PlacementDriveResponse]:
    """Toutes les campagnes, de la plus récente à la plus ancienne."""
    return [_to_response(d) for d in _all_drives(db)]


def list_eligible_drives(db: Session, enrollment_no: str) -> List[PlacementDriveResponse]:
    """
    Campagnes visibles par l'étudiant : filière depuis la fiche étudiant,
    CGPA et backlogs depuis le CAF approuvé.
    """
    student = db.get(Student, enrollment_no)
    caf = caf_workflow.get_caf_by_enrollment(db, enrollment_no)
    if student is None or caf is None:
        return []

    drives = eligible_drives(student, caf, _all_drives(db))
    return [_to_response(d) for d in drives]


def delete_drive(db: Session, drive_id: uuid.UUID) -> None:
    drive = db.get(PlacementDrive, drive_id)
    if drive is None:
        raise NotFoundError("Campagne introuvable.")
    db.delete(drive)
    db.commit()
    logger.info("Campagne supprimée : %s", drive_id)


def _to_response(drive: PlacementDrive) -> PlacementDriveResponse:
    return PlacementDriveResponse(
        id=drive.id,
        company_name=drive.company_name,
        location=drive.location,
        job_description=drive.job_description,
        drive_date=drive.drive_date,
        eligibility_criteria=EligibilityCriteria(
            min_cgpa=drive.min_cgpa,
            allowed_branches=list(drive.allowed_branches),
            max_backlogs=drive.max_backlogs,
        ),
        created_at=drive.created_at,
    )
