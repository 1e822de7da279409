"""
Router pour les campagnes de recrutement.
Admin : création, liste, suppression. Étudiant approuvé : campagnes éligibles.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth import CurrentUser, require_admin, require_approved_student
from app.database import get_db
from app.exceptions import to_http_exception
from app.schemas.placement import PlacementDriveCreate, PlacementDriveResponse
from app.services import placement_service

router = APIRouter(prefix="/api/v1/placements", tags=["Campagnes"])


@router.get("/eligible", response_model=List[PlacementDriveResponse], summary="Campagnes éligibles")
def list_eligible_drives(user: CurrentUser = Depends(require_approved_student), db: Session = Depends(get_db)):
    """Campagnes dont les critères (CGPA, filière, backlogs) sont remplis par l'étudiant."""
    return placement_service.list_eligible_drives(db, user.subject)


@router.post("", response_model=PlacementDriveResponse, status_code=201, summary="Créer une campagne")
def create_drive(
    data: PlacementDriveCreate,
    _: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return placement_service.create_drive(db, data)


@router.get("", response_model=List[PlacementDriveResponse], summary="Lister les campagnes")
def list_drives(_: CurrentUser = Depends(require_admin), db: Session = Depends(get_db)):
    return placement_service.list_drives(db)


@router.delete("/{drive_id}", status_code=204, summary="Supprimer une campagne")
def delete_drive(drive_id: uuid.UUID, _: CurrentUser = Depends(require_admin), db: Session = Depends(get_db)):
    try:
        placement_service.delete_drive(db, drive_id)
    except ValueError as e:
        raise to_http_exception(e)
