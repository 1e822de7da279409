"""
Router pour les stages suivis par les étudiants (ajout uniquement).
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth import CurrentUser, require_admin, require_approved_student
from app.database import get_db
from app.schemas.internship import InternshipCreate, InternshipResponse
from app.services import internship_service

router = APIRouter(prefix="/api/v1/internships", tags=["Stages"])


@router.get("/me", response_model=List[InternshipResponse], summary="Mes stages")
def list_my_internships(user: CurrentUser = Depends(require_approved_student), db: Session = Depends(get_db)):
    return internship_service.list_internships(db, user.subject)


@router.post("/me", response_model=InternshipResponse, status_code=201, summary="Déclarer un stage")
def add_internship(
    data: InternshipCreate,
    user: CurrentUser = Depends(require_approved_student),
    db: Session = Depends(get_db),
):
    """Ajoute un stage (entreprise, type, durée, rémunération, PPO). Non modifiable ensuite."""
    return internship_service.add_internship(db, user.subject, data)


@router.get("/{enrollment_no}", response_model=List[InternshipResponse], summary="Stages d'un étudiant")
def list_student_internships(
    enrollment_no: str,
    _: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return internship_service.list_internships(db, enrollment_no.upper())
