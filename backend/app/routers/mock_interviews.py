"""
Router pour les entretiens blancs.
Admin : import des résultats (Excel/CSV). Étudiant approuvé : ses résultats.
"""

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth import CurrentUser, require_admin, require_approved_student
from app.database import get_db
from app.models.mock_interview import MockInterviewResult
from app.schemas.mock_interview import MockInterviewResultResponse, MockResultImportReport
from app.services.mock_result_import import parse_and_import_results

router = APIRouter(prefix="/api/v1/mock-interviews", tags=["Entretiens blancs"])

ALLOWED_EXTENSIONS = (".xlsx", ".csv")
MAX_FILE_SIZE_MB = 5


@router.get("/me", response_model=List[MockInterviewResultResponse], summary="Mes résultats")
def list_my_results(user: CurrentUser = Depends(require_approved_student), db: Session = Depends(get_db)):
    """Résultats de l'étudiant connecté, par numéro de tentative."""
    results = db.execute(
        select(MockInterviewResult)
        .where(MockInterviewResult.enrollment_no == user.subject)
        .order_by(MockInterviewResult.attempt_number)
    ).scalars().all()
    return results


@router.post("/upload", response_model=MockResultImportReport, summary="Importer les résultats")
async def upload_results(
    file: UploadFile = File(...),
    _: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Importe les résultats d'entretiens blancs depuis un fichier Excel (.xlsx) ou CSV.

    Format attendu :
    - Colonnes obligatoires : `enrollment_no`, `gd`, `hr`, `technical`
    - Colonnes optionnelles : `attempt` (défaut 1), `selected`, `rejected_at`
    - Valeurs des tours : yes/no, true/false, 1/0, cleared/not cleared

    Les lignes invalides sont listées dans le rapport sans bloquer l'import.
    """
    filename = file.filename or ""
    if not filename.lower().endswith(ALLOWED_EXTENSIONS):
        raise HTTPException(
            status_code=400,
            detail="Format invalide. Seuls les fichiers .xlsx et .csv sont acceptés.",
        )

    content = await file.read()

    if len(content) > MAX_FILE_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"Fichier trop volumineux. Taille maximale : {MAX_FILE_SIZE_MB} Mo.",
        )

    if not content:
        raise HTTPException(status_code=400, detail="Le fichier est vide.")

    return parse_and_import_results(content, filename, db)
