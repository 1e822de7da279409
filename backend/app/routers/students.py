"""
Router admin pour les étudiants : filtrage et export Excel.
"""

from datetime import datetime
from typing import Annotated, List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.auth import CurrentUser, require_admin
from app.database import get_db
from app.schemas.student import StudentFilter, StudentProjection
from app.services import student_service

router = APIRouter(prefix="/api/v1/students", tags=["Étudiants"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.get("", response_model=List[StudentProjection], summary="Filtrer les étudiants")
def filter_students(
    criteria: Annotated[StudentFilter, Query()],
    _: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Critères optionnels combinés par ET : enrollment_no, department, min_cgpa, name,
    min_tenth_percentage, min_twelfth_percentage, max_backlogs, status.
    """
    return student_service.filter_students(db, criteria)


@router.get("/export", summary="Exporter les étudiants filtrés en Excel")
def export_students(
    criteria: Annotated[StudentFilter, Query()],
    _: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Même filtre que GET /students, au format .xlsx."""
    content = student_service.export_students_xlsx(db, criteria)
    filename = f"students_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    return StreamingResponse(
        iter([content]),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
