"""
Service admin pour les étudiants : filtrage multi-critères et export Excel.
"""

import io
import logging
from typing import List

from openpyxl import Workbook
from openpyxl.styles import Font
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.caf import STATUS_NOT_SUBMITTED, CafRecord
from app.models.student import Student
from app.schemas.student import StudentFilter, StudentProjection
from app.services.eligibility import student_filter_conditions

logger = logging.getLogger(__name__)

EXPORT_HEADERS = [
    "Enrollment No",
    "Name",
    "Department",
    "CGPA",
    "10th %",
    "12th %",
    "Active Backlogs",
    "CAF Status",
]
EXPORT_COLUMN_WIDTHS = [18, 30, 12, 8, 8, 8, 16, 14]


def filter_students(db: Session, criteria: StudentFilter) -> List[StudentProjection]:
    """
    Retourne les étudiants correspondant à tous les critères fournis,
    triés par numéro d'inscription. Les étudiants sans CAF ont le statut not_submitted.
    """
    rows = db.execute(
        select(Student, CafRecord.status)
        .outerjoin(CafRecord, CafRecord.enrollment_no == Student.enrollment_no)
        .where(*student_filter_conditions(criteria))
        .order_by(Student.enrollment_no)
    ).all()

    results = [
        StudentProjection(
            enrollment_no=student.enrollment_no,
            full_name=student.full_name,
            branch=student.branch,
            current_cgpa=student.current_cgpa,
            tenth_percentage=student.tenth_percentage,
            twelfth_percentage=student.twelfth_percentage,
            backlogs_active=student.backlogs_active,
            caf_status=status or STATUS_NOT_SUBMITTED,
        )
        for student, status in rows
    ]
    logger.info("Filtre étudiants %s : %d résultat(s)", criteria.model_dump(exclude_none=True), len(results))
    return results


def export_students_xlsx(db: Session, criteria: StudentFilter) -> bytes:
    """Génère le classeur Excel (.xlsx) des étudiants filtrés."""
    students = filter_students(db, criteria)

    wb = Workbook()
    ws = wb.active
    ws.title = "Students"
    ws.append(EXPORT_HEADERS)
    for cell in ws[1]:
        cell.font = Font(bold=True)

    for s in students:
        ws.append([
            s.enrollment_no,
            s.full_name,
            s.branch,
            s.current_cgpa,
            s.tenth_percentage,
            s.twelfth_percentage,
            s.backlogs_active,
            s.caf_status,
        ])

    for index, width in enumerate(EXPORT_COLUMN_WIDTHS, start=1):
        ws.column_dimensions[ws.cell(row=1, column=index).column_letter].width = width
    ws.freeze_panes = "A2"

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()
