"""
Filtre d'éligibilité.

Fonctions pures : pas d'accès BDD, pas d'effet de bord. is_eligible sert à
la liste des campagnes visibles par l'étudiant ; student_filter_conditions
traduit les critères du filtre admin en conditions SQL.
"""

from typing import Iterable, List

from sqlalchemy import func

from app.models.caf import STATUS_NOT_SUBMITTED, CafRecord
from app.models.student import Student
from app.schemas.student import StudentFilter


def is_eligible(student, academic, criteria) -> bool:
    """
    CGPA ≥ min_cgpa ET filière autorisée ET backlogs actifs ≤ max_backlogs.

    student  : objet avec .branch
    academic : objet avec .current_cgpa et .backlogs_active
    criteria : objet avec .min_cgpa, .allowed_branches, .max_backlogs
    """
    cgpa = academic.current_cgpa
    branch = student.branch
    if cgpa is None or not branch:
        return False

    allowed = {b.upper() for b in (criteria.allowed_branches or [])}
    backlogs = academic.backlogs_active or 0

    return (
        cgpa >= criteria.min_cgpa
        and branch.upper() in allowed
        and backlogs <= criteria.max_backlogs
    )


def eligible_drives(student, academic, drives: Iterable) -> List:
    """Campagnes pour lesquelles l'étudiant est éligible (ordre conservé)."""
    return [drive for drive in drives if is_eligible(student, academic, drive)]


def _contains_pattern(value: str) -> str:
    """Motif LIKE "contient" : %, _ et l'antislash saisis restent littéraux."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def student_filter_conditions(criteria: StudentFilter) -> list:
    """Conditions SQL (combinées par ET) sur Student et CafRecord."""
    conditions = []
    if criteria.enrollment_no:
        conditions.append(Student.enrollment_no.ilike(_contains_pattern(criteria.enrollment_no), escape="\\"))
    if criteria.department:
        conditions.append(func.upper(Student.branch) == criteria.department.upper())
    if criteria.min_cgpa is not None:
        conditions.append(Student.current_cgpa >= criteria.min_cgpa)
    if criteria.name:
        conditions.append(Student.full_name.ilike(_contains_pattern(criteria.name), escape="\\"))
    if criteria.min_tenth_percentage is not None:
        conditions.append(Student.tenth_percentage >= criteria.min_tenth_percentage)
    if criteria.min_twelfth_percentage is not None:
        conditions.append(Student.twelfth_percentage >= criteria.min_twelfth_percentage)
    if criteria.max_backlogs is not None:
        conditions.append(Student.backlogs_active <= criteria.max_backlogs)
    if criteria.status:
        conditions.append(func.coalesce(CafRecord.status, STATUS_NOT_SUBMITTED) == criteria.status)
    return conditions
