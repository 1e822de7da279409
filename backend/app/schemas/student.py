"""
Schémas Pydantic pour le filtrage et l'export des étudiants (espace admin).
"""

from typing import Optional

from pydantic import BaseModel, field_validator

from app.models.caf import CAF_STATUSES


class StudentFilter(BaseModel):
    """Critères de filtrage, tous optionnels et combinés par ET."""
    enrollment_no: Optional[str] = None
    department: Optional[str] = None
    min_cgpa: Optional[float] = None
    name: Optional[str] = None
    min_tenth_percentage: Optional[float] = None
    min_twelfth_percentage: Optional[float] = None
    max_backlogs: Optional[int] = None
    status: Optional[str] = None

    @field_validator("enrollment_no", "department", "name")
    @classmethod
    def blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("min_cgpa")
    @classmethod
    def valid_cgpa(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0 <= v <= 10:
            raise ValueError("Le CGPA doit être compris entre 0 et 10.")
        return v

    @field_validator("min_tenth_percentage", "min_twelfth_percentage")
    @classmethod
    def valid_percentage(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0 <= v <= 100:
            raise ValueError("Le pourcentage doit être compris entre 0 et 100.")
        return v

    @field_validator("status")
    @classmethod
    def valid_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in CAF_STATUSES:
            raise ValueError(f"Statut invalide. Valeurs acceptées : {list(CAF_STATUSES)}")
        return v


class StudentProjection(BaseModel):
    """Ligne étudiant + statut CAF retournée par le filtre admin."""
    enrollment_no: str
    full_name: str
    branch: str
    current_cgpa: Optional[float]
    tenth_percentage: Optional[float]
    twelfth_percentage: Optional[float]
    backlogs_active: Optional[int]
    caf_status: str


class ImportError(BaseModel):
    """Détail d'une ligne rejetée lors d'un import de fichier."""
    row: int
    content: str
    reason: str
