"""
Schémas Pydantic pour les stages suivis par l'étudiant.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from app.schemas.caf import VALID_DURATIONS, VALID_INTERNSHIP_TYPES, VALID_STIPENDS


class InternshipCreate(BaseModel):
    company_name: str
    internship_type: str
    duration: str
    stipend: str
    has_ppo: bool = False

    @field_validator("company_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom de l'entreprise ne peut pas être vide.")
        return v.strip()

    @field_validator("internship_type")
    @classmethod
    def valid_type(cls, v: str) -> str:
        if v not in VALID_INTERNSHIP_TYPES:
            raise ValueError(f"Type invalide. Valeurs acceptées : {sorted(VALID_INTERNSHIP_TYPES)}")
        return v

    @field_validator("duration")
    @classmethod
    def valid_duration(cls, v: str) -> str:
        if v not in VALID_DURATIONS:
            raise ValueError(f"Durée invalide. Valeurs acceptées : {sorted(VALID_DURATIONS)}")
        return v

    @field_validator("stipend")
    @classmethod
    def valid_stipend(cls, v: str) -> str:
        if v not in VALID_STIPENDS:
            raise ValueError(f"Rémunération invalide. Valeurs acceptées : {sorted(VALID_STIPENDS)}")
        return v


class InternshipResponse(BaseModel):
    id: int
    enrollment_no: str
    company_name: str
    internship_type: str
    duration: str
    stipend: str
    has_ppo: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
