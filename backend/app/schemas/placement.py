"""
Schémas Pydantic pour les campagnes de recrutement.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator


class EligibilityCriteria(BaseModel):
    min_cgpa: float = 0.0
    allowed_branches: List[str]
    max_backlogs: int = 0

    @field_validator("min_cgpa")
    @classmethod
    def valid_cgpa(cls, v: float) -> float:
        if not 0 <= v <= 10:
            raise ValueError("Le CGPA doit être compris entre 0 et 10.")
        return v

    @field_validator("allowed_branches")
    @classmethod
    def normalize_branches(cls, v: List[str]) -> List[str]:
        branches = [b.strip().upper() for b in v if b.strip()]
        if not branches:
            raise ValueError("Au moins une filière doit être autorisée.")
        return sorted(set(branches))

    @field_validator("max_backlogs")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Le nombre de backlogs ne peut pas être négatif.")
        return v


class PlacementDriveCreate(BaseModel):
    company_name: str
    location: Optional[str] = None
    job_description: Optional[str] = None
    drive_date: Optional[dt.date] = None
    eligibility_criteria: EligibilityCriteria

    @field_validator("company_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom de l'entreprise ne peut pas être vide.")
        return v.strip()


class PlacementDriveResponse(BaseModel):
    id: uuid.UUID
    company_name: str
    location: Optional[str]
    job_description: Optional[str]
    drive_date: Optional[dt.date]
    eligibility_criteria: EligibilityCriteria
    created_at: Optional[datetime] = None
