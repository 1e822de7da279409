"""
Schémas Pydantic pour les résultats d'entretiens blancs.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from app.schemas.student import ImportError


class MockResultImportRow(BaseModel):
    """Ligne valide du fichier après parsing."""
    enrollment_no: str
    attempt_number: int = 1
    gd_cleared: bool
    hr_cleared: bool
    technical_cleared: bool
    selected: bool
    rejected_at: Optional[str] = None


class MockResultImportReport(BaseModel):
    """Rapport retourné après un import de résultats."""
    total_rows: int
    imported: int
    created: int
    updated: int
    rejected: int
    errors: List[ImportError]


class MockInterviewResultResponse(BaseModel):
    attempt_number: int
    gd_cleared: bool
    hr_cleared: bool
    technical_cleared: bool
    selected: bool
    rejected_at: Optional[str]
    uploaded_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
