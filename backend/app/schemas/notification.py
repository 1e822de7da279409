"""
Schémas Pydantic pour la file de notifications admin (vue dérivée des CAF).
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel

KIND_NEW_CAF = "new_caf"
KIND_EDIT_REQUEST = "edit_request"
VALID_KINDS = {KIND_NEW_CAF, KIND_EDIT_REQUEST}


class NotificationResponse(BaseModel):
    id: str  # "<kind>:<caf_id>"
    kind: str
    caf_id: uuid.UUID
    enrollment_no: str
    student_name: str
    timestamp: Optional[datetime]
    details: Dict[str, Any] = {}


class ReviewReminderResult(BaseModel):
    """Résultat d'une passe de relance."""
    stale_count: int
    sent: bool
    error: Optional[str] = None
