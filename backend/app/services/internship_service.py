"""
Service métier pour les stages suivis par les étudiants (ajout uniquement).
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.internship import InternshipRecord
from app.schemas.internship import InternshipCreate, InternshipResponse

logger = logging.getLogger(__name__)


def add_internship(db: Session, enrollment_no: str, data: InternshipCreate) -> InternshipResponse:
    record = InternshipRecord(enrollment_no=enrollment_no, **data.model_dump())
    db.add(record)
    db.commit()
    db.refresh(record)

    logger.info("Stage ajouté pour %s : %s (PPO : %s)", enrollment_no, data.company_name, data.has_ppo)
    return InternshipResponse.model_validate(record)


def list_internships(db: Session, enrollment_no: str) -> List[InternshipResponse]:
    """Stages d'un étudiant, du plus récent au plus ancien."""
    records = db.execute(
        select(InternshipRecord)
        .where(InternshipRecord.enrollment_no == enrollment_no)
        .order_by(InternshipRecord.created_at.desc(), InternshipRecord.id.desc())
    ).scalars().all()
    return [InternshipResponse.model_validate(r) for r in records]
