"""
Modèle SQLAlchemy pour les campagnes de recrutement (placement drives).
"""

import uuid
from sqlalchemy import Column, Date, DateTime, Float, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import ARRAY, UUID

from app.database import Base


class PlacementDrive(Base):
    __tablename__ = "placement_drives"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_name = Column(String(200), nullable=False)
    location = Column(String(200), nullable=True)
    job_description = Column(Text, nullable=True)
    # Critères d'éligibilité
    min_cgpa = Column(Float, nullable=False, default=0.0)
    allowed_branches = Column(ARRAY(String(20)), nullable=False, default=list)
    max_backlogs = Column(Integer, nullable=False, default=0)
    drive_date = Column(Date, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
