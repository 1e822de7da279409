"""
Modèle SQLAlchemy pour le personnel de la cellule placement.
Référencé par les CAF comme évaluateur. L'authentification est externe.
"""

import uuid
from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    full_name = Column(String(200), nullable=True)
    role = Column(String(20), nullable=False)  # ADMIN, EVALUATOR
    created_at = Column(DateTime, server_default=func.now())
