"""
Modèle SQLAlchemy pour les stages déclarés par les étudiants (ajout uniquement).
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func

from app.database import Base


class InternshipRecord(Base):
    __tablename__ = "internship_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment_no = Column(
        String(20), ForeignKey("students.enrollment_no", ondelete="CASCADE"), nullable=False, index=True
    )
    company_name = Column(String(200), nullable=False)
    internship_type = Column(String(20), nullable=False)  # Summer, Winter, Vocational, Project, Other
    duration = Column(String(30), nullable=False)
    stipend = Column(String(10), nullable=False)          # Paid, Unpaid
    has_ppo = Column(Boolean, default=False)
    created_at = Column(DateTime, server_default=func.now())
