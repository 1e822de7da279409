"""
Modèle SQLAlchemy pour les résultats d'entretiens blancs.
Alimenté uniquement par l'import admin (upsert par inscription + tentative).
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func

from app.database import Base


class MockInterviewResult(Base):
    __tablename__ = "mock_interview_results"
    __table_args__ = (UniqueConstraint("enrollment_no", "attempt_number", name="uq_mock_result_attempt"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    enrollment_no = Column(
        String(20), ForeignKey("students.enrollment_no", ondelete="CASCADE"), nullable=False, index=True
    )
    attempt_number = Column(Integer, nullable=False, default=1)
    gd_cleared = Column(Boolean, nullable=False, default=False)
    hr_cleared = Column(Boolean, nullable=False, default=False)
    technical_cleared = Column(Boolean, nullable=False, default=False)
    selected = Column(Boolean, nullable=False, default=False)
    rejected_at = Column(String(20), nullable=True)  # GD, HR, Technical
    uploaded_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
