"""
Modèle SQLAlchemy pour la table students.
Identité de l'étudiant + instantané académique (écrit à l'approbation du CAF).
"""

from sqlalchemy import Column, DateTime, Float, Integer, String, func

from app.database import Base


class Student(Base):
    __tablename__ = "students"

    enrollment_no = Column(String(20), primary_key=True)  # Ex: "0101CS211001"
    full_name = Column(String(200), nullable=False)
    branch = Column(String(20), nullable=False)           # CSE, IT, ECE...
    current_cgpa = Column(Float, nullable=True)
    tenth_percentage = Column(Float, nullable=True)
    twelfth_percentage = Column(Float, nullable=True)
    backlogs_active = Column(Integer, default=0)
    backlogs_history = Column(Integer, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
