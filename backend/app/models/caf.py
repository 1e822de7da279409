"""
Modèle SQLAlchemy pour les formulaires de candidature campus (CAF).

Un CAF par étudiant. Le statut n'est modifié que par app.services.caf_workflow.
La colonne version sert de verrou optimiste (StaleDataError en cas de conflit).
"""

import uuid
from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID

from app.database import Base

STATUS_NOT_SUBMITTED = "not_submitted"
STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
CAF_STATUSES = (STATUS_NOT_SUBMITTED, STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)


class CafRecord(Base):
    __tablename__ = "caf_records"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    enrollment_no = Column(
        String(20), ForeignKey("students.enrollment_no", ondelete="CASCADE"), unique=True, nullable=False
    )

    # Section A: informations personnelles
    full_name = Column(String(200), nullable=False)
    rgpv_enrollment_no = Column(String(20), nullable=True)
    gender = Column(String(30), nullable=True)
    dob = Column(Date, nullable=True)
    mobile = Column(String(20), nullable=True)
    alternate_mobile = Column(String(20), nullable=True)
    email_personal = Column(String(255), nullable=True)
    course = Column(String(20), nullable=True)
    branch = Column(String(20), nullable=False)
    batch_year = Column(Integer, nullable=True)
    current_semester = Column(Integer, nullable=True)
    section = Column(String(5), nullable=True)

    # Section B: adresse
    current_address = Column(Text, nullable=True)
    permanent_address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)

    # Section C: parcours académique
    tenth_board = Column(String(30), nullable=True)
    tenth_percentage = Column(Float, nullable=True)
    tenth_year_of_passing = Column(Integer, nullable=True)
    twelfth_board = Column(String(30), nullable=True)
    twelfth_percentage = Column(Float, nullable=True)
    twelfth_year_of_passing = Column(Integer, nullable=True)
    diploma_branch = Column(String(50), nullable=True)
    diploma_percentage = Column(Float, nullable=True)
    diploma_year_of_passing = Column(Integer, nullable=True)
    current_cgpa = Column(Float, nullable=True)
    backlogs_active = Column(Integer, default=0)
    backlogs_history = Column(Integer, default=0)

    # Section D: préférences de carrière
    career_preference = Column(String(30), nullable=True)
    open_to_relocation = Column(String(10), nullable=True)
    preferred_locations = Column(String(255), nullable=True)
    domain_interest_primary = Column(String(50), nullable=True)
    domain_interest_secondary = Column(String(50), nullable=True)
    technical_skills = Column(Text, nullable=True)

    # Listes ordonnées (certifications, stages déclarés)
    certifications = Column(JSONB, nullable=False, default=list)
    internships = Column(JSONB, nullable=False, default=list)

    # Divers
    study_gap = Column(String(30), nullable=True)
    medical_note = Column(Text, nullable=True)
    resume_file_url = Column(String(500), nullable=True)
    declaration = Column(Boolean, default=False)
    evaluator_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Workflow
    status = Column(String(20), nullable=False, default=STATUS_NOT_SUBMITTED)
    rejection_reason = Column(Text, nullable=True)
    edit_pending = Column(Boolean, nullable=False, default=False)
    edit_patch = Column(JSONB, nullable=True)               # champs demandés, NULL si aucune demande
    edit_requested_at = Column(DateTime, nullable=True)
    edit_rejection_reason = Column(Text, nullable=True)
    submitted_at = Column(DateTime, nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    __mapper_args__ = {"version_id_col": version}
