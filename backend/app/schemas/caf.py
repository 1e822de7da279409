"""
Schémas Pydantic pour le formulaire de candidature campus (CAF).

CafSubmission porte les règles de forme (champs obligatoires, bornes, listes
de valeurs). Les règles transverses (déclaration, cohérence des cycles
d'études) sont vérifiées par le workflow.
"""

import re
import uuid
import datetime as dt
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, field_validator

MIN_PASSING_YEAR = 2000
MAX_YEARS_AHEAD = 6

VALID_GENDERS = {"Male", "Female", "Other", "Prefer not to say"}
VALID_COURSES = {"B.E.", "B.Tech", "BCA", "BBA", "MBA", "MCA"}
VALID_BRANCHES = {"CSE", "IT", "CSIT", "AIML", "DS", "ECE", "ME", "CIVIL"}
VALID_BOARDS_10 = {"CBSE", "ICSE", "State Board", "Other"}
VALID_BOARDS_12 = {"CBSE", "ICSE", "State Board", "Diploma", "Not Applicable"}
VALID_CAREER_PREFERENCES = {"Placement", "Higher Studies", "Family Business", "Entrepreneurship", "Other"}
VALID_RELOCATION = {"Yes", "No", "Depends"}
VALID_DOMAINS = {
    "None",
    "Java Full Stack",
    "Python Full Stack",
    "MERN / MEAN",
    "Data Analytics",
    "Data Science / ML",
    "DevOps / Cloud",
    "Cyber Security",
    "Testing / QA",
    "Embedded / VLSI",
    "Non-IT",
}
VALID_STUDY_GAPS = {"No Gap", "Up to 1 year", "1-2 years", "More than 2 years"}
VALID_INTERNSHIP_TYPES = {"Summer", "Winter", "Vocational", "Project", "Other"}
VALID_DURATIONS = {"< 1 month", "1-2 months", "3-6 months", "> 6 months"}
VALID_STIPENDS = {"Paid", "Unpaid"}

MOBILE_REGEX = re.compile(r"^\+?[0-9]{10,15}$")


def _check_choice(v: Optional[str], allowed: set) -> Optional[str]:
    if v is not None and v not in allowed:
        raise ValueError(f"Valeur invalide. Valeurs acceptées : {sorted(allowed)}")
    return v


class Certification(BaseModel):
    title: str
    issuer: str
    issue_date: Optional[str] = None  # "YYYY-MM"
    certificate_url: Optional[str] = None

    @field_validator("title", "issuer")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()


class CafInternshipEntry(BaseModel):
    """Stage résumé dans le CAF (distinct des stages suivis après approbation)."""
    company: str
    internship_type: str
    duration: str
    stipend: str

    @field_validator("company")
    @classmethod
    def company_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom de l'entreprise ne peut pas être vide.")
        return v.strip()

    @field_validator("internship_type")
    @classmethod
    def valid_type(cls, v: str) -> str:
        return _check_choice(v, VALID_INTERNSHIP_TYPES)

    @field_validator("duration")
    @classmethod
    def valid_duration(cls, v: str) -> str:
        return _check_choice(v, VALID_DURATIONS)

    @field_validator("stipend")
    @classmethod
    def valid_stipend(cls, v: str) -> str:
        return _check_choice(v, VALID_STIPENDS)


class CafSubmission(BaseModel):
    """Corps de requête de soumission du CAF (POST /caf)."""

    # Section A
    enrollment_no: str
    full_name: str
    rgpv_enrollment_no: str
    gender: Optional[str] = None
    dob: dt.date
    mobile: str
    alternate_mobile: Optional[str] = None
    email_personal: EmailStr
    course: str = "B.Tech"
    branch: str
    batch_year: Optional[int] = None
    current_semester: Optional[int] = None
    section: Optional[str] = None

    # Section B
    current_address: str
    permanent_address: str
    city: str
    state: Optional[str] = None

    # Section C
    tenth_board: str = "CBSE"
    tenth_percentage: float
    tenth_year_of_passing: int
    twelfth_board: str = "CBSE"
    twelfth_percentage: Optional[float] = None
    twelfth_year_of_passing: Optional[int] = None
    diploma_branch: Optional[str] = None
    diploma_percentage: Optional[float] = None
    diploma_year_of_passing: Optional[int] = None
    current_cgpa: float
    backlogs_active: int
    backlogs_history: int

    # Section D
    career_preference: str = "Placement"
    open_to_relocation: str = "Yes"
    preferred_locations: Optional[str] = None
    domain_interest_primary: Optional[str] = None
    domain_interest_secondary: Optional[str] = None
    technical_skills: Optional[str] = None

    certifications: List[Certification] = []
    internships: List[CafInternshipEntry] = []

    study_gap: str = "No Gap"
    medical_note: Optional[str] = None
    resume_file_url: Optional[str] = None
    evaluator_id: Optional[uuid.UUID] = None
    declaration: bool = False

    @field_validator(
        "enrollment_no", "full_name", "rgpv_enrollment_no",
        "current_address", "permanent_address", "city",
    )
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()

    @field_validator("enrollment_no", "rgpv_enrollment_no")
    @classmethod
    def uppercase_enrollment(cls, v: str) -> str:
        return v.upper()

    @field_validator("mobile", "alternate_mobile")
    @classmethod
    def valid_mobile(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        v = v.replace(" ", "")
        if not MOBILE_REGEX.match(v):
            raise ValueError("Numéro de téléphone invalide (10 à 15 chiffres).")
        return v

    @field_validator("tenth_percentage", "twelfth_percentage", "diploma_percentage")
    @classmethod
    def valid_percentage(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0 <= v <= 100:
            raise ValueError("Le pourcentage doit être compris entre 0 et 100.")
        return v

    @field_validator("current_cgpa")
    @classmethod
    def valid_cgpa(cls, v: float) -> float:
        if not 0 <= v <= 10:
            raise ValueError("Le CGPA doit être compris entre 0 et 10.")
        return v

    @field_validator("backlogs_active", "backlogs_history")
    @classmethod
    def non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Le nombre de backlogs ne peut pas être négatif.")
        return v

    @field_validator("tenth_year_of_passing", "twelfth_year_of_passing", "diploma_year_of_passing", "batch_year")
    @classmethod
    def plausible_year(cls, v: Optional[int]) -> Optional[int]:
        max_year = dt.date.today().year + MAX_YEARS_AHEAD
        if v is not None and not MIN_PASSING_YEAR <= v <= max_year:
            raise ValueError(f"L'année doit être comprise entre {MIN_PASSING_YEAR} et {max_year}.")
        return v

    @field_validator("current_semester")
    @classmethod
    def valid_semester(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 1 <= v <= 8:
            raise ValueError("Le semestre doit être compris entre 1 et 8.")
        return v

    @field_validator("section")
    @classmethod
    def valid_section(cls, v: Optional[str]) -> Optional[str]:
        return _check_choice(v, {"A", "B", "C", "D"})

    @field_validator("gender")
    @classmethod
    def valid_gender(cls, v: Optional[str]) -> Optional[str]:
        return _check_choice(v, VALID_GENDERS)

    @field_validator("course")
    @classmethod
    def valid_course(cls, v: str) -> str:
        return _check_choice(v, VALID_COURSES)

    @field_validator("branch")
    @classmethod
    def valid_branch(cls, v: str) -> str:
        return _check_choice(v.strip().upper(), VALID_BRANCHES)

    @field_validator("tenth_board")
    @classmethod
    def valid_tenth_board(cls, v: str) -> str:
        return _check_choice(v, VALID_BOARDS_10)

    @field_validator("twelfth_board")
    @classmethod
    def valid_twelfth_board(cls, v: str) -> str:
        return _check_choice(v, VALID_BOARDS_12)

    @field_validator("career_preference")
    @classmethod
    def valid_career_preference(cls, v: str) -> str:
        return _check_choice(v, VALID_CAREER_PREFERENCES)

    @field_validator("open_to_relocation")
    @classmethod
    def valid_relocation(cls, v: str) -> str:
        return _check_choice(v, VALID_RELOCATION)

    @field_validator("domain_interest_primary", "domain_interest_secondary")
    @classmethod
    def valid_domain(cls, v: Optional[str]) -> Optional[str]:
        return _check_choice(v, VALID_DOMAINS)

    @field_validator("study_gap")
    @classmethod
    def valid_study_gap(cls, v: str) -> str:
        return _check_choice(v, VALID_STUDY_GAPS)


# Champs du formulaire persistés tels quels sur CafRecord
CAF_FORM_FIELDS = tuple(f for f in CafSubmission.model_fields if f != "enrollment_no")


class CafEditRequest(BaseModel):
    """Demande de modification post-approbation (POST /caf/me/edit-request)."""
    fields: Dict[str, Any]
    version: Optional[int] = None  # version lue par le client (verrou optimiste)

    @field_validator("fields")
    @classmethod
    def not_empty(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        if not v:
            raise ValueError("Au moins un champ doit être fourni.")
        return v


VALID_DECISIONS = {"approve", "reject"}


class CafDecision(BaseModel):
    """Décision admin sur un CAF en attente ou une demande de modification."""
    decision: str
    reason: Optional[str] = None
    version: Optional[int] = None

    @field_validator("decision")
    @classmethod
    def valid_decision(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in VALID_DECISIONS:
            raise ValueError(f"Décision invalide. Valeurs acceptées : {sorted(VALID_DECISIONS)}")
        return v

    @field_validator("reason")
    @classmethod
    def strip_reason(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else None


class EvaluatorAssign(BaseModel):
    evaluator_id: Optional[uuid.UUID] = None  # None = retirer l'évaluateur


class CafSubmitResponse(BaseModel):
    """Réponse après soumission."""
    caf_id: uuid.UUID
    status: str
    submitted_at: datetime
    version: Optional[int] = None


class CafTransitionResponse(BaseModel):
    """État du CAF après une transition du workflow."""
    caf_id: uuid.UUID
    status: str
    edit_pending: bool
    version: Optional[int] = None


class CafResponse(BaseModel):
    """Détail d'un CAF. Pour un étudiant sans CAF, seul status est renseigné."""
    id: Optional[uuid.UUID] = None
    enrollment_no: Optional[str] = None
    status: str
    edit_pending: bool = False
    edit_patch: Optional[Dict[str, Any]] = None
    edit_requested_at: Optional[datetime] = None
    edit_rejection_reason: Optional[str] = None
    rejection_reason: Optional[str] = None
    evaluator_id: Optional[uuid.UUID] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    version: Optional[int] = None
    form: Dict[str, Any] = {}


class AccessGateResponse(BaseModel):
    """Fonctionnalités déverrouillées pour l'étudiant."""
    caf_form: bool = True
    internships: bool
    placements: bool
    mock_interviews: bool
