"""
Contrôle d'accès par rôle à partir d'un JWT Bearer.

Les tokens sont émis par le service d'authentification du campus ; l'API se
contente de vérifier la signature et le rôle :
- sub  : numéro d'inscription (étudiant) ou ID utilisateur (administrateur)
- role : "student" ou "admin"
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.services import access_gate

ROLE_STUDENT = "student"
ROLE_ADMIN = "admin"
VALID_ROLES = {ROLE_STUDENT, ROLE_ADMIN}

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    subject: str
    role: str


def create_access_token(subject: str, role: str, expires_minutes: int = 60) -> str:
    """Signe un token (outillage et tests: l'API n'expose pas de login)."""
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    payload = {"sub": subject, "role": role, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Décode et vérifie un JWT. Retourne None s'il est invalide ou expiré."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """Dépendance FastAPI: identifie l'appelant depuis le header Authorization."""
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Token invalide ou expiré.",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise unauthorized

    payload = decode_token(credentials.credentials)
    if not payload or not payload.get("sub") or payload.get("role") not in VALID_ROLES:
        raise unauthorized

    subject = str(payload["sub"]).strip()
    if payload["role"] == ROLE_STUDENT:
        # Numéro d'inscription : stocké en majuscules partout
        subject = subject.upper()
    return CurrentUser(subject=subject, role=payload["role"])


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Dépendance: réservé aux administrateurs de la cellule placement."""
    if user.role != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Accès réservé aux administrateurs.")
    return user


def require_student(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Dépendance: réservé aux étudiants (sub = numéro d'inscription)."""
    if user.role != ROLE_STUDENT:
        raise HTTPException(status_code=403, detail="Accès réservé aux étudiants.")
    return user


def require_approved_student(
    user: CurrentUser = Depends(require_student),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """
    Dépendance: étudiant dont le CAF est approuvé.
    Stages, campagnes et entretiens blancs restent verrouillés sinon.
    """
    gate = access_gate.get_student_access_gate(db, user.subject)
    if not gate.internships:
        raise HTTPException(status_code=403, detail="Fonctionnalité verrouillée tant que le CAF n'est pas approuvé.")
    return user
