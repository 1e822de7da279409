"""
Exceptions métier du workflow CAF.

Toutes héritent de ValueError : les routers les traduisent en HTTPException
(422, 409, 400, 404) au même endroit que les autres erreurs de service.
"""

from typing import Dict, Iterable

from fastapi import HTTPException


class ValidationError(ValueError):
    """Saisie invalide ou incomplète. Porte un message par champ."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{field} : {msg}" for field, msg in self.errors.items()))


class InvalidTransitionError(ValueError):
    """Événement invoqué depuis un état où il n'est pas défini."""

    def __init__(self, status: str, event: str):
        self.status = status
        self.event = event
        super().__init__(f"Transition '{event}' impossible depuis le statut '{status}'.")


class FieldNotEditableError(ValueError):
    """Demande de modification portant sur des champs hors liste blanche."""

    def __init__(self, fields: Iterable[str]):
        self.fields = sorted(fields)
        super().__init__(f"Champs non modifiables après approbation : {', '.join(self.fields)}")


class ConflictError(ValueError):
    """Modification concurrente du même CAF : relire l'état et réessayer."""


class NotFoundError(ValueError):
    """Ressource introuvable."""


def to_http_exception(exc: ValueError) -> HTTPException:
    """Traduit une exception métier en réponse HTTP (utilisé par les routers)."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail={"message": "Données invalides.", "errors": exc.errors})
    if isinstance(exc, FieldNotEditableError):
        return HTTPException(status_code=400, detail={"message": str(exc), "fields": exc.fields})
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (InvalidTransitionError, ConflictError)):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))
