from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from gestion_energie.core.configuration import parametres_application
from gestion_energie.core.service_donnees import CODE_VIOLATION_UNICITE, ErreurServiceDonnees


def http_depuis_erreur_donnees(erreur: ErreurServiceDonnees, *, prefixe: str | None = None) -> HTTPException:
    """Erreur distante -> HTTP : 409 sur violation d’unicité, 400 sinon."""

    detail = f"{prefixe}: {erreur.message}" if prefixe else erreur.message
    if erreur.code == CODE_VIOLATION_UNICITE:
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def http_validation(erreurs: dict[str, str]) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=erreurs)


def succes(message: str, **donnees: Any) -> dict[str, Any]:
    """Réponse d’écriture réussie ; le client efface le message après le délai indiqué."""

    return {
        "message": message,
        "delai_effacement_secondes": parametres_application.delai_message_succes_secondes,
        **donnees,
    }
