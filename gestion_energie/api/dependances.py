from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_energie.core.base_donnees import fournir_session_async
from gestion_energie.core.configuration import parametres_application
from gestion_energie.core.service_auth import ServiceAuth, ServiceAuthJwt
from gestion_energie.core.service_donnees import ServiceDonnees
from gestion_energie.core.service_donnees_sql import ServiceDonneesSql


# Échecs de connexion récents, communs à toutes les requêtes du processus.
_echecs_connexion: dict[str, list[float]] = {}


async def fournir_session() -> AsyncIterator[AsyncSession]:
    """Dépendance FastAPI : fournit une session SQLAlchemy asynchrone."""

    async for session in fournir_session_async():
        yield session


def fournir_service_donnees(session: AsyncSession = Depends(fournir_session)) -> ServiceDonnees:
    """Dépendance FastAPI : service de données (remplacé par une version mémoire en test)."""

    return ServiceDonneesSql(session)


def fournir_service_auth(donnees: ServiceDonnees = Depends(fournir_service_donnees)) -> ServiceAuth:
    return ServiceAuthJwt(
        donnees,
        secret=parametres_application.jwt_secret,
        duree_minutes=parametres_application.jwt_duree_minutes,
        confirmation_email_requise=parametres_application.confirmation_email_requise,
        tentatives_max=parametres_application.tentatives_connexion_max,
        fenetre_secondes=parametres_application.fenetre_tentatives_secondes,
        echecs=_echecs_connexion,
    )
