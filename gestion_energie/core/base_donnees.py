from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from gestion_energie.core.configuration import parametres_application


logger = logging.getLogger(__name__)


class RegistreMoteurs:
    """Un moteur async (et sa fabrique de sessions) par boucle asyncio.

    Un pool asyncpg est lié à la boucle qui l’a créé ; le TestClient et
    Alembic ouvrent chacun leur propre boucle.
    """

    def __init__(self, url: str) -> None:
        self._url = url
        self._entrees: dict[int, tuple[AsyncEngine, async_sessionmaker[AsyncSession]]] = {}

    @staticmethod
    def _boucle_courante() -> int:
        try:
            return id(asyncio.get_running_loop())
        except RuntimeError:
            return 0

    def fabrique(self) -> async_sessionmaker[AsyncSession]:
        cle = self._boucle_courante()
        if cle not in self._entrees:
            moteur = create_async_engine(self._url, pool_pre_ping=True)
            self._entrees[cle] = (moteur, async_sessionmaker(bind=moteur, expire_on_commit=False))
        return self._entrees[cle][1]

    async def fermer(self) -> None:
        """Libère le moteur de la boucle courante (arrêt de l’application)."""

        entree = self._entrees.pop(self._boucle_courante(), None)
        if entree is not None:
            await entree[0].dispose()
            logger.info("moteur_base_donnees_ferme")


registre_moteurs = RegistreMoteurs(parametres_application.url_base_donnees)


async def fournir_session_async() -> AsyncIterator[AsyncSession]:
    async with registre_moteurs.fabrique()() as session:
        yield session
