from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import Table, delete, insert, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from gestion_energie.core.service_donnees import ErreurReseau, ErreurServiceDonnees
from gestion_energie.domaine.modeles import BaseModele


logger = logging.getLogger(__name__)


def _code_sql(erreur: DBAPIError) -> str | None:
    origine = erreur.orig
    return getattr(origine, "sqlstate", None) or getattr(origine, "pgcode", None)


class ServiceDonneesSql:
    """Opérations table par table sur PostgreSQL (SQLAlchemy Core).

    Chaque appel d’écriture est validé dès qu’il réussit : aucune transaction
    ne couvre plusieurs appels, comme avec une API REST de base managée. Un
    `inserer` de plusieurs lignes reste atomique.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    def _table(self, nom: str) -> Table:
        table = BaseModele.metadata.tables.get(nom)
        if table is None:
            raise ErreurServiceDonnees(f'relation "{nom}" does not exist', code="42P01")
        return table

    @staticmethod
    def _conditions(
        table: Table,
        egal: Mapping[str, Any] | None,
        dans: Mapping[str, Iterable[Any]] | None = None,
    ) -> list[Any]:
        conditions = []
        for colonne, valeur in (egal or {}).items():
            if valeur is None:
                conditions.append(table.c[colonne].is_(None))
            else:
                conditions.append(table.c[colonne] == valeur)
        for colonne, valeurs in (dans or {}).items():
            conditions.append(table.c[colonne].in_(list(valeurs)))
        return conditions

    @asynccontextmanager
    async def _erreurs_traduites(self) -> AsyncIterator[None]:
        """Annule la transaction en cours et traduit l’erreur SQLAlchemy."""

        try:
            yield
        except IntegrityError as e:
            await self._session.rollback()
            raise ErreurServiceDonnees(str(e.orig), code=_code_sql(e)) from e
        except (OperationalError, InterfaceError, OSError) as e:
            await self._session.rollback()
            logger.warning("service_donnees_injoignable erreur=%s", e)
            raise ErreurReseau("Network error: Unable to connect to the server.") from e
        except DBAPIError as e:
            await self._session.rollback()
            raise ErreurServiceDonnees(str(e.orig), code=_code_sql(e)) from e

    async def selectionner(
        self,
        table: str,
        *,
        colonnes: Iterable[str] | None = None,
        egal: Mapping[str, Any] | None = None,
        dans: Mapping[str, Iterable[Any]] | None = None,
        ordre: str | None = None,
    ) -> list[dict[str, Any]]:
        t = self._table(table)

        if colonnes is None:
            requete = select(t)
        else:
            requete = select(*[t.c[c] for c in colonnes])

        conditions = self._conditions(t, egal, dans)
        if conditions:
            requete = requete.where(*conditions)

        if ordre:
            colonne = t.c[ordre.lstrip("-")]
            requete = requete.order_by(colonne.desc() if ordre.startswith("-") else colonne.asc())

        async with self._erreurs_traduites():
            resultat = await self._session.execute(requete)
            return [dict(ligne._mapping) for ligne in resultat.all()]

    async def inserer(self, table: str, lignes: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insère toutes les lignes ou aucune : une seule validation par appel."""

        t = self._table(table)

        inserees: list[dict[str, Any]] = []
        async with self._erreurs_traduites():
            for ligne in lignes:
                resultat = await self._session.execute(insert(t).values(**ligne).returning(*t.c))
                inserees.extend(dict(r._mapping) for r in resultat.all())
            await self._session.commit()
        return inserees

    async def mettre_a_jour(
        self,
        table: str,
        valeurs: Mapping[str, Any],
        *,
        egal: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        t = self._table(table)

        requete = update(t).where(*self._conditions(t, egal)).values(**dict(valeurs)).returning(*t.c)
        async with self._erreurs_traduites():
            resultat = await self._session.execute(requete)
            lignes = [dict(r._mapping) for r in resultat.all()]
            await self._session.commit()
        return lignes

    async def supprimer(self, table: str, *, egal: Mapping[str, Any]) -> int:
        t = self._table(table)

        async with self._erreurs_traduites():
            resultat = await self._session.execute(delete(t).where(*self._conditions(t, egal)))
            await self._session.commit()
        return int(resultat.rowcount or 0)
