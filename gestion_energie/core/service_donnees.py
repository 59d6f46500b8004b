from __future__ import annotations

"""Service de données distant (tables PostgreSQL managées).

L’application n’implémente ni stockage ni transaction : chaque opération est
une requête indépendante sur une table (lecture filtrée, insertion, mise à jour
ou suppression par clé). Les écritures concurrentes sont arbitrées par la base
(dernière écriture gagnante).

Deux implémentations :
- `ServiceDonneesSql` (module `service_donnees_sql`) : production ;
- `ServiceDonneesMemoire` (ci-dessous) : tests, en mémoire.
"""

import copy
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import uuid4


CODE_VIOLATION_UNICITE = "23505"


class ErreurServiceDonnees(Exception):
    """Erreur renvoyée par le service distant (message brut + code éventuel)."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class ErreurReseau(ErreurServiceDonnees):
    """Service injoignable (connexion refusée, coupure, délai dépassé)."""


class ServiceDonnees(Protocol):
    """Interface injectable des opérations table par table."""

    async def selectionner(
        self,
        table: str,
        *,
        colonnes: Iterable[str] | None = None,
        egal: Mapping[str, Any] | None = None,
        dans: Mapping[str, Iterable[Any]] | None = None,
        ordre: str | None = None,
    ) -> list[dict[str, Any]]:
        ...

    async def inserer(self, table: str, lignes: list[dict[str, Any]]) -> list[dict[str, Any]]:
        ...

    async def mettre_a_jour(
        self,
        table: str,
        valeurs: Mapping[str, Any],
        *,
        egal: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        ...

    async def supprimer(self, table: str, *, egal: Mapping[str, Any]) -> int:
        ...


async def selectionner_une(
    donnees: ServiceDonnees,
    table: str,
    *,
    colonnes: Iterable[str] | None = None,
    egal: Mapping[str, Any],
) -> dict[str, Any] | None:
    """Lecture « maybeSingle » : première ligne correspondante ou None."""

    lignes = await donnees.selectionner(table, colonnes=colonnes, egal=egal)
    return lignes[0] if lignes else None


# Clés uniques du schéma (cf. `domaine.modeles`), reproduites par l’implémentation mémoire.
CLES_UNIQUES: dict[str, tuple[tuple[str, ...], ...]] = {
    "profiles": (("email",),),
    "users": (("email",),),
    "organizations": (("name",),),
    "filieres": (("organization_name", "name"),),
    "filiales": (("organization_name", "name"),),
    "sites": (("organization_name", "name"),),
    "collection_periods": (("id",), ("organization_name", "year", "period_type", "period_number")),
    "sectors": (("name",),),
    "energy_types": (("sector_name", "name"),),
    "standards": (("code",),),
    "issues": (("code",),),
    "criteria": (("code",),),
    "indicators": (("code",),),
    "sector_standards": (("sector_name", "energy_type_name"),),
    "sector_standards_issues": (("sector_name", "energy_type_name", "standard_name"),),
    "sector_standards_issues_criteria": (
        ("sector_name", "energy_type_name", "standard_name", "issue_name"),
    ),
    "sector_standards_issues_criteria_indicators": (
        ("sector_name", "energy_type_name", "standard_name", "issue_name", "criteria_name"),
    ),
    "organization_selections": (("id",),),
    "auth_accounts": (("email",),),
    "auth_sessions": (("id",),),
}

TABLES_A_IDENTIFIANT = frozenset(
    {"collection_periods", "organization_selections", "auth_sessions", "filieres", "filiales", "sites"}
)


def _correspond(
    ligne: Mapping[str, Any],
    egal: Mapping[str, Any] | None,
    dans: Mapping[str, Iterable[Any]] | None,
) -> bool:
    for colonne, valeur in (egal or {}).items():
        if ligne.get(colonne) != valeur:
            return False
    for colonne, valeurs in (dans or {}).items():
        if ligne.get(colonne) not in set(valeurs):
            return False
    return True


class ServiceDonneesMemoire:
    """Service de données en mémoire (tests).

    - applique les mêmes clés uniques que le schéma SQL (code 23505)
    - renseigne `created_at` et `id` comme les valeurs par défaut SQL
    - compte les appels (`nombre_appels`, `journal`) pour les assertions
    - `programmer_erreur` simule une erreur distante sur (opération, table)
    """

    def __init__(self, tables: Mapping[str, list[dict[str, Any]]] | None = None) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {
            nom: [dict(ligne) for ligne in lignes] for nom, lignes in (tables or {}).items()
        }
        self.journal: list[tuple[str, str]] = []
        self._erreurs: dict[tuple[str, str], ErreurServiceDonnees] = {}

    @property
    def nombre_appels(self) -> int:
        return len(self.journal)

    def programmer_erreur(self, operation: str, table: str, erreur: ErreurServiceDonnees) -> None:
        self._erreurs[(operation, table)] = erreur

    def _enregistrer_appel(self, operation: str, table: str) -> None:
        self.journal.append((operation, table))
        erreur = self._erreurs.get((operation, table))
        if erreur is not None:
            raise erreur

    def _verifier_unicite(self, table: str, ligne: Mapping[str, Any], *, sauf: object | None = None) -> None:
        for cle in CLES_UNIQUES.get(table, ()):
            valeur = tuple(ligne.get(c) for c in cle)
            if any(v is None for v in valeur):
                continue
            for existante in self.tables.get(table, []):
                if existante is sauf:
                    continue
                if tuple(existante.get(c) for c in cle) == valeur:
                    raise ErreurServiceDonnees(
                        f'duplicate key value violates unique constraint "{table}_{"_".join(cle)}_key"',
                        code=CODE_VIOLATION_UNICITE,
                    )

    async def selectionner(
        self,
        table: str,
        *,
        colonnes: Iterable[str] | None = None,
        egal: Mapping[str, Any] | None = None,
        dans: Mapping[str, Iterable[Any]] | None = None,
        ordre: str | None = None,
    ) -> list[dict[str, Any]]:
        self._enregistrer_appel("selectionner", table)

        lignes = [ligne for ligne in self.tables.get(table, []) if _correspond(ligne, egal, dans)]

        if ordre:
            descendant = ordre.startswith("-")
            colonne = ordre.lstrip("-")
            lignes = sorted(
                lignes,
                key=lambda ligne: (ligne.get(colonne) is None, ligne.get(colonne)),
                reverse=descendant,
            )

        if colonnes is not None:
            noms = list(colonnes)
            lignes = [{nom: ligne.get(nom) for nom in noms} for ligne in lignes]

        return copy.deepcopy(lignes)

    async def inserer(self, table: str, lignes: list[dict[str, Any]]) -> list[dict[str, Any]]:
        self._enregistrer_appel("inserer", table)

        contenu = self.tables.setdefault(table, [])
        nouvelles: list[dict[str, Any]] = []
        for ligne in lignes:
            nouvelle = copy.deepcopy(dict(ligne))
            nouvelle.setdefault("created_at", datetime.now(tz=timezone.utc))
            if table in TABLES_A_IDENTIFIANT:
                nouvelle.setdefault("id", str(uuid4()))
            self._verifier_unicite(table, nouvelle)
            contenu.append(nouvelle)
            nouvelles.append(nouvelle)

        return copy.deepcopy(nouvelles)

    async def mettre_a_jour(
        self,
        table: str,
        valeurs: Mapping[str, Any],
        *,
        egal: Mapping[str, Any],
    ) -> list[dict[str, Any]]:
        self._enregistrer_appel("mettre_a_jour", table)

        modifiees: list[dict[str, Any]] = []
        for ligne in self.tables.get(table, []):
            if not _correspond(ligne, egal, None):
                continue
            candidate = {**ligne, **copy.deepcopy(dict(valeurs))}
            self._verifier_unicite(table, candidate, sauf=ligne)
            ligne.update(candidate)
            modifiees.append(ligne)

        return copy.deepcopy(modifiees)

    async def supprimer(self, table: str, *, egal: Mapping[str, Any]) -> int:
        self._enregistrer_appel("supprimer", table)

        contenu = self.tables.get(table, [])
        restantes = [ligne for ligne in contenu if not _correspond(ligne, egal, None)]
        nombre = len(contenu) - len(restantes)
        self.tables[table] = restantes
        return nombre
