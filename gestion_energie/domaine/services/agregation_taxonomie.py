from __future__ import annotations

"""Agrégation de la taxonomie secteur -> énergies -> normes -> enjeux -> critères -> indicateurs.

Lecture seule. Les tables de jointure sont dénormalisées : chaque ligne porte
un tableau de codes, résolus ensuite dans la table de référentiel.

Règles :
- seul le premier type d’énergie (et, pour les indicateurs, la première norme)
  restreint la recherche ; les appelants de l’assistant ne transmettent qu’un
  seul élément dans ces listes
- les enjeux et critères sélectionnés ne filtrent pas la recherche
  d’indicateurs : ils ne servent qu’au contrôle d’entrée
- un code sans indicateur correspondant est ignoré silencieusement
- toute erreur distante interrompt l’agrégation : pas de résultat partiel
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from gestion_energie.core.service_donnees import ErreurServiceDonnees, ServiceDonnees


logger = logging.getLogger(__name__)


def _codes_uniques(lignes: Iterable[dict[str, Any]], colonne: str) -> list[str]:
    """Aplatit les tableaux de codes en conservant le premier ordre d’apparition."""

    return list(dict.fromkeys(code for ligne in lignes for code in (ligne.get(colonne) or [])))


@dataclass(frozen=True)
class SelectionTaxonomie:
    secteur: str | None
    types_energie: tuple[str, ...] = ()
    normes: tuple[str, ...] = ()
    enjeux: tuple[str, ...] = ()
    criteres: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Listes acceptées en entrée ; tuples en interne (sélection comparable et hachable).
        for nom in ("types_energie", "normes", "enjeux", "criteres"):
            object.__setattr__(self, nom, tuple(getattr(self, nom) or ()))

    def est_complete(self) -> bool:
        return bool(self.secteur) and all((self.types_energie, self.normes, self.enjeux, self.criteres))


@dataclass(frozen=True)
class ElementTaxonomie:
    code: str
    nom: str
    description: str | None = None
    cree_le: datetime | None = None


@dataclass(frozen=True)
class IndicateurResolu:
    nom_indicateur: str
    nom_critere: str
    unite: str
    cree_le: datetime | None


class ServiceAgregationTaxonomie:
    def __init__(self, donnees: ServiceDonnees) -> None:
        self._donnees = donnees

    async def lister_secteurs(self) -> list[dict[str, Any]]:
        return await self._donnees.selectionner("sectors", colonnes=("name", "created_at"), ordre="name")

    async def lister_types_energie(self, secteur: str | None) -> list[dict[str, Any]]:
        if not secteur:
            return []
        return await self._donnees.selectionner("energy_types", egal={"sector_name": secteur}, ordre="name")

    async def lister_normes(self, secteur: str | None, types_energie: Sequence[str]) -> list[str]:
        if not secteur or not types_energie:
            return []

        lignes = await self._donnees.selectionner(
            "sector_standards",
            colonnes=("standard_codes",),
            egal={"sector_name": secteur, "energy_type_name": types_energie[0]},
        )
        return [code for ligne in lignes for code in (ligne.get("standard_codes") or [])]

    async def lister_enjeux(
        self,
        secteur: str | None,
        types_energie: Sequence[str],
        normes: Sequence[str],
    ) -> list[ElementTaxonomie]:
        if not secteur or not types_energie or not normes:
            return []

        lignes = await self._donnees.selectionner(
            "sector_standards_issues",
            colonnes=("issue_codes",),
            egal={"sector_name": secteur, "energy_type_name": types_energie[0]},
            dans={"standard_name": normes},
        )
        codes = _codes_uniques(lignes, "issue_codes")
        if not codes:
            return []

        details = await self._donnees.selectionner(
            "issues",
            colonnes=("code", "name", "created_at"),
            dans={"code": codes},
        )
        return [ElementTaxonomie(code=d["code"], nom=d["name"], cree_le=d.get("created_at")) for d in details]

    async def lister_criteres(
        self,
        secteur: str | None,
        types_energie: Sequence[str],
        normes: Sequence[str],
        enjeux: Sequence[str],
    ) -> list[ElementTaxonomie]:
        if not secteur or not types_energie or not normes or not enjeux:
            return []

        lignes = await self._donnees.selectionner(
            "sector_standards_issues_criteria",
            colonnes=("criteria_codes",),
            egal={"sector_name": secteur, "energy_type_name": types_energie[0]},
            dans={"standard_name": normes, "issue_name": enjeux},
        )
        codes = _codes_uniques(lignes, "criteria_codes")
        if not codes:
            return []

        details = await self._donnees.selectionner(
            "criteria",
            colonnes=("code", "name", "description"),
            dans={"code": codes},
        )
        return [ElementTaxonomie(code=d["code"], nom=d["name"], description=d.get("description")) for d in details]

    async def resoudre_indicateurs(self, selection: SelectionTaxonomie) -> list[IndicateurResolu]:
        """Indicateurs disponibles pour la sélection, rattachés à leur critère d’origine."""

        if not selection.est_complete():
            return []

        # 1) lignes de jointure (secteur, première énergie, première norme)
        lignes = await self._donnees.selectionner(
            "sector_standards_issues_criteria_indicators",
            colonnes=("criteria_name", "indicator_codes", "created_at", "unit"),
            egal={
                "sector_name": selection.secteur,
                "energy_type_name": selection.types_energie[0],
                "standard_name": selection.normes[0],
            },
        )
        if not lignes:
            return []

        # 2) codes dédupliqués
        codes = _codes_uniques(lignes, "indicator_codes")
        if not codes:
            return []

        # 3) libellés des indicateurs
        details = await self._donnees.selectionner("indicators", colonnes=("code", "name"), dans={"code": codes})
        if not details:
            return []
        noms_par_code = {d["code"]: d["name"] for d in details}

        # 4) réassociation code -> critère / unité ; codes orphelins ignorés
        return [
            IndicateurResolu(
                nom_indicateur=noms_par_code[code],
                nom_critere=ligne["criteria_name"],
                unite=ligne.get("unit") or "",
                cree_le=ligne.get("created_at"),
            )
            for ligne in lignes
            for code in (ligne.get("indicator_codes") or [])
            if code in noms_par_code
        ]


@dataclass
class ResolveurIndicateurs:
    """État de la liste d’indicateurs d’un écran de l’assistant.

    Ré-exécute l’agrégation quand la sélection ou le jeton de rafraîchissement
    change (le jeton permet de forcer un rechargement après création,
    modification ou suppression d’un indicateur). Le résultat d’une exécution
    supplantée par une plus récente est ignoré.
    """

    service: ServiceAgregationTaxonomie
    indicateurs: list[IndicateurResolu] = field(default_factory=list)
    erreur: str | None = None
    en_chargement: bool = False
    _cle: tuple[SelectionTaxonomie, str | None] | None = field(default=None, repr=False)
    _generation: int = field(default=0, repr=False)

    async def actualiser(
        self,
        selection: SelectionTaxonomie,
        *,
        jeton_rafraichissement: str | None = None,
        forcer: bool = False,
    ) -> list[IndicateurResolu]:
        cle = (selection, jeton_rafraichissement)
        if cle == self._cle and not forcer:
            return self.indicateurs

        self._cle = cle
        self._generation += 1
        generation = self._generation
        self.en_chargement = True
        self.erreur = None

        try:
            indicateurs = await self.service.resoudre_indicateurs(selection)
        except ErreurServiceDonnees as e:
            if generation == self._generation:
                logger.error("agregation_indicateurs_echec erreur=%s", e.message)
                self.indicateurs = []
                self.erreur = e.message
                self.en_chargement = False
            return self.indicateurs

        if generation == self._generation:
            self.indicateurs = indicateurs
            self.en_chargement = False
        return self.indicateurs
