from __future__ import annotations

"""Administration du référentiel taxonomique.

Les tables de jointure portent des tableaux de codes : ajouter un indicateur
(ou un critère) revient à insérer la ligne de référentiel puis à ajouter son
code au tableau de la ligne de jointure correspondante.

La mise à jour des tableaux est une lecture suivie d’une écriture (pas
d’upsert atomique) : deux administrateurs qui modifient la même ligne au même
moment peuvent s’écraser, la dernière écriture gagne.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from gestion_energie.core.service_donnees import ServiceDonnees, selectionner_une
from gestion_energie.domaine.services.agregation_taxonomie import SelectionTaxonomie


logger = logging.getLogger(__name__)


class ErreurReferentiel(Exception):
    """Erreur générique d’administration du référentiel."""


class SelectionIncomplete(ErreurReferentiel):
    """La sélection ne permet pas de situer l’élément dans la taxonomie."""


class ElementIntrouvable(ErreurReferentiel):
    """Code inconnu dans le référentiel."""


@dataclass(frozen=True)
class NouvelIndicateur:
    code: str
    nom: str
    nom_critere: str
    description: str | None = None
    unite: str | None = None
    type: str | None = None
    formule: str | None = None
    frequence: str | None = "Mensuelle"

    def ligne(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "name": self.nom,
            "description": self.description,
            "unit": self.unite,
            "type": self.type,
            "formule": self.formule,
            "frequency": self.frequence,
        }


@dataclass(frozen=True)
class NouveauCritere:
    code: str
    nom: str
    description: str | None = None


def _enjeu_cible(selection: SelectionTaxonomie, enjeu_cible: str | None) -> str:
    if enjeu_cible:
        return enjeu_cible
    if not selection.enjeux:
        raise SelectionIncomplete("Sélectionnez au moins un enjeu.")
    return selection.enjeux[0]


def _cle_base(selection: SelectionTaxonomie) -> dict[str, str]:
    if not selection.secteur or not selection.types_energie or not selection.normes:
        raise SelectionIncomplete("Sélectionnez un secteur, un type d'énergie et une norme.")
    return {
        "sector_name": selection.secteur,
        "energy_type_name": selection.types_energie[0],
        "standard_name": selection.normes[0],
    }


class ServiceReferentielTaxonomie:
    def __init__(self, donnees: ServiceDonnees) -> None:
        self._donnees = donnees

    # ---- secteurs / énergies ----

    async def ajouter_secteur(self, nom: str) -> dict[str, Any]:
        nom = (nom or "").strip()
        if not nom:
            raise ErreurReferentiel("Le nom du secteur est requis.")
        lignes = await self._donnees.inserer("sectors", [{"name": nom}])
        logger.info("secteur_ajoute nom=%s", nom)
        return lignes[0]

    async def ajouter_type_energie(self, secteur: str, nom: str) -> dict[str, Any]:
        nom = (nom or "").strip()
        if not secteur or not nom:
            raise ErreurReferentiel("Le secteur et le nom du type d'énergie sont requis.")
        lignes = await self._donnees.inserer("energy_types", [{"sector_name": secteur, "name": nom}])
        return lignes[0]

    # ---- tableaux de codes ----

    async def _ajouter_code(
        self,
        table: str,
        colonne: str,
        cle: Mapping[str, Any],
        code: str,
        *,
        extra: Mapping[str, Any] | None = None,
    ) -> None:
        existante = await selectionner_une(self._donnees, table, colonnes=(colonne,), egal=cle)
        if existante is None:
            await self._donnees.inserer(table, [{**cle, colonne: [code], **(extra or {})}])
            return

        codes = list(existante.get(colonne) or [])
        if code not in codes:
            codes.append(code)
        await self._donnees.mettre_a_jour(table, {colonne: codes}, egal=cle)

    async def _renommer_code(self, table: str, colonne: str, cle: Mapping[str, Any], ancien: str, nouveau: str) -> None:
        existante = await selectionner_une(self._donnees, table, colonnes=(colonne,), egal=cle)
        if existante is None:
            return
        codes = [nouveau if c == ancien else c for c in (existante.get(colonne) or [])]
        await self._donnees.mettre_a_jour(table, {colonne: codes}, egal=cle)

    # ---- indicateurs ----

    async def ajouter_indicateur(
        self,
        selection: SelectionTaxonomie,
        indicateur: NouvelIndicateur,
        enjeu_cible: str | None = None,
    ) -> dict[str, Any]:
        cle = {
            **_cle_base(selection),
            "issue_name": _enjeu_cible(selection, enjeu_cible),
            "criteria_name": indicateur.nom_critere,
        }

        ligne = (await self._donnees.inserer("indicators", [indicateur.ligne()]))[0]
        await self._ajouter_code(
            "sector_standards_issues_criteria_indicators",
            "indicator_codes",
            cle,
            indicateur.code,
            extra={"unit": indicateur.unite},
        )
        logger.info("indicateur_ajoute code=%s critere=%s", indicateur.code, indicateur.nom_critere)
        return ligne

    async def modifier_indicateur(
        self,
        code: str,
        modifications: NouvelIndicateur,
        selection: SelectionTaxonomie,
        enjeu_cible: str | None = None,
    ) -> dict[str, Any]:
        lignes = await self._donnees.mettre_a_jour("indicators", modifications.ligne(), egal={"code": code})
        if not lignes:
            raise ElementIntrouvable(f"Indicateur introuvable : {code}")

        if selection.secteur and selection.types_energie and selection.normes:
            cle = {
                **_cle_base(selection),
                "issue_name": _enjeu_cible(selection, enjeu_cible),
                "criteria_name": modifications.nom_critere,
            }
            await self._renommer_code(
                "sector_standards_issues_criteria_indicators",
                "indicator_codes",
                cle,
                code,
                modifications.code,
            )
        return lignes[0]

    async def supprimer_indicateur(self, code: str, selection: SelectionTaxonomie) -> None:
        """Supprime l’indicateur et retire son code de toutes les jointures (secteur, première énergie)."""

        if await selectionner_une(self._donnees, "indicators", colonnes=("code",), egal={"code": code}) is None:
            raise ElementIntrouvable(f"Indicateur introuvable : {code}")

        if selection.secteur and selection.types_energie:
            portee = {"sector_name": selection.secteur, "energy_type_name": selection.types_energie[0]}
            lignes = await self._donnees.selectionner(
                "sector_standards_issues_criteria_indicators",
                colonnes=("standard_name", "issue_name", "criteria_name", "indicator_codes"),
                egal=portee,
            )
            for ligne in lignes:
                codes = ligne.get("indicator_codes") or []
                if code not in codes:
                    continue
                await self._donnees.mettre_a_jour(
                    "sector_standards_issues_criteria_indicators",
                    {"indicator_codes": [c for c in codes if c != code]},
                    egal={
                        **portee,
                        "standard_name": ligne["standard_name"],
                        "issue_name": ligne["issue_name"],
                        "criteria_name": ligne["criteria_name"],
                    },
                )

        await self._donnees.supprimer("indicators", egal={"code": code})
        logger.info("indicateur_supprime code=%s", code)

    # ---- critères ----

    async def ajouter_critere(
        self,
        selection: SelectionTaxonomie,
        critere: NouveauCritere,
        enjeu_cible: str | None = None,
    ) -> dict[str, Any]:
        cle = {**_cle_base(selection), "issue_name": _enjeu_cible(selection, enjeu_cible)}

        ligne = (
            await self._donnees.inserer(
                "criteria",
                [{"code": critere.code, "name": critere.nom, "description": critere.description}],
            )
        )[0]
        await self._ajouter_code("sector_standards_issues_criteria", "criteria_codes", cle, critere.code)
        logger.info("critere_ajoute code=%s enjeu=%s", critere.code, cle["issue_name"])
        return ligne

