from __future__ import annotations

"""Périodes de collecte des données énergétiques.

Unicité fonctionnelle : (organisation, année, type, numéro). L’enregistrement
lit d’abord la période existante puis met à jour ou insère ; entre les deux,
une autre écriture peut passer (dans ce cas la contrainte unique de la base
rejette l’insertion, remontée en 409 par l’API).
"""

import logging
from collections.abc import Mapping
from typing import Any

from gestion_energie.core.service_donnees import ServiceDonnees, selectionner_une
from gestion_energie.domaine.services.validation import FormulairePeriodeCollecte, valider_periode_collecte


logger = logging.getLogger(__name__)


class ErreurPeriodeCollecte(Exception):
    def __init__(self, message: str, *, erreurs: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.erreurs = erreurs or {}


class PeriodeIntrouvable(ErreurPeriodeCollecte):
    pass


def _valider(valeurs: Mapping[str, Any]) -> dict[str, Any]:
    erreurs = valider_periode_collecte(valeurs)
    if erreurs:
        raise ErreurPeriodeCollecte("Période de collecte invalide.", erreurs=erreurs)
    return FormulairePeriodeCollecte.model_validate(dict(valeurs)).model_dump(mode="python")


def _en_ligne(formulaire: Mapping[str, Any]) -> dict[str, Any]:
    return {
        **formulaire,
        "period_type": formulaire["period_type"].value,
        "status": formulaire["status"].value,
    }


class ServicePeriodesCollecte:
    def __init__(self, donnees: ServiceDonnees) -> None:
        self._donnees = donnees

    async def lister(self, organization_name: str | None = None, *, statut: str | None = None) -> list[dict[str, Any]]:
        egal: dict[str, Any] = {}
        if organization_name:
            egal["organization_name"] = organization_name
        if statut:
            egal["status"] = statut
        return await self._donnees.selectionner("collection_periods", egal=egal or None, ordre="-created_at")

    async def enregistrer(self, valeurs: Mapping[str, Any]) -> tuple[dict[str, Any], bool]:
        """Crée la période, ou met à jour celle qui existe déjà. Retourne (ligne, créée)."""

        ligne = _en_ligne(_valider(valeurs))
        cle = {c: ligne[c] for c in ("organization_name", "year", "period_type", "period_number")}

        existante = await selectionner_une(self._donnees, "collection_periods", colonnes=("id",), egal=cle)
        if existante is not None:
            lignes = await self._donnees.mettre_a_jour("collection_periods", ligne, egal={"id": existante["id"]})
            logger.info("periode_mise_a_jour id=%s", existante["id"])
            return lignes[0], False

        lignes = await self._donnees.inserer("collection_periods", [ligne])
        logger.info("periode_creee organisation=%s annee=%s", cle["organization_name"], cle["year"])
        return lignes[0], True

    async def modifier(self, id_periode: str, valeurs: Mapping[str, Any]) -> dict[str, Any]:
        actuelle = await selectionner_une(self._donnees, "collection_periods", egal={"id": id_periode})
        if actuelle is None:
            raise PeriodeIntrouvable(f"Période introuvable : {id_periode}")

        fusion = {
            c: actuelle.get(c)
            for c in ("organization_name", "year", "period_type", "period_number", "start_date", "end_date", "status")
        }
        fusion.update({k: v for k, v in valeurs.items() if k in fusion})

        lignes = await self._donnees.mettre_a_jour(
            "collection_periods",
            _en_ligne(_valider(fusion)),
            egal={"id": id_periode},
        )
        return lignes[0]

    async def supprimer(self, id_periode: str) -> None:
        if not await self._donnees.supprimer("collection_periods", egal={"id": id_periode}):
            raise PeriodeIntrouvable(f"Période introuvable : {id_periode}")
