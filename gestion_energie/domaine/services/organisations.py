from __future__ import annotations

"""Organisations et leur hiérarchie : organisation -> filières -> filiales -> sites.

Une entreprise « simple » n’a que des sites rattachés directement à
l’organisation ; une entreprise « complexe » déclare la hiérarchie complète.
Les insertions sont enchaînées sans transaction : une erreur en cours de route
laisse les lignes déjà créées en place (suppression de l’organisation =
nettoyage, par cascade).
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from gestion_energie.core.service_donnees import ServiceDonnees, selectionner_une
from gestion_energie.domaine.enums.types import NiveauOrganisation
from gestion_energie.domaine.services.agregation_taxonomie import SelectionTaxonomie


logger = logging.getLogger(__name__)


CHAMPS_COORDONNEES = ("description", "address", "city", "country", "phone", "email", "website")


class ErreurOrganisation(Exception):
    """Erreur générique de gestion des organisations."""


class OrganisationIntrouvable(ErreurOrganisation):
    pass


@dataclass
class OrganisationDetaillee:
    organisation: dict[str, Any]
    filieres: list[dict[str, Any]] = field(default_factory=list)
    filiales: list[dict[str, Any]] = field(default_factory=list)
    sites: list[dict[str, Any]] = field(default_factory=list)
    selections: list[dict[str, Any]] = field(default_factory=list)

    def arbre(self) -> dict[str, Any]:
        """Vue imbriquée ; les sites sans filiale restent au niveau de l’organisation."""

        def _sites(filiale: str) -> list[dict[str, Any]]:
            return [s for s in self.sites if s.get("filiale_name") == filiale]

        def _filiales(filiere: str) -> list[dict[str, Any]]:
            return [
                {**f, "sites": _sites(f["name"])}
                for f in self.filiales
                if f.get("filiere_name") == filiere
            ]

        return {
            **self.organisation,
            "filieres": [{**f, "filiales": _filiales(f["name"])} for f in self.filieres],
            "sites": [s for s in self.sites if not s.get("filiale_name")],
            "selections": self.selections,
        }


def _coordonnees(valeurs: Mapping[str, Any]) -> dict[str, Any]:
    return {c: valeurs.get(c) for c in CHAMPS_COORDONNEES}


def _nom(valeurs: Mapping[str, Any], libelle: str) -> str:
    nom = str(valeurs.get("name") or "").strip()
    if not nom:
        raise ErreurOrganisation(f"Le nom {libelle} est requis.")
    return nom


class ServiceOrganisations:
    def __init__(self, donnees: ServiceDonnees) -> None:
        self._donnees = donnees

    async def lister_organisations(self) -> list[dict[str, Any]]:
        return await self._donnees.selectionner("organizations", ordre="name")

    async def detail_organisation(self, nom: str) -> OrganisationDetaillee:
        organisation = await selectionner_une(self._donnees, "organizations", egal={"name": nom})
        if organisation is None:
            raise OrganisationIntrouvable(f"Organisation introuvable : {nom}")

        portee = {"organization_name": nom}
        return OrganisationDetaillee(
            organisation=organisation,
            filieres=await self._donnees.selectionner("filieres", egal=portee, ordre="name"),
            filiales=await self._donnees.selectionner("filiales", egal=portee, ordre="name"),
            sites=await self._donnees.selectionner("sites", egal=portee, ordre="name"),
            selections=await self._donnees.selectionner("organization_selections", egal=portee, ordre="-created_at"),
        )

    async def creer_organisation(
        self,
        organisation: Mapping[str, Any],
        *,
        email_createur: str | None = None,
        selection: SelectionTaxonomie | None = None,
        indicateurs: Sequence[str] = (),
    ) -> dict[str, Any]:
        """Crée l’organisation, sa hiérarchie, la sélection de l’assistant puis rattache le créateur.

        `organisation["filieres"]` : filières avec leurs `filiales`, elles-mêmes avec leurs `sites`.
        `organisation["sites"]` : sites rattachés directement (entreprise simple).
        """

        nom = _nom(organisation, "de l'organisation")

        ligne = (
            await self._donnees.inserer(
                "organizations",
                [{"name": nom, "sector_name": organisation.get("sector_name"), **_coordonnees(organisation)}],
            )
        )[0]

        for filiere in organisation.get("filieres") or []:
            nom_filiere = _nom(filiere, "de la filière")
            await self._donnees.inserer(
                "filieres",
                [
                    {
                        "name": nom_filiere,
                        "organization_name": nom,
                        "location": filiere.get("location"),
                        "manager": filiere.get("manager"),
                    }
                ],
            )
            for filiale in filiere.get("filiales") or []:
                nom_filiale = _nom(filiale, "de la filiale")
                await self._donnees.inserer(
                    "filiales",
                    [
                        {
                            "name": nom_filiale,
                            "organization_name": nom,
                            "filiere_name": nom_filiere,
                            **_coordonnees(filiale),
                        }
                    ],
                )
                for site in filiale.get("sites") or []:
                    await self.ajouter_site(nom, site, filiere_name=nom_filiere, filiale_name=nom_filiale)

        for site in organisation.get("sites") or []:
            await self.ajouter_site(nom, site)

        if selection is not None and selection.secteur and selection.types_energie:
            await self.enregistrer_selection(nom, selection, indicateurs)

        if email_createur:
            await self._donnees.mettre_a_jour(
                "profiles",
                {"organization_name": nom, "organization_level": NiveauOrganisation.ORGANISATION.value},
                egal={"email": email_createur},
            )

        logger.info("organisation_creee nom=%s createur=%s", nom, email_createur)
        return ligne

    async def modifier_organisation(self, nom: str, valeurs: Mapping[str, Any]) -> dict[str, Any]:
        champs = {c: valeurs[c] for c in CHAMPS_COORDONNEES if c in valeurs}
        if champs:
            lignes = await self._donnees.mettre_a_jour("organizations", champs, egal={"name": nom})
        else:
            lignes = await self._donnees.selectionner("organizations", egal={"name": nom})
        if not lignes:
            raise OrganisationIntrouvable(f"Organisation introuvable : {nom}")
        return lignes[0]

    async def ajouter_site(
        self,
        organization_name: str,
        site: Mapping[str, Any],
        *,
        filiere_name: str | None = None,
        filiale_name: str | None = None,
    ) -> dict[str, Any]:
        lignes = await self._donnees.inserer(
            "sites",
            [
                {
                    "name": _nom(site, "du site"),
                    "organization_name": organization_name,
                    "filiere_name": filiere_name or None,
                    "filiale_name": filiale_name or None,
                    **_coordonnees(site),
                }
            ],
        )
        return lignes[0]

    async def supprimer_organisation(self, nom: str) -> None:
        if not await self._donnees.supprimer("organizations", egal={"name": nom}):
            raise OrganisationIntrouvable(f"Organisation introuvable : {nom}")
        logger.info("organisation_supprimee nom=%s", nom)

    async def enregistrer_selection(
        self,
        organization_name: str,
        selection: SelectionTaxonomie,
        indicateurs: Sequence[str] = (),
    ) -> dict[str, Any]:
        """Sélection finale de l’assistant ; seul le premier type d’énergie est conservé."""

        if not selection.secteur or not selection.types_energie:
            raise ErreurOrganisation("Sélectionnez un secteur et un type d'énergie.")

        lignes = await self._donnees.inserer(
            "organization_selections",
            [
                {
                    "organization_name": organization_name,
                    "sector_name": selection.secteur,
                    "energy_type_name": selection.types_energie[0],
                    "standard_names": list(selection.normes),
                    "issue_names": list(selection.enjeux),
                    "criteria_names": list(selection.criteres),
                    "indicator_names": list(indicateurs),
                }
            ],
        )
        return lignes[0]
