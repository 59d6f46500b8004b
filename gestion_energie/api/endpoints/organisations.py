from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from gestion_energie.api.dependances import fournir_service_donnees
from gestion_energie.api.dependances_auth import fournir_identite, verifier_authentifie, verifier_roles_requis
from gestion_energie.api.reponses import http_depuis_erreur_donnees, succes
from gestion_energie.api.schemas.organisations import OrganisationCreation, OrganisationMiseAJour, SiteAjout
from gestion_energie.core.service_donnees import ErreurServiceDonnees, ServiceDonnees
from gestion_energie.domaine.enums.types import Role
from gestion_energie.domaine.services.contexte_session import Identite
from gestion_energie.domaine.services.organisations import (
    ErreurOrganisation,
    OrganisationIntrouvable,
    ServiceOrganisations,
)


routeur_organisations = APIRouter(
    prefix="/api/organisations",
    tags=["organisations"],
    dependencies=[Depends(verifier_authentifie)],
)

_gestion = Depends(verifier_roles_requis(Role.ADMIN, Role.ADMIN_CLIENT))


def _http(e: ErreurOrganisation) -> HTTPException:
    if isinstance(e, OrganisationIntrouvable):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@routeur_organisations.get("", dependencies=[_gestion])
async def lister_organisations(donnees: ServiceDonnees = Depends(fournir_service_donnees)) -> list[dict]:
    try:
        return await ServiceOrganisations(donnees).lister_organisations()
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)


@routeur_organisations.get("/{nom}", dependencies=[_gestion])
async def detail_organisation(nom: str, donnees: ServiceDonnees = Depends(fournir_service_donnees)) -> dict:
    try:
        detail = await ServiceOrganisations(donnees).detail_organisation(nom)
    except ErreurOrganisation as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)
    return detail.arbre()


@routeur_organisations.post("", status_code=status.HTTP_201_CREATED)
async def creer_organisation(
    requete: OrganisationCreation,
    identite: Identite = Depends(fournir_identite),
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> dict:
    """Fin de l’assistant : organisation + hiérarchie + sélection, puis rattachement du créateur."""

    valeurs = requete.model_dump(exclude={"selection", "indicateurs"})
    try:
        organisation = await ServiceOrganisations(donnees).creer_organisation(
            valeurs,
            email_createur=identite.email,
            selection=requete.selection.vers_selection() if requete.selection else None,
            indicateurs=requete.indicateurs,
        )
    except ErreurOrganisation as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e, prefixe="Erreur lors de l'enregistrement")

    return succes("Organisation créée avec succès.", organisation=organisation)


@routeur_organisations.patch("/{nom}", dependencies=[_gestion])
async def modifier_organisation(
    nom: str,
    requete: OrganisationMiseAJour,
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> dict:
    try:
        organisation = await ServiceOrganisations(donnees).modifier_organisation(
            nom, requete.model_dump(exclude_unset=True)
        )
    except ErreurOrganisation as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e, prefixe="Erreur lors de la modification")

    return succes("Entreprise modifiée avec succès", organisation=organisation)


@routeur_organisations.post("/{nom}/sites", status_code=status.HTTP_201_CREATED, dependencies=[_gestion])
async def ajouter_site(
    nom: str,
    requete: SiteAjout,
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> dict:
    try:
        site = await ServiceOrganisations(donnees).ajouter_site(
            nom,
            requete.model_dump(exclude={"filiere_name", "filiale_name"}),
            filiere_name=requete.filiere_name,
            filiale_name=requete.filiale_name,
        )
    except ErreurOrganisation as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)

    return succes("Site ajouté avec succès", site=site)


@routeur_organisations.delete("/{nom}", dependencies=[Depends(verifier_roles_requis(Role.ADMIN))])
async def supprimer_organisation(nom: str, donnees: ServiceDonnees = Depends(fournir_service_donnees)) -> dict:
    try:
        await ServiceOrganisations(donnees).supprimer_organisation(nom)
    except ErreurOrganisation as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e, prefixe="Erreur lors de la suppression")

    return succes("Entreprise supprimée avec succès")
