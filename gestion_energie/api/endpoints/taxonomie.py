from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query, status

from gestion_energie.api.dependances import fournir_service_donnees
from gestion_energie.api.dependances_auth import fournir_identite, verifier_authentifie, verifier_roles_requis
from gestion_energie.api.reponses import http_depuis_erreur_donnees, succes
from gestion_energie.api.schemas.taxonomie import (
    CritereCreation,
    ElementTaxonomieLecture,
    IndicateurCreation,
    IndicateurResoluLecture,
    SecteurCreation,
    SelectionOrganisationCreation,
    SelectionTaxonomieSchema,
    TypeEnergieCreation,
)
from gestion_energie.core.service_donnees import ErreurServiceDonnees, ServiceDonnees
from gestion_energie.domaine.enums.types import Role
from gestion_energie.domaine.services.agregation_taxonomie import SelectionTaxonomie, ServiceAgregationTaxonomie
from gestion_energie.domaine.services.contexte_session import Identite
from gestion_energie.domaine.services.organisations import ErreurOrganisation, ServiceOrganisations
from gestion_energie.domaine.services.referentiel_taxonomie import (
    ElementIntrouvable,
    ErreurReferentiel,
    NouveauCritere,
    NouvelIndicateur,
    ServiceReferentielTaxonomie,
)


routeur_taxonomie = APIRouter(
    prefix="/api/taxonomie",
    tags=["taxonomie"],
    dependencies=[Depends(verifier_authentifie)],
)

routeur_selections = APIRouter(
    prefix="/api/selections",
    tags=["taxonomie"],
    dependencies=[Depends(verifier_authentifie)],
)

_admin = Depends(verifier_roles_requis(Role.ADMIN))


def _http(e: ErreurReferentiel) -> HTTPException:
    if isinstance(e, ElementIntrouvable):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# ==============================
# LECTURE (cascade de l’assistant)
# ==============================


@routeur_taxonomie.get("/secteurs")
async def lister_secteurs(donnees: ServiceDonnees = Depends(fournir_service_donnees)) -> list[dict]:
    try:
        return await ServiceAgregationTaxonomie(donnees).lister_secteurs()
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)


@routeur_taxonomie.get("/types-energie")
async def lister_types_energie(
    secteur: str | None = Query(default=None),
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> list[dict]:
    try:
        return await ServiceAgregationTaxonomie(donnees).lister_types_energie(secteur)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)


@routeur_taxonomie.get("/normes")
async def lister_normes(
    secteur: str | None = Query(default=None),
    types_energie: list[str] = Query(default=[]),
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> list[str]:
    try:
        return await ServiceAgregationTaxonomie(donnees).lister_normes(secteur, types_energie)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)


@routeur_taxonomie.get("/enjeux", response_model=list[ElementTaxonomieLecture])
async def lister_enjeux(
    secteur: str | None = Query(default=None),
    types_energie: list[str] = Query(default=[]),
    normes: list[str] = Query(default=[]),
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> list[ElementTaxonomieLecture]:
    try:
        enjeux = await ServiceAgregationTaxonomie(donnees).lister_enjeux(secteur, types_energie, normes)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)
    return [ElementTaxonomieLecture(**asdict(enjeu)) for enjeu in enjeux]


@routeur_taxonomie.get("/criteres", response_model=list[ElementTaxonomieLecture])
async def lister_criteres(
    secteur: str | None = Query(default=None),
    types_energie: list[str] = Query(default=[]),
    normes: list[str] = Query(default=[]),
    enjeux: list[str] = Query(default=[]),
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> list[ElementTaxonomieLecture]:
    try:
        criteres = await ServiceAgregationTaxonomie(donnees).lister_criteres(secteur, types_energie, normes, enjeux)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)
    return [ElementTaxonomieLecture(**asdict(c)) for c in criteres]


@routeur_taxonomie.post("/indicateurs/resolution", response_model=list[IndicateurResoluLecture])
async def resoudre_indicateurs(
    requete: SelectionTaxonomieSchema,
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> list[IndicateurResoluLecture]:
    """Indicateurs disponibles pour la sélection (liste vide si la sélection est incomplète)."""

    try:
        indicateurs = await ServiceAgregationTaxonomie(donnees).resoudre_indicateurs(requete.vers_selection())
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)
    return [IndicateurResoluLecture(**asdict(i)) for i in indicateurs]


# ==============================
# ADMINISTRATION DU RÉFÉRENTIEL
# ==============================


@routeur_taxonomie.post("/secteurs", status_code=status.HTTP_201_CREATED, dependencies=[_admin])
async def ajouter_secteur(
    requete: SecteurCreation,
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> dict:
    try:
        secteur = await ServiceReferentielTaxonomie(donnees).ajouter_secteur(requete.nom)
    except ErreurReferentiel as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)
    return succes("Secteur ajouté avec succès", secteur=secteur)


@routeur_taxonomie.post("/types-energie", status_code=status.HTTP_201_CREATED, dependencies=[_admin])
async def ajouter_type_energie(
    requete: TypeEnergieCreation,
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> dict:
    try:
        type_energie = await ServiceReferentielTaxonomie(donnees).ajouter_type_energie(requete.secteur, requete.nom)
    except ErreurReferentiel as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)
    return succes("Type d'énergie ajouté avec succès", type_energie=type_energie)


@routeur_taxonomie.post("/indicateurs", status_code=status.HTTP_201_CREATED, dependencies=[_admin])
async def ajouter_indicateur(
    requete: IndicateurCreation,
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> dict:
    try:
        indicateur = await ServiceReferentielTaxonomie(donnees).ajouter_indicateur(
            requete.selection.vers_selection(),
            NouvelIndicateur(**requete.indicateur.model_dump()),
            requete.enjeu_cible,
        )
    except ErreurReferentiel as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e, prefixe="Erreur lors de l'ajout de l'indicateur")
    return succes("Indicateur ajouté avec succès", indicateur=indicateur)


@routeur_taxonomie.put("/indicateurs/{code}", dependencies=[_admin])
async def modifier_indicateur(
    code: str,
    requete: IndicateurCreation,
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> dict:
    try:
        indicateur = await ServiceReferentielTaxonomie(donnees).modifier_indicateur(
            code,
            NouvelIndicateur(**requete.indicateur.model_dump()),
            requete.selection.vers_selection(),
            requete.enjeu_cible,
        )
    except ErreurReferentiel as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e, prefixe="Erreur lors de la modification de l'indicateur")
    return succes("Indicateur modifié avec succès", indicateur=indicateur)


@routeur_taxonomie.delete("/indicateurs/{code}", dependencies=[_admin])
async def supprimer_indicateur(
    code: str,
    secteur: str | None = Query(default=None),
    type_energie: str | None = Query(default=None),
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> dict:
    selection = SelectionTaxonomie(secteur=secteur, types_energie=[type_energie] if type_energie else [])
    try:
        await ServiceReferentielTaxonomie(donnees).supprimer_indicateur(code, selection)
    except ErreurReferentiel as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e, prefixe="Erreur lors de la suppression de l'indicateur")
    return succes("Indicateur supprimé avec succès")


@routeur_taxonomie.post("/criteres", status_code=status.HTTP_201_CREATED, dependencies=[_admin])
async def ajouter_critere(
    requete: CritereCreation,
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> dict:
    try:
        critere = await ServiceReferentielTaxonomie(donnees).ajouter_critere(
            requete.selection.vers_selection(),
            NouveauCritere(**requete.critere.model_dump()),
            requete.enjeu_cible,
        )
    except ErreurReferentiel as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e, prefixe="Erreur lors de l'ajout du critère")
    return succes("Critère ajouté avec succès", critere=critere)


# ==============================
# SÉLECTION D’UNE ORGANISATION
# ==============================


@routeur_selections.post("", status_code=status.HTTP_201_CREATED)
async def enregistrer_selection(
    requete: SelectionOrganisationCreation,
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
    identite: Identite = Depends(fournir_identite),
) -> dict:
    # Hors admin plateforme : uniquement pour sa propre organisation.
    if identite.role is not Role.ADMIN and identite.organization_name != requete.organization_name:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Accès interdit.")

    try:
        selection = await ServiceOrganisations(donnees).enregistrer_selection(
            requete.organization_name,
            requete.selection.vers_selection(),
            requete.indicateurs,
        )
    except ErreurOrganisation as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)
    return succes("Sélection enregistrée avec succès", selection=selection)
