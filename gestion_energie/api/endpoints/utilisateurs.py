from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from gestion_energie.api.dependances import fournir_service_auth, fournir_service_donnees
from gestion_energie.api.dependances_auth import fournir_identite, verifier_roles_requis
from gestion_energie.api.reponses import http_depuis_erreur_donnees, succes
from gestion_energie.api.schemas.utilisateurs import (
    InformationsMiseAJour,
    UtilisateurConfiguration,
    UtilisateurCreation,
)
from gestion_energie.core.service_auth import ServiceAuth
from gestion_energie.core.service_donnees import ErreurServiceDonnees, ServiceDonnees
from gestion_energie.domaine.enums.types import Role
from gestion_energie.domaine.services.contexte_session import Identite
from gestion_energie.domaine.services.classification_erreurs import (
    MESSAGE_INSCRIPTION_DEFAUT,
    REGLES_INSCRIPTION,
    classer_erreur,
)
from gestion_energie.domaine.services.utilisateurs import (
    ErreurUtilisateur,
    HorsPerimetre,
    NiveauNonAutorise,
    RoleNonAutorise,
    ServiceUtilisateurs,
    UtilisateurIntrouvable,
)


routeur_utilisateurs = APIRouter(
    prefix="/api/utilisateurs",
    tags=["utilisateurs"],
    dependencies=[Depends(verifier_roles_requis(Role.ADMIN, Role.ADMIN_CLIENT))],
)


def _service(
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
    auth: ServiceAuth = Depends(fournir_service_auth),
    identite: Identite = Depends(fournir_identite),
) -> ServiceUtilisateurs:
    if identite.role is not Role.ADMIN_CLIENT:
        return ServiceUtilisateurs(donnees, auth)
    # Un admin_client ne gère que son organisation.
    if not identite.organization_name:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Aucune organisation rattachée.")
    return ServiceUtilisateurs(donnees, auth, perimetre=identite.organization_name)


def _http(e: ErreurUtilisateur) -> HTTPException:
    if isinstance(e, UtilisateurIntrouvable):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, HorsPerimetre):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, (NiveauNonAutorise, RoleNonAutorise)):
        return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@routeur_utilisateurs.get("")
async def lister_utilisateurs(
    organization_name: str | None = Query(default=None),
    service: ServiceUtilisateurs = Depends(_service),
) -> list[dict]:
    try:
        utilisateurs = await service.lister_utilisateurs(organization_name)
    except ErreurUtilisateur as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)
    return [u.vers_dict() for u in utilisateurs]


@routeur_utilisateurs.post("", status_code=status.HTTP_201_CREATED)
async def creer_utilisateur(
    requete: UtilisateurCreation,
    service: ServiceUtilisateurs = Depends(_service),
) -> dict:
    try:
        utilisateur = await service.creer_utilisateur(
            email=requete.email,
            mot_de_passe=requete.mot_de_passe,
            nom_complet=requete.nom_complet,
            fonction=requete.fonction,
            role=requete.role,
            organization_name=requete.organization_name,
        )
    except ErreurUtilisateur as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        if e.code in {"email_exists", "weak_password"}:
            code_http = status.HTTP_409_CONFLICT if e.code == "email_exists" else status.HTTP_400_BAD_REQUEST
            raise HTTPException(
                status_code=code_http,
                detail=classer_erreur(e, REGLES_INSCRIPTION, defaut=MESSAGE_INSCRIPTION_DEFAUT),
            )
        raise http_depuis_erreur_donnees(e)

    return succes("Utilisateur créé avec succès", utilisateur=utilisateur.vers_dict())


@routeur_utilisateurs.put("/{email}/rattachement")
async def configurer_utilisateur(
    email: str,
    requete: UtilisateurConfiguration,
    service: ServiceUtilisateurs = Depends(_service),
) -> dict:
    try:
        profil = await service.configurer_utilisateur(
            email,
            role=requete.role,
            niveau=requete.niveau,
            organization_name=requete.organization_name,
            entite=requete.entite,
        )
    except ErreurUtilisateur as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)

    return succes("Utilisateur mis à jour avec succès", profil=profil)


@routeur_utilisateurs.patch("/{email}")
async def modifier_informations(
    email: str,
    requete: InformationsMiseAJour,
    service: ServiceUtilisateurs = Depends(_service),
) -> dict:
    try:
        informations = await service.modifier_informations(email, requete.model_dump(exclude_unset=True))
    except ErreurUtilisateur as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)

    return succes("Informations mises à jour", informations=informations)


@routeur_utilisateurs.delete("/{email}")
async def supprimer_utilisateur(email: str, service: ServiceUtilisateurs = Depends(_service)) -> dict:
    try:
        await service.supprimer_utilisateur(email)
    except ErreurUtilisateur as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)

    return succes("Utilisateur supprimé avec succès")
