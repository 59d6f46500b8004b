from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from gestion_energie.api.dependances import fournir_service_auth, fournir_service_donnees
from gestion_energie.api.dependances_auth import fournir_contexte_session, fournir_identite
from gestion_energie.api.reponses import http_validation, succes
from gestion_energie.api.schemas.auth import (
    IdentiteLecture,
    ReponseSession,
    RequeteAdminClient,
    RequeteInscription,
    RequeteLogin,
)
from gestion_energie.core.service_auth import ServiceAuth
from gestion_energie.core.service_donnees import ErreurServiceDonnees, ServiceDonnees
from gestion_energie.domaine.services.classification_erreurs import (
    MESSAGE_CONNEXION_DEFAUT,
    MESSAGE_INSCRIPTION_DEFAUT,
    REGLES_CONNEXION,
    REGLES_INSCRIPTION,
    classer_erreur,
    est_erreur_reseau,
)
from gestion_energie.domaine.services.contexte_session import ContexteSession, Identite, ResultatOperation
from gestion_energie.domaine.services.validation import (
    valider_formulaire_connexion,
    valider_formulaire_inscription,
)


routeur_auth = APIRouter(prefix="/auth", tags=["auth"])


def _identite_lecture(identite: Identite | None) -> IdentiteLecture | None:
    if identite is None:
        return None
    return IdentiteLecture(
        email=identite.email,
        role=identite.role.value,
        nom_complet=identite.nom_complet,
        organization_name=identite.organization_name,
        original_role=identite.original_role.value if identite.original_role else None,
        cree_le=identite.cree_le,
        derniere_connexion_le=identite.derniere_connexion_le,
    )


def _erreur_distante(resultat: ResultatOperation) -> ErreurServiceDonnees:
    return ErreurServiceDonnees(resultat.erreur or "", code=resultat.code)


@routeur_auth.get("/me", response_model=IdentiteLecture)
async def me(identite: Identite = Depends(fournir_identite)) -> IdentiteLecture:
    return _identite_lecture(identite)


@routeur_auth.post("/login", response_model=ReponseSession)
async def login(
    requete: RequeteLogin,
    auth: ServiceAuth = Depends(fournir_service_auth),
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> ReponseSession:
    erreurs = valider_formulaire_connexion(requete.model_dump())
    if erreurs:
        raise http_validation(erreurs)

    contexte = ContexteSession(auth, donnees)
    resultat = await contexte.login(requete.email, requete.mot_de_passe)
    if not resultat.succes:
        erreur = _erreur_distante(resultat)
        if est_erreur_reseau(erreur):
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=erreur.message)
        if resultat.code == "over_request_rate_limit":
            code_http = status.HTTP_429_TOO_MANY_REQUESTS
        else:
            code_http = status.HTTP_401_UNAUTHORIZED
        raise HTTPException(
            status_code=code_http,
            detail=classer_erreur(erreur, REGLES_CONNEXION, defaut=MESSAGE_CONNEXION_DEFAUT),
        )

    return ReponseSession(token_acces=contexte.jeton, identite=_identite_lecture(contexte.courant()))


@routeur_auth.post("/register", response_model=ReponseSession, status_code=status.HTTP_201_CREATED)
async def register(
    requete: RequeteInscription,
    auth: ServiceAuth = Depends(fournir_service_auth),
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> ReponseSession:
    valeurs = requete.model_dump()
    erreurs = valider_formulaire_inscription(valeurs)
    if erreurs:
        raise http_validation(erreurs)

    contexte = ContexteSession(auth, donnees)
    resultat = await contexte.register(valeurs)
    if not resultat.succes:
        erreur = _erreur_distante(resultat)
        code_http = status.HTTP_409_CONFLICT if resultat.code == "email_exists" else status.HTTP_400_BAD_REQUEST
        raise HTTPException(
            status_code=code_http,
            detail=classer_erreur(erreur, REGLES_INSCRIPTION, defaut=MESSAGE_INSCRIPTION_DEFAUT),
        )

    return ReponseSession(token_acces=contexte.jeton, identite=_identite_lecture(contexte.courant()))


@routeur_auth.post("/logout")
async def logout(contexte: ContexteSession = Depends(fournir_contexte_session)) -> dict:
    resultat = await contexte.logout()
    if not resultat.succes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=resultat.erreur)
    return succes("Déconnexion effectuée.")


@routeur_auth.post("/admin-client", response_model=IdentiteLecture)
async def devenir_admin_client(
    requete: RequeteAdminClient,
    contexte: ContexteSession = Depends(fournir_contexte_session),
    _identite: Identite = Depends(fournir_identite),
) -> IdentiteLecture:
    resultat = await contexte.devenir_admin_client(requete.organization_name)
    if not resultat.succes:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=resultat.erreur)
    return _identite_lecture(contexte.courant())


@routeur_auth.post("/retour-admin", response_model=IdentiteLecture)
async def retour_admin(
    contexte: ContexteSession = Depends(fournir_contexte_session),
    _identite: Identite = Depends(fournir_identite),
) -> IdentiteLecture:
    resultat = await contexte.retour_admin()
    if not resultat.succes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=resultat.erreur)
    return _identite_lecture(contexte.courant())
