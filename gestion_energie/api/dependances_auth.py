from __future__ import annotations

from fastapi import Depends, Header, HTTPException, status

from gestion_energie.api.dependances import fournir_service_auth, fournir_service_donnees
from gestion_energie.core.service_auth import ServiceAuth
from gestion_energie.core.service_donnees import ServiceDonnees
from gestion_energie.domaine.enums.types import Role
from gestion_energie.domaine.services.contexte_session import ContexteSession, Identite


def _extraire_bearer(authorization: str | None) -> str | None:
    if authorization is None:
        return None
    prefix = "bearer "
    if authorization.lower().startswith(prefix):
        return authorization[len(prefix) :].strip() or None
    return None


async def fournir_contexte_session(
    auth: ServiceAuth = Depends(fournir_service_auth),
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> ContexteSession:
    """Contexte de session de la requête, déjà résolu (authentifié ou non)."""

    contexte = ContexteSession(auth, donnees, jeton=_extraire_bearer(authorization))
    await contexte.demarrer()
    return contexte


def fournir_identite(contexte: ContexteSession = Depends(fournir_contexte_session)) -> Identite:
    identite = contexte.courant()
    if identite is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session absente ou expirée.")
    return identite


def verifier_authentifie(identite: Identite = Depends(fournir_identite)) -> None:
    """Pour `dependencies=[...]` : le travail est fait par `fournir_identite`."""

    return None


def verifier_roles_requis(*roles_requis: Role):
    async def _dep(identite: Identite = Depends(fournir_identite)) -> None:
        if identite.role not in roles_requis:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Accès interdit.")

    return _dep
