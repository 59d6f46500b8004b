from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from gestion_energie.api.dependances import fournir_service_donnees
from gestion_energie.api.dependances_auth import verifier_roles_requis
from gestion_energie.api.reponses import http_depuis_erreur_donnees, http_validation, succes
from gestion_energie.api.schemas.periodes_collecte import PeriodeCollecteEntree, PeriodeCollecteMiseAJour
from gestion_energie.core.service_donnees import ErreurServiceDonnees, ServiceDonnees
from gestion_energie.domaine.enums.types import Role
from gestion_energie.domaine.services.periodes_collecte import (
    ErreurPeriodeCollecte,
    PeriodeIntrouvable,
    ServicePeriodesCollecte,
)


routeur_periodes_collecte = APIRouter(
    prefix="/api/periodes-collecte",
    tags=["periodes_collecte"],
    dependencies=[Depends(verifier_roles_requis(Role.ADMIN, Role.ADMIN_CLIENT))],
)


def _http(e: ErreurPeriodeCollecte) -> HTTPException:
    if isinstance(e, PeriodeIntrouvable):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return http_validation(e.erreurs)


@routeur_periodes_collecte.get("")
async def lister_periodes(
    organization_name: str | None = Query(default=None),
    statut: str | None = Query(default=None),
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> list[dict]:
    try:
        return await ServicePeriodesCollecte(donnees).lister(organization_name, statut=statut)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e)


@routeur_periodes_collecte.post("")
async def enregistrer_periode(
    requete: PeriodeCollecteEntree,
    response: Response,
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> dict:
    """Crée la période (201) ou met à jour celle qui existe pour la même clé (200)."""

    try:
        periode, cree = await ServicePeriodesCollecte(donnees).enregistrer(requete.model_dump())
    except ErreurPeriodeCollecte as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e, prefixe="Erreur lors de l'enregistrement")

    if cree:
        response.status_code = status.HTTP_201_CREATED
        return succes("Période de collecte créée avec succès", periode=periode)
    return succes("Période de collecte mise à jour avec succès", periode=periode)


@routeur_periodes_collecte.patch("/{id_periode}")
async def modifier_periode(
    id_periode: str,
    requete: PeriodeCollecteMiseAJour,
    donnees: ServiceDonnees = Depends(fournir_service_donnees),
) -> dict:
    try:
        periode = await ServicePeriodesCollecte(donnees).modifier(id_periode, requete.model_dump(exclude_unset=True))
    except ErreurPeriodeCollecte as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e, prefixe="Erreur lors de la modification")

    return succes("Période de collecte modifiée avec succès", periode=periode)


@routeur_periodes_collecte.delete("/{id_periode}")
async def supprimer_periode(id_periode: str, donnees: ServiceDonnees = Depends(fournir_service_donnees)) -> dict:
    try:
        await ServicePeriodesCollecte(donnees).supprimer(id_periode)
    except ErreurPeriodeCollecte as e:
        raise _http(e)
    except ErreurServiceDonnees as e:
        raise http_depuis_erreur_donnees(e, prefixe="Erreur lors de la suppression")

    return succes("Période de collecte supprimée avec succès")
