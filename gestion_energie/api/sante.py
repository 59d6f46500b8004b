from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from gestion_energie.api.dependances import fournir_service_donnees
from gestion_energie.core.service_donnees import ErreurServiceDonnees, ServiceDonnees

logger = logging.getLogger(__name__)

routeur_sante = APIRouter(prefix="/health", tags=["sante"])


@routeur_sante.get("")
async def vivacite() -> dict[str, str]:
    return {"statut": "ok"}


@routeur_sante.get("/donnees")
async def disponibilite_donnees(donnees: ServiceDonnees = Depends(fournir_service_donnees)):
    """Lit le référentiel des secteurs pour vérifier que la base managée répond."""

    try:
        await donnees.selectionner("sectors", colonnes=("name",))
    except ErreurServiceDonnees as e:
        logger.warning("sante_donnees_indisponible code=%s err=%s", e.code, e.message)
        return JSONResponse(status_code=503, content={"statut": "indisponible"})

    return {"statut": "ok"}
