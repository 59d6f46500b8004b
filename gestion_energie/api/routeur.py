from __future__ import annotations

from fastapi import APIRouter

from gestion_energie.api.endpoints.auth import routeur_auth
from gestion_energie.api.endpoints.organisations import routeur_organisations
from gestion_energie.api.endpoints.periodes_collecte import routeur_periodes_collecte
from gestion_energie.api.endpoints.taxonomie import routeur_selections, routeur_taxonomie
from gestion_energie.api.endpoints.utilisateurs import routeur_utilisateurs


# ==============================
# ROUTEUR PRINCIPAL
# ==============================
router = APIRouter()

# Auth / session
router.include_router(routeur_auth)

# Back-office
router.include_router(routeur_organisations)
router.include_router(routeur_utilisateurs)
router.include_router(routeur_periodes_collecte)

# Taxonomie
router.include_router(routeur_taxonomie)
router.include_router(routeur_selections)
