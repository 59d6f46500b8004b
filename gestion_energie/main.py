from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from gestion_energie.api.routeur import router
from gestion_energie.api.sante import routeur_sante
from gestion_energie.core.base_donnees import registre_moteurs
from gestion_energie.core.logging_config import configurer_logging


@asynccontextmanager
async def _cycle_de_vie(_application: FastAPI):
    yield
    await registre_moteurs.fermer()


def creer_application() -> FastAPI:
    configurer_logging()

    application = FastAPI(title="Gestion énergie", lifespan=_cycle_de_vie)
    application.include_router(routeur_sante)
    application.include_router(router)
    return application


app = creer_application()
