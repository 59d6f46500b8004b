from __future__ import annotations

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from gestion_energie.core.configuration import parametres_application
from gestion_energie.domaine.modeles import BaseModele  # importe tous les modèles via __init__

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

# La base managée héberge aussi des tables d’autres clients :
# table de versions dédiée, et l’autogénération ne compare que nos tables.
TABLE_VERSIONS = "alembic_version_gestion_energie"
TABLES_GEREES = frozenset(BaseModele.metadata.tables)


def _inclure_nom(nom, type_, _parents) -> bool:
    if type_ == "table":
        return nom in TABLES_GEREES
    return True


def _options_communes() -> dict:
    return {
        "target_metadata": BaseModele.metadata,
        "version_table": TABLE_VERSIONS,
        "include_name": _inclure_nom,
        "compare_type": True,
        "compare_server_default": True,
    }


def _migrer(connexion) -> None:
    context.configure(connection=connexion, **_options_communes())
    with context.begin_transaction():
        context.run_migrations()


async def _migrer_en_ligne() -> None:
    moteur = create_async_engine(parametres_application.url_base_donnees, poolclass=pool.NullPool)
    try:
        async with moteur.connect() as connexion:
            await connexion.run_sync(_migrer)
    finally:
        await moteur.dispose()


if context.is_offline_mode():
    # Génère le SQL sans connexion (alembic upgrade --sql).
    context.configure(
        url=parametres_application.url_base_donnees,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_options_communes(),
    )
    with context.begin_transaction():
        context.run_migrations()
else:
    asyncio.run(_migrer_en_ligne())
