from __future__ import annotations

import logging
import sys

from gestion_energie.core.configuration import parametres_application


FORMAT_JOURNAL = "%(asctime)s app=gestion_energie level=%(levelname)s logger=%(name)s msg=%(message)s"

# Bibliothèques bavardes : ramenées à WARNING hors mode DEBUG.
_JOURNAUX_TIERS = ("sqlalchemy.engine", "passlib", "httpx", "asyncio")


def _niveau(nom: str | None) -> int:
    valeur = logging.getLevelName((nom or "INFO").strip().upper())
    return valeur if isinstance(valeur, int) else logging.INFO


def configurer_logging(niveau: str | None = None) -> None:
    """Installe un handler stdout au format clé=valeur sur le logger racine.

    Le niveau vient de `LOG_LEVEL` sauf s’il est passé explicitement.
    Un second appel ne fait qu’ajuster les niveaux.
    """

    niveau_effectif = _niveau(niveau or parametres_application.niveau_log)
    racine = logging.getLogger()

    if not any(getattr(h, "_gestion_energie", False) for h in racine.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(FORMAT_JOURNAL))
        handler._gestion_energie = True  # type: ignore[attr-defined]
        racine.addHandler(handler)

    racine.setLevel(niveau_effectif)
    for nom in _JOURNAUX_TIERS:
        logging.getLogger(nom).setLevel(niveau_effectif if niveau_effectif <= logging.DEBUG else logging.WARNING)
