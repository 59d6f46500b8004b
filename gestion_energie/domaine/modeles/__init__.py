"""Modèles SQLAlchemy.

Aucune logique métier ici : uniquement la structure des tables de la base
managée. Les services y accèdent via `core.service_donnees`.
"""

from gestion_energie.domaine.modeles.base import BaseModele, ModeleHorodate
from gestion_energie.domaine.modeles.auth import CompteAuth, InformationsUtilisateur, Profil, SessionAuth
from gestion_energie.domaine.modeles.organisations import (
    Filiale,
    Filiere,
    Organisation,
    SelectionOrganisation,
    Site,
)
from gestion_energie.domaine.modeles.collecte import PeriodeCollecte
from gestion_energie.domaine.modeles.taxonomie import (
    Critere,
    Enjeu,
    Indicateur,
    Norme,
    Secteur,
    SecteurNormeEnjeuCritereIndicateurs,
    SecteurNormeEnjeuCriteres,
    SecteurNormeEnjeux,
    SecteurNormes,
    TypeEnergie,
)

__all__ = [
    "BaseModele",
    "ModeleHorodate",
    # Auth & profils
    "CompteAuth",
    "SessionAuth",
    "Profil",
    "InformationsUtilisateur",
    # Organisations
    "Organisation",
    "Filiere",
    "Filiale",
    "Site",
    "SelectionOrganisation",
    # Collecte
    "PeriodeCollecte",
    # Taxonomie
    "Secteur",
    "TypeEnergie",
    "Norme",
    "Enjeu",
    "Critere",
    "Indicateur",
    "SecteurNormes",
    "SecteurNormeEnjeux",
    "SecteurNormeEnjeuCriteres",
    "SecteurNormeEnjeuCritereIndicateurs",
]
