from __future__ import annotations

import enum


class Role(str, enum.Enum):
    """Rôles applicatifs (colonne `profiles.role`).

    `admin_client` est le rôle d’un admin « connecté » à une organisation
    cliente : le rôle d’origine est conservé dans `profiles.original_role`.
    """

    ADMIN = "admin"
    GUEST = "guest"
    CONTRIBUTEUR = "contributeur"
    VALIDATEUR = "validateur"
    ADMIN_CLIENT = "admin_client"


class NiveauOrganisation(str, enum.Enum):
    GROUPE = "groupe"
    ORGANISATION = "organization"
    FILIERE = "filiere"
    FILIALE = "filiale"
    SITE = "site"


class TypePeriode(str, enum.Enum):
    MOIS = "month"
    TRIMESTRE = "quarter"
    ANNEE = "year"


class StatutPeriode(str, enum.Enum):
    OUVERTE = "open"
    FERMEE = "closed"
