from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


# Pas de contraintes ici : les formulaires sont validés par `domaine.services.validation`
# pour renvoyer les messages par champ (422).
class RequeteLogin(BaseModel):
    email: str = ""
    mot_de_passe: str = ""


class RequeteInscription(BaseModel):
    email: str = ""
    mot_de_passe: str = ""
    confirmation_mot_de_passe: str = ""
    nom_complet: str = ""


class IdentiteLecture(BaseModel):
    email: str
    role: str
    nom_complet: str | None = None
    organization_name: str | None = None
    original_role: str | None = None
    cree_le: datetime | None = None
    derniere_connexion_le: datetime | None = None


class ReponseSession(BaseModel):
    token_acces: str | None
    type_token: str = "bearer"
    identite: IdentiteLecture | None = None


class RequeteAdminClient(BaseModel):
    organization_name: str
