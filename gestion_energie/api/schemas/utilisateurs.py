from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field

from gestion_energie.domaine.enums.types import NiveauOrganisation, Role


class UtilisateurCreation(BaseModel):
    email: EmailStr
    mot_de_passe: str = Field(min_length=8)
    nom_complet: str = ""
    fonction: str | None = None
    role: Role = Role.CONTRIBUTEUR
    organization_name: str | None = None


class UtilisateurConfiguration(BaseModel):
    role: Role
    niveau: NiveauOrganisation
    organization_name: str | None = None
    entite: str | None = None


class InformationsMiseAJour(BaseModel):
    nom: str | None = None
    prenom: str | None = None
    fonction: str | None = None
    telephone: str | None = None
