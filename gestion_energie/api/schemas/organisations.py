from __future__ import annotations

from pydantic import BaseModel, Field

from gestion_energie.api.schemas.taxonomie import SelectionTaxonomieSchema


class Coordonnees(BaseModel):
    description: str | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None
    phone: str | None = None
    email: str | None = None
    website: str | None = None


class SiteCreation(Coordonnees):
    name: str = Field(min_length=1)


class FilialeCreation(Coordonnees):
    name: str = Field(min_length=1)
    sites: list[SiteCreation] = Field(default_factory=list)


class FiliereCreation(BaseModel):
    name: str = Field(min_length=1)
    location: str | None = None
    manager: str | None = None
    filiales: list[FilialeCreation] = Field(default_factory=list)


class OrganisationCreation(Coordonnees):
    """Entreprise simple : `sites` seulement. Entreprise complexe : `filieres`."""

    name: str = Field(min_length=1)
    sector_name: str | None = None
    filieres: list[FiliereCreation] = Field(default_factory=list)
    sites: list[SiteCreation] = Field(default_factory=list)
    selection: SelectionTaxonomieSchema | None = None
    indicateurs: list[str] = Field(default_factory=list)


class OrganisationMiseAJour(Coordonnees):
    pass


class SiteAjout(SiteCreation):
    filiere_name: str | None = None
    filiale_name: str | None = None
