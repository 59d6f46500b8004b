from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from gestion_energie.domaine.services.agregation_taxonomie import SelectionTaxonomie


class SelectionTaxonomieSchema(BaseModel):
    secteur: str | None = None
    types_energie: list[str] = Field(default_factory=list)
    normes: list[str] = Field(default_factory=list)
    enjeux: list[str] = Field(default_factory=list)
    criteres: list[str] = Field(default_factory=list)

    def vers_selection(self) -> SelectionTaxonomie:
        return SelectionTaxonomie(
            secteur=self.secteur,
            types_energie=self.types_energie,
            normes=self.normes,
            enjeux=self.enjeux,
            criteres=self.criteres,
        )


class ElementTaxonomieLecture(BaseModel):
    code: str
    nom: str
    description: str | None = None
    cree_le: datetime | None = None


class IndicateurResoluLecture(BaseModel):
    nom_indicateur: str
    nom_critere: str
    unite: str
    cree_le: datetime | None = None


class SecteurCreation(BaseModel):
    nom: str = Field(min_length=1)


class TypeEnergieCreation(BaseModel):
    secteur: str = Field(min_length=1)
    nom: str = Field(min_length=1)


class IndicateurEntree(BaseModel):
    code: str = Field(min_length=1)
    nom: str = Field(min_length=1)
    nom_critere: str = Field(min_length=1)
    description: str | None = None
    unite: str | None = None
    type: str | None = None
    formule: str | None = None
    frequence: str | None = "Mensuelle"


class IndicateurCreation(BaseModel):
    selection: SelectionTaxonomieSchema
    indicateur: IndicateurEntree
    enjeu_cible: str | None = None


class CritereEntree(BaseModel):
    code: str = Field(min_length=1)
    nom: str = Field(min_length=1)
    description: str | None = None


class CritereCreation(BaseModel):
    selection: SelectionTaxonomieSchema
    critere: CritereEntree
    enjeu_cible: str | None = None


class SelectionOrganisationCreation(BaseModel):
    organization_name: str = Field(min_length=1)
    selection: SelectionTaxonomieSchema
    indicateurs: list[str] = Field(default_factory=list)
