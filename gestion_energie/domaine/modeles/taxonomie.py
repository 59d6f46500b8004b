from __future__ import annotations

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from gestion_energie.domaine.modeles.base import ModeleHorodate


# ---- référentiels ----


class Secteur(ModeleHorodate):
    __tablename__ = "sectors"

    name: Mapped[str] = mapped_column(String(200), primary_key=True)


class TypeEnergie(ModeleHorodate):
    __tablename__ = "energy_types"

    sector_name: Mapped[str] = mapped_column(
        String(200),
        ForeignKey("sectors.name", ondelete="CASCADE"),
        primary_key=True,
    )
    name: Mapped[str] = mapped_column(String(200), primary_key=True)


class Norme(ModeleHorodate):
    __tablename__ = "standards"

    code: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Enjeu(ModeleHorodate):
    __tablename__ = "issues"

    code: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Critere(ModeleHorodate):
    __tablename__ = "criteria"

    code: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Indicateur(ModeleHorodate):
    __tablename__ = "indicators"

    code: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    formule: Mapped[str | None] = mapped_column(Text, nullable=True)
    frequency: Mapped[str | None] = mapped_column(String(50), nullable=True)


# ---- tables de jointure dénormalisées (codes en tableau) ----


class SecteurNormes(ModeleHorodate):
    __tablename__ = "sector_standards"

    sector_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    energy_type_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    standard_codes: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)


class SecteurNormeEnjeux(ModeleHorodate):
    __tablename__ = "sector_standards_issues"

    sector_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    energy_type_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    standard_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    issue_codes: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)


class SecteurNormeEnjeuCriteres(ModeleHorodate):
    __tablename__ = "sector_standards_issues_criteria"

    sector_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    energy_type_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    standard_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    issue_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    criteria_codes: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)


class SecteurNormeEnjeuCritereIndicateurs(ModeleHorodate):
    __tablename__ = "sector_standards_issues_criteria_indicators"

    sector_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    energy_type_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    standard_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    issue_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    criteria_name: Mapped[str] = mapped_column(String(200), primary_key=True)
    indicator_codes: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    unit: Mapped[str | None] = mapped_column(String(50), nullable=True)
