from __future__ import annotations

from uuid import uuid4

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from gestion_energie.domaine.modeles.base import ModeleHorodate


class _Coordonnees:
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    address: Mapped[str | None] = mapped_column(String(300), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    country: Mapped[str | None] = mapped_column(String(120), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(40), nullable=True)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    website: Mapped[str | None] = mapped_column(String(300), nullable=True)


class Organisation(_Coordonnees, ModeleHorodate):
    __tablename__ = "organizations"

    name: Mapped[str] = mapped_column(String(200), primary_key=True)
    sector_name: Mapped[str | None] = mapped_column(String(200), nullable=True)


class Filiere(ModeleHorodate):
    __tablename__ = "filieres"
    __table_args__ = (UniqueConstraint("organization_name", "name", name="uq_filieres_organization_name_name"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    organization_name: Mapped[str] = mapped_column(
        String(200),
        ForeignKey("organizations.name", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    manager: Mapped[str | None] = mapped_column(String(200), nullable=True)


class Filiale(_Coordonnees, ModeleHorodate):
    __tablename__ = "filiales"
    __table_args__ = (UniqueConstraint("organization_name", "name", name="uq_filiales_organization_name_name"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    organization_name: Mapped[str] = mapped_column(
        String(200),
        ForeignKey("organizations.name", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filiere_name: Mapped[str | None] = mapped_column(String(200), nullable=True)


class Site(_Coordonnees, ModeleHorodate):
    __tablename__ = "sites"
    __table_args__ = (UniqueConstraint("organization_name", "name", name="uq_sites_organization_name_name"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    organization_name: Mapped[str] = mapped_column(
        String(200),
        ForeignKey("organizations.name", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filiere_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    filiale_name: Mapped[str | None] = mapped_column(String(200), nullable=True)


class SelectionOrganisation(ModeleHorodate):
    """Sélection taxonomique retenue à la fin de l’assistant de configuration."""

    __tablename__ = "organization_selections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    organization_name: Mapped[str] = mapped_column(
        String(200),
        ForeignKey("organizations.name", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sector_name: Mapped[str] = mapped_column(String(200), nullable=False)
    energy_type_name: Mapped[str] = mapped_column(String(200), nullable=False)
    standard_names: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    issue_names: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    criteria_names: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    indicator_names: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
