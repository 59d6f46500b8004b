from __future__ import annotations

from datetime import date
from uuid import uuid4

from sqlalchemy import Date, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from gestion_energie.domaine.modeles.base import ModeleHorodate


class PeriodeCollecte(ModeleHorodate):
    __tablename__ = "collection_periods"
    __table_args__ = (
        UniqueConstraint(
            "organization_name",
            "year",
            "period_type",
            "period_number",
            name="uq_collection_periods_organisation_periode",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    organization_name: Mapped[str] = mapped_column(
        String(200),
        ForeignKey("organizations.name", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    period_type: Mapped[str] = mapped_column(String(20), nullable=False)
    period_number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="open")
