from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def maintenant_utc() -> datetime:
    return datetime.now(tz=timezone.utc)


class BaseModele(DeclarativeBase):
    """Base declarative SQLAlchemy.

    Les noms de tables et de colonnes sont ceux du schéma de la base managée
    (en anglais) : ils sont partagés avec les autres clients de cette base.
    """


class ModeleHorodate(BaseModele):
    """Mixin de date de création."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=maintenant_utc, nullable=False)
