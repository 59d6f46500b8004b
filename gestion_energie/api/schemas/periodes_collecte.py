from __future__ import annotations

from datetime import date

from pydantic import BaseModel


# Types lâches : les règles (plages, champs requis) sont dans `domaine.services.validation`.
class PeriodeCollecteEntree(BaseModel):
    organization_name: str = ""
    year: int | None = None
    period_type: str = "month"
    period_number: int = 1
    start_date: date | None = None
    end_date: date | None = None
    status: str = "open"


class PeriodeCollecteMiseAJour(BaseModel):
    year: int | None = None
    period_type: str | None = None
    period_number: int | None = None
    start_date: date | None = None
    end_date: date | None = None
    status: str | None = None
