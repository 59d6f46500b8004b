"""schema initial : comptes, profils, organisations, collecte, taxonomie

Revision ID: 0001_schema_initial
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_schema_initial"
down_revision = None
branch_labels = None
depends_on = None


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now())


def _coordonnees() -> list[sa.Column]:
    return [
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("address", sa.String(300), nullable=True),
        sa.Column("city", sa.String(120), nullable=True),
        sa.Column("country", sa.String(120), nullable=True),
        sa.Column("phone", sa.String(40), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("website", sa.String(300), nullable=True),
    ]


def _codes(nom: str) -> sa.Column:
    return sa.Column(nom, postgresql.ARRAY(sa.String()), nullable=False, server_default="{}")


def _fk_organisation() -> sa.Column:
    return sa.Column(
        "organization_name",
        sa.String(200),
        sa.ForeignKey("organizations.name", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


def upgrade() -> None:
    # ---- auth ----
    op.create_table(
        "auth_accounts",
        sa.Column("email", sa.String(320), primary_key=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=False, server_default=""),
        sa.Column("confirmed", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("last_sign_in_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "email",
            sa.String(320),
            sa.ForeignKey("auth_accounts.email", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        _created_at(),
    )
    op.create_table(
        "profiles",
        sa.Column("email", sa.String(320), primary_key=True),
        sa.Column("role", sa.String(30), nullable=False, server_default="guest"),
        sa.Column("organization_name", sa.String(200), nullable=True, index=True),
        sa.Column("organization_level", sa.String(30), nullable=True),
        sa.Column("filiere_name", sa.String(200), nullable=True),
        sa.Column("filiale_name", sa.String(200), nullable=True),
        sa.Column("site_name", sa.String(200), nullable=True),
        sa.Column("original_role", sa.String(30), nullable=True),
        _created_at(),
    )
    op.create_table(
        "users",
        sa.Column("email", sa.String(320), primary_key=True),
        sa.Column("nom", sa.String(120), nullable=True),
        sa.Column("prenom", sa.String(120), nullable=True),
        sa.Column("fonction", sa.String(120), nullable=True),
        sa.Column("telephone", sa.String(40), nullable=True),
        _created_at(),
    )

    # ---- organisations ----
    op.create_table(
        "organizations",
        sa.Column("name", sa.String(200), primary_key=True),
        sa.Column("sector_name", sa.String(200), nullable=True),
        *_coordonnees(),
        _created_at(),
    )
    op.create_table(
        "filieres",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        _fk_organisation(),
        sa.Column("location", sa.String(200), nullable=True),
        sa.Column("manager", sa.String(200), nullable=True),
        _created_at(),
        sa.UniqueConstraint("organization_name", "name", name="uq_filieres_organization_name_name"),
    )
    op.create_table(
        "filiales",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        _fk_organisation(),
        sa.Column("filiere_name", sa.String(200), nullable=True),
        *_coordonnees(),
        _created_at(),
        sa.UniqueConstraint("organization_name", "name", name="uq_filiales_organization_name_name"),
    )
    op.create_table(
        "sites",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        _fk_organisation(),
        sa.Column("filiere_name", sa.String(200), nullable=True),
        sa.Column("filiale_name", sa.String(200), nullable=True),
        *_coordonnees(),
        _created_at(),
        sa.UniqueConstraint("organization_name", "name", name="uq_sites_organization_name_name"),
    )
    op.create_table(
        "organization_selections",
        sa.Column("id", sa.String(36), primary_key=True),
        _fk_organisation(),
        sa.Column("sector_name", sa.String(200), nullable=False),
        sa.Column("energy_type_name", sa.String(200), nullable=False),
        _codes("standard_names"),
        _codes("issue_names"),
        _codes("criteria_names"),
        _codes("indicator_names"),
        _created_at(),
    )

    # ---- collecte ----
    op.create_table(
        "collection_periods",
        sa.Column("id", sa.String(36), primary_key=True),
        _fk_organisation(),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("period_type", sa.String(20), nullable=False),
        sa.Column("period_number", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        _created_at(),
        sa.UniqueConstraint(
            "organization_name",
            "year",
            "period_type",
            "period_number",
            name="uq_collection_periods_organisation_periode",
        ),
    )

    # ---- taxonomie : référentiels ----
    op.create_table(
        "sectors",
        sa.Column("name", sa.String(200), primary_key=True),
        _created_at(),
    )
    op.create_table(
        "energy_types",
        sa.Column(
            "sector_name",
            sa.String(200),
            sa.ForeignKey("sectors.name", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("name", sa.String(200), primary_key=True),
        _created_at(),
    )
    for table in ("standards", "issues", "criteria"):
        op.create_table(
            table,
            sa.Column("code", sa.String(100), primary_key=True),
            sa.Column("name", sa.String(200), nullable=False),
            sa.Column("description", sa.Text(), nullable=True),
            _created_at(),
        )
    op.create_table(
        "indicators",
        sa.Column("code", sa.String(100), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("unit", sa.String(50), nullable=True),
        sa.Column("type", sa.String(50), nullable=True),
        sa.Column("formule", sa.Text(), nullable=True),
        sa.Column("frequency", sa.String(50), nullable=True),
        _created_at(),
    )

    # ---- taxonomie : jointures dénormalisées ----
    op.create_table(
        "sector_standards",
        sa.Column("sector_name", sa.String(200), primary_key=True),
        sa.Column("energy_type_name", sa.String(200), primary_key=True),
        _codes("standard_codes"),
        _created_at(),
    )
    op.create_table(
        "sector_standards_issues",
        sa.Column("sector_name", sa.String(200), primary_key=True),
        sa.Column("energy_type_name", sa.String(200), primary_key=True),
        sa.Column("standard_name", sa.String(200), primary_key=True),
        _codes("issue_codes"),
        _created_at(),
    )
    op.create_table(
        "sector_standards_issues_criteria",
        sa.Column("sector_name", sa.String(200), primary_key=True),
        sa.Column("energy_type_name", sa.String(200), primary_key=True),
        sa.Column("standard_name", sa.String(200), primary_key=True),
        sa.Column("issue_name", sa.String(200), primary_key=True),
        _codes("criteria_codes"),
        _created_at(),
    )
    op.create_table(
        "sector_standards_issues_criteria_indicators",
        sa.Column("sector_name", sa.String(200), primary_key=True),
        sa.Column("energy_type_name", sa.String(200), primary_key=True),
        sa.Column("standard_name", sa.String(200), primary_key=True),
        sa.Column("issue_name", sa.String(200), primary_key=True),
        sa.Column("criteria_name", sa.String(200), primary_key=True),
        _codes("indicator_codes"),
        sa.Column("unit", sa.String(50), nullable=True),
        _created_at(),
    )


def downgrade() -> None:
    for table in (
        "sector_standards_issues_criteria_indicators",
        "sector_standards_issues_criteria",
        "sector_standards_issues",
        "sector_standards",
        "indicators",
        "criteria",
        "issues",
        "standards",
        "energy_types",
        "sectors",
        "collection_periods",
        "organization_selections",
        "sites",
        "filiales",
        "filieres",
        "organizations",
        "users",
        "profiles",
        "auth_sessions",
        "auth_accounts",
    ):
        op.drop_table(table)
