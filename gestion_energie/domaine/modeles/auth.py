from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from gestion_energie.domaine.modeles.base import ModeleHorodate


class CompteAuth(ModeleHorodate):
    """Compte d’authentification (email + hash du mot de passe)."""

    __tablename__ = "auth_accounts"

    email: Mapped[str] = mapped_column(String(320), primary_key=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    confirmed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_sign_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class SessionAuth(ModeleHorodate):
    """Session ouverte ; sa suppression révoque le jeton associé."""

    __tablename__ = "auth_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(
        String(320),
        ForeignKey("auth_accounts.email", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


class Profil(ModeleHorodate):
    """Rôle et périmètre organisationnel d’un utilisateur."""

    __tablename__ = "profiles"

    email: Mapped[str] = mapped_column(String(320), primary_key=True)
    role: Mapped[str] = mapped_column(String(30), nullable=False, default="guest")

    organization_name: Mapped[str | None] = mapped_column(String(200), nullable=True, index=True)
    organization_level: Mapped[str | None] = mapped_column(String(30), nullable=True)
    filiere_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    filiale_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    site_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Rôle à restaurer quand un admin quitte le mode admin_client
    original_role: Mapped[str | None] = mapped_column(String(30), nullable=True)


class InformationsUtilisateur(ModeleHorodate):
    """Données personnelles / de contact, séparées de `profiles`."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), primary_key=True)
    nom: Mapped[str | None] = mapped_column(String(120), nullable=True)
    prenom: Mapped[str | None] = mapped_column(String(120), nullable=True)
    fonction: Mapped[str | None] = mapped_column(String(120), nullable=True)
    telephone: Mapped[str | None] = mapped_column(String(40), nullable=True)
