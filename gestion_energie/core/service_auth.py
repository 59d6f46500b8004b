from __future__ import annotations

"""Sous-API d’authentification du service distant.

Contrat repris du service d’auth hébergé : inscription, connexion par mot de
passe, déconnexion, lecture de la session courante. Les messages d’erreur
reprennent ceux du service hébergé, car les appelants les classent par contenu
(voir `domaine.services.classification_erreurs`).
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol
from uuid import uuid4

import jwt

from gestion_energie.core.securite import (
    creer_token_acces,
    decoder_token_acces,
    hasher_mot_de_passe,
    verifier_mot_de_passe,
)
from gestion_energie.core.service_donnees import (
    CODE_VIOLATION_UNICITE,
    ErreurServiceDonnees,
    ServiceDonnees,
    selectionner_une,
)


logger = logging.getLogger(__name__)


class ErreurAuth(ErreurServiceDonnees):
    """Erreur du service d’authentification."""


@dataclass(frozen=True)
class SessionDistante:
    email: str
    jeton_acces: str | None
    nom_complet: str | None = None
    cree_le: datetime | None = None
    derniere_connexion_le: datetime | None = None


class ServiceAuth(Protocol):
    async def inscrire(
        self,
        email: str,
        mot_de_passe: str,
        *,
        metadonnees: dict[str, Any] | None = None,
    ) -> SessionDistante:
        ...

    async def connecter(self, email: str, mot_de_passe: str) -> SessionDistante:
        ...

    async def deconnecter(self, jeton: str | None) -> None:
        ...

    async def lire_session(self, jeton: str | None) -> SessionDistante | None:
        ...


class ServiceAuthJwt:
    """Auth par mot de passe (bcrypt) et jetons JWT révocables.

    - comptes : table `auth_accounts`
    - sessions ouvertes : table `auth_sessions` (le JWT porte l’id en `sid`)
    - une déconnexion supprime la session : le jeton devient invalide même
      s’il n’a pas expiré
    """

    def __init__(
        self,
        donnees: ServiceDonnees,
        *,
        secret: str,
        duree_minutes: int,
        confirmation_email_requise: bool = False,
        tentatives_max: int = 5,
        fenetre_secondes: int = 300,
        horloge: Callable[[], float] = time.monotonic,
        echecs: dict[str, list[float]] | None = None,
    ) -> None:
        self._donnees = donnees
        self._secret = secret
        self._duree_minutes = duree_minutes
        self._confirmation_email_requise = confirmation_email_requise
        self._tentatives_max = tentatives_max
        self._fenetre_secondes = fenetre_secondes
        self._horloge = horloge
        # Partageable entre instances (une instance par requête côté API).
        self._echecs: dict[str, list[float]] = echecs if echecs is not None else {}

    # ---- limitation des échecs ----

    def _purger_echecs(self) -> None:
        """Oublie les échecs sortis de la fenêtre ; un email sans échec récent n’a plus d’entrée."""

        limite = self._horloge() - self._fenetre_secondes
        for email in list(self._echecs):
            recents = [t for t in self._echecs[email] if t > limite]
            if recents:
                self._echecs[email] = recents
            else:
                del self._echecs[email]

    def _echecs_recents(self, email: str) -> list[float]:
        self._purger_echecs()
        return self._echecs.get(email, [])

    def _noter_echec(self, email: str) -> None:
        self._purger_echecs()
        self._echecs.setdefault(email, []).append(self._horloge())

    # ---- sessions ----

    async def _ouvrir_session(self, compte: dict[str, Any]) -> SessionDistante:
        maintenant = datetime.now(tz=timezone.utc)
        session_id = str(uuid4())

        await self._donnees.inserer("auth_sessions", [{"id": session_id, "email": compte["email"]}])
        await self._donnees.mettre_a_jour(
            "auth_accounts",
            {"last_sign_in_at": maintenant},
            egal={"email": compte["email"]},
        )

        jeton = creer_token_acces(
            secret=self._secret,
            sujet=compte["email"],
            duree_minutes=self._duree_minutes,
            session_id=session_id,
        )
        return SessionDistante(
            email=compte["email"],
            jeton_acces=jeton,
            nom_complet=compte.get("full_name"),
            cree_le=compte.get("created_at"),
            derniere_connexion_le=maintenant,
        )

    async def inscrire(
        self,
        email: str,
        mot_de_passe: str,
        *,
        metadonnees: dict[str, Any] | None = None,
    ) -> SessionDistante:
        if len(mot_de_passe or "") < 8:
            raise ErreurAuth("Password should be at least 8 characters", code="weak_password")

        if await selectionner_une(self._donnees, "auth_accounts", egal={"email": email}) is not None:
            raise ErreurAuth("Email already registered", code="email_exists")

        compte = {
            "email": email,
            "password_hash": hasher_mot_de_passe(mot_de_passe),
            "full_name": (metadonnees or {}).get("full_name") or "",
            "confirmed": not self._confirmation_email_requise,
        }
        try:
            [compte] = await self._donnees.inserer("auth_accounts", [compte])
        except ErreurServiceDonnees as e:
            if e.code == CODE_VIOLATION_UNICITE:
                raise ErreurAuth("Email already registered", code="email_exists") from e
            raise

        logger.info("compte_cree email=%s", email)

        if self._confirmation_email_requise:
            # Pas de session tant que l’email n’est pas confirmé.
            return SessionDistante(
                email=email,
                jeton_acces=None,
                nom_complet=compte.get("full_name"),
                cree_le=compte.get("created_at"),
            )

        return await self._ouvrir_session(compte)

    async def connecter(self, email: str, mot_de_passe: str) -> SessionDistante:
        if len(self._echecs_recents(email)) >= self._tentatives_max:
            raise ErreurAuth("Too many requests", code="over_request_rate_limit")

        compte = await selectionner_une(self._donnees, "auth_accounts", egal={"email": email})
        if compte is None or not verifier_mot_de_passe(mot_de_passe, compte["password_hash"]):
            self._noter_echec(email)
            raise ErreurAuth("Invalid login credentials", code="invalid_credentials")

        if self._confirmation_email_requise and not compte.get("confirmed"):
            raise ErreurAuth("Email not confirmed", code="email_not_confirmed")

        self._echecs.pop(email, None)
        return await self._ouvrir_session(compte)

    async def confirmer_email(self, email: str) -> None:
        await self._donnees.mettre_a_jour("auth_accounts", {"confirmed": True}, egal={"email": email})

    async def deconnecter(self, jeton: str | None) -> None:
        if not jeton:
            return None

        try:
            revendications = decoder_token_acces(jeton, secret=self._secret, verifier_expiration=False)
        except jwt.InvalidTokenError as e:
            raise ErreurAuth("invalid JWT", code="bad_jwt") from e

        await self._donnees.supprimer("auth_sessions", egal={"id": revendications.session_id})
        return None

    async def lire_session(self, jeton: str | None) -> SessionDistante | None:
        if not jeton:
            return None

        try:
            revendications = decoder_token_acces(jeton, secret=self._secret)
        except jwt.ExpiredSignatureError as e:
            raise ErreurAuth("token is expired", code="session_expired") from e
        except jwt.InvalidTokenError as e:
            raise ErreurAuth("invalid JWT", code="bad_jwt") from e

        session = await selectionner_une(self._donnees, "auth_sessions", egal={"id": revendications.session_id})
        if session is None:
            raise ErreurAuth("Session from session_id claim in JWT does not exist", code="session_not_found")

        compte = await selectionner_une(self._donnees, "auth_accounts", egal={"email": revendications.email})
        if compte is None:
            raise ErreurAuth("Session from session_id claim in JWT does not exist", code="session_not_found")

        return SessionDistante(
            email=compte["email"],
            jeton_acces=jeton,
            nom_complet=compte.get("full_name"),
            cree_le=compte.get("created_at"),
            derniere_connexion_le=compte.get("last_sign_in_at"),
        )
