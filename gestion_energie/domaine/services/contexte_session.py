from __future__ import annotations

"""Contexte de session : qui est connecté.

Objet explicite et injectable (pas d’état global) : les endpoints en créent
un par requête à partir du jeton reçu, les tests peuvent en fournir un autre.

Machine à états :
    NON_RESOLU -> AUTHENTIFIE | NON_AUTHENTIFIE   (demarrer, login, register)
    AUTHENTIFIE -> NON_AUTHENTIFIE                (logout, session invalide)

L’identité n’est modifiée que par les opérations de ce module.
"""

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from gestion_energie.core.service_auth import ServiceAuth, SessionDistante
from gestion_energie.core.service_donnees import ErreurServiceDonnees, ServiceDonnees, selectionner_une
from gestion_energie.domaine.enums.types import NiveauOrganisation, Role
from gestion_energie.domaine.services.classification_erreurs import (
    est_erreur_jeton_invalide,
    est_erreur_reseau,
    est_erreur_session_invalide,
)


logger = logging.getLogger(__name__)


MESSAGE_RETOUR_ADMIN_IMPOSSIBLE = "Impossible de retourner au rôle admin"
MESSAGE_ADMIN_CLIENT_REFUSE = "Seuls les administrateurs peuvent se connecter aux entreprises"


class EtatSession(str, enum.Enum):
    NON_RESOLU = "NON_RESOLU"
    AUTHENTIFIE = "AUTHENTIFIE"
    NON_AUTHENTIFIE = "NON_AUTHENTIFIE"


@dataclass(frozen=True)
class Identite:
    email: str
    role: Role
    nom_complet: str | None = None
    organization_name: str | None = None
    original_role: Role | None = None
    cree_le: datetime | None = None
    derniere_connexion_le: datetime | None = None


@dataclass(frozen=True)
class ResultatOperation:
    succes: bool
    erreur: str | None = None
    role: Role | None = None
    # Code de l’erreur distante, pour la classification côté appelant
    code: str | None = None


def _role(valeur: Any, *, defaut: Role | None = Role.GUEST) -> Role | None:
    try:
        return Role(valeur)
    except ValueError:
        return defaut


class ContexteSession:
    def __init__(self, auth: ServiceAuth, donnees: ServiceDonnees, *, jeton: str | None = None) -> None:
        self._auth = auth
        self._donnees = donnees
        self._jeton = jeton
        self._identite: Identite | None = None
        self._etat = EtatSession.NON_RESOLU
        self._erreur: str | None = None
        self._en_chargement = False

    # ---- lecture ----

    @property
    def etat(self) -> EtatSession:
        return self._etat

    @property
    def erreur(self) -> str | None:
        return self._erreur

    @property
    def jeton(self) -> str | None:
        return self._jeton

    @property
    def en_chargement(self) -> bool:
        return self._en_chargement

    def courant(self) -> Identite | None:
        return self._identite

    # ---- transitions internes ----

    def _authentifier(self, identite: Identite, jeton: str | None) -> None:
        self._identite = identite
        self._jeton = jeton
        self._etat = EtatSession.AUTHENTIFIE
        self._erreur = None
        self._en_chargement = False

    def _desauthentifier(self) -> None:
        self._identite = None
        self._jeton = None
        self._etat = EtatSession.NON_AUTHENTIFIE
        self._erreur = None
        self._en_chargement = False

    def _echec(self, message: str, *, code: str | None = None) -> ResultatOperation:
        self._erreur = message
        self._en_chargement = False
        return ResultatOperation(succes=False, erreur=message, code=code)

    async def _lire_profil(self, email: str) -> dict[str, Any] | None:
        try:
            return await selectionner_une(self._donnees, "profiles", egal={"email": email})
        except ErreurServiceDonnees as e:
            # Rôle par défaut (guest) si le profil est illisible.
            logger.warning("lecture_profil_echec email=%s erreur=%s", email, e.message)
            return None

    @staticmethod
    def _identite_depuis(session: SessionDistante, profil: Mapping[str, Any] | None) -> Identite:
        profil = profil or {}
        return Identite(
            email=session.email,
            role=_role(profil.get("role")),
            nom_complet=session.nom_complet,
            organization_name=profil.get("organization_name"),
            original_role=_role(profil.get("original_role"), defaut=None),
            cree_le=session.cree_le,
            derniere_connexion_le=session.derniere_connexion_le,
        )

    # ---- opérations ----

    async def demarrer(self) -> Identite | None:
        """Résout une session existante (au démarrage / à réception d’une requête).

        Trois issues :
        - session valide -> identité renseignée ;
        - session absente, expirée ou révoquée -> non authentifié, sans erreur,
          et la session périmée est effacée côté service ;
        - panne réseau ou autre erreur -> non authentifié, sans erreur, avec un
          warning dans les logs.
        """

        if self._etat is not EtatSession.NON_RESOLU:
            return self._identite

        self._en_chargement = True
        try:
            session = await self._auth.lire_session(self._jeton)
        except ErreurServiceDonnees as e:
            if est_erreur_session_invalide(e) or est_erreur_jeton_invalide(e):
                await self._effacer_session_distante()
            elif est_erreur_reseau(e):
                logger.warning("resolution_session_reseau_indisponible erreur=%s", e.message)
            else:
                logger.warning("resolution_session_echec erreur=%s", e.message)
            self._desauthentifier()
            return None

        if session is None:
            self._desauthentifier()
            return None

        profil = await self._lire_profil(session.email)
        self._authentifier(self._identite_depuis(session, profil), session.jeton_acces)
        return self._identite

    async def _effacer_session_distante(self) -> None:
        try:
            await self._auth.deconnecter(self._jeton)
        except ErreurServiceDonnees as e:
            logger.warning("effacement_session_invalide_echec erreur=%s", e.message)

    async def login(self, email: str, mot_de_passe: str) -> ResultatOperation:
        self._en_chargement = True
        self._erreur = None

        try:
            session = await self._auth.connecter(email, mot_de_passe)
        except ErreurServiceDonnees as e:
            logger.info("connexion_refusee email=%s erreur=%s", email, e.message)
            return self._echec(e.message, code=e.code)

        profil = await self._lire_profil(email)
        identite = self._identite_depuis(session, profil)
        self._authentifier(identite, session.jeton_acces)
        logger.info("connexion email=%s role=%s", email, identite.role.value)
        return ResultatOperation(succes=True, role=identite.role)

    async def register(self, valeurs: Mapping[str, Any]) -> ResultatOperation:
        """Inscription : le rôle est toujours `guest`, quelles que soient les valeurs reçues."""

        email = str(valeurs.get("email") or "")
        nom_complet = str(valeurs.get("nom_complet") or "")

        self._en_chargement = True
        self._erreur = None

        try:
            session = await self._auth.inscrire(
                email,
                str(valeurs.get("mot_de_passe") or ""),
                metadonnees={"full_name": nom_complet},
            )
            if await selectionner_une(self._donnees, "users", egal={"email": email}) is None:
                await self._donnees.inserer("users", [{"email": email}])
            if await selectionner_une(self._donnees, "profiles", egal={"email": email}) is None:
                await self._donnees.inserer("profiles", [{"email": email, "role": Role.GUEST.value}])
        except ErreurServiceDonnees as e:
            logger.info("inscription_refusee email=%s erreur=%s", email, e.message)
            return self._echec(e.message, code=e.code)

        if session.jeton_acces:
            identite = Identite(
                email=email,
                role=Role.GUEST,
                nom_complet=session.nom_complet or nom_complet,
                cree_le=session.cree_le,
                derniere_connexion_le=session.derniere_connexion_le,
            )
            self._authentifier(identite, session.jeton_acces)
        else:
            # Confirmation d’email attendue : compte créé, pas encore de session.
            self._en_chargement = False

        return ResultatOperation(succes=True, role=Role.GUEST)

    async def logout(self) -> ResultatOperation:
        """Idempotent : sans session, ne fait qu’effacer l’état local."""

        self._en_chargement = True
        self._erreur = None

        try:
            await self._auth.deconnecter(self._jeton)
        except ErreurServiceDonnees as e:
            if not est_erreur_jeton_invalide(e):
                return self._echec(e.message, code=e.code)
            logger.warning("deconnexion_jeton_expire : session locale effacée")

        self._desauthentifier()
        return ResultatOperation(succes=True)

    async def devenir_admin_client(self, organization_name: str) -> ResultatOperation:
        """Un admin se place dans le périmètre d’une organisation cliente."""

        identite = self._identite
        if identite is None or identite.role is not Role.ADMIN:
            return self._echec(MESSAGE_ADMIN_CLIENT_REFUSE)

        self._en_chargement = True
        try:
            lignes = await self._donnees.mettre_a_jour(
                "profiles",
                {
                    "role": Role.ADMIN_CLIENT.value,
                    "organization_name": organization_name,
                    "organization_level": NiveauOrganisation.GROUPE.value,
                    "original_role": Role.ADMIN.value,
                },
                egal={"email": identite.email},
            )
        except ErreurServiceDonnees as e:
            return self._echec(e.message, code=e.code)

        if not lignes:
            return self._echec("Profil introuvable.")

        self._identite = replace(
            identite,
            role=Role.ADMIN_CLIENT,
            organization_name=organization_name,
            original_role=Role.ADMIN,
        )
        self._en_chargement = False
        logger.info("admin_client email=%s organisation=%s", identite.email, organization_name)
        return ResultatOperation(succes=True, role=Role.ADMIN_CLIENT)

    async def retour_admin(self) -> ResultatOperation:
        """Restaure le rôle d’origine d’un admin_client et efface le périmètre temporaire."""

        identite = self._identite
        if identite is None or identite.role is not Role.ADMIN_CLIENT:
            return self._echec(MESSAGE_RETOUR_ADMIN_IMPOSSIBLE)

        self._en_chargement = True
        try:
            profil = await selectionner_une(
                self._donnees,
                "profiles",
                colonnes=("original_role",),
                egal={"email": identite.email},
            )
            role_origine = _role((profil or {}).get("original_role"), defaut=None)
            if role_origine is None:
                return self._echec(MESSAGE_RETOUR_ADMIN_IMPOSSIBLE)

            await self._donnees.mettre_a_jour(
                "profiles",
                {
                    "role": role_origine.value,
                    "organization_name": None,
                    "organization_level": None,
                    "original_role": None,
                },
                egal={"email": identite.email},
            )
        except ErreurServiceDonnees as e:
            return self._echec(e.message, code=e.code)

        self._identite = replace(identite, role=role_origine, organization_name=None, original_role=None)
        self._en_chargement = False
        return ResultatOperation(succes=True, role=role_origine)
