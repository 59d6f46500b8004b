from __future__ import annotations

"""Administration des utilisateurs d’une organisation (rôle + périmètre).

`profiles` porte le rôle et le rattachement (organisation, niveau, entité) ;
`users` porte les données personnelles. Les deux sont indexés par email.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from gestion_energie.core.service_auth import ServiceAuth
from gestion_energie.core.service_donnees import ServiceDonnees, selectionner_une
from gestion_energie.domaine.enums.types import NiveauOrganisation, Role


logger = logging.getLogger(__name__)


ROLES_GERES = (Role.CONTRIBUTEUR, Role.VALIDATEUR, Role.ADMIN_CLIENT)

_COLONNE_ENTITE = {
    NiveauOrganisation.SITE: "site_name",
    NiveauOrganisation.FILIALE: "filiale_name",
    NiveauOrganisation.FILIERE: "filiere_name",
}


class ErreurUtilisateur(Exception):
    """Erreur générique d’administration des utilisateurs."""


class UtilisateurIntrouvable(ErreurUtilisateur):
    pass


class NiveauNonAutorise(ErreurUtilisateur):
    pass


class RoleNonAutorise(ErreurUtilisateur):
    pass


class HorsPerimetre(ErreurUtilisateur):
    """Utilisateur ou organisation hors de l’organisation de l’appelant."""


@dataclass(frozen=True)
class UtilisateurDetaille:
    profil: dict[str, Any]
    informations: dict[str, Any] | None

    def vers_dict(self) -> dict[str, Any]:
        return {**self.profil, "informations": self.informations}


def niveaux_autorises(role: Role, *, structure_complexe: bool) -> tuple[NiveauOrganisation, ...]:
    """Niveaux de rattachement proposés selon le rôle et la structure de l’organisation."""

    if role is Role.CONTRIBUTEUR:
        return (NiveauOrganisation.SITE,)
    if role is Role.VALIDATEUR:
        if structure_complexe:
            return (NiveauOrganisation.SITE, NiveauOrganisation.FILIALE, NiveauOrganisation.FILIERE)
        return (NiveauOrganisation.SITE,)
    if role is Role.ADMIN_CLIENT:
        if structure_complexe:
            return (NiveauOrganisation.GROUPE, NiveauOrganisation.FILIALE, NiveauOrganisation.FILIERE)
        return (NiveauOrganisation.GROUPE,)
    return ()


def decouper_nom_complet(nom_complet: str) -> tuple[str, str]:
    """« Dupont Jean Marie » -> ("Dupont", "Jean Marie") ; valeurs par défaut si vide."""

    parties = (nom_complet or "").split(" ")
    nom = parties[0] or "Nouvel"
    prenom = " ".join(parties[1:]) or "Utilisateur"
    return nom, prenom


def valeurs_rattachement(
    role: Role,
    niveau: NiveauOrganisation,
    organization_name: str | None,
    entite: str | None,
) -> dict[str, Any]:
    """Mise à jour de profil : exactement une colonne d’entité renseignée (aucune pour `groupe`)."""

    valeurs: dict[str, Any] = {
        "role": role.value,
        "organization_level": niveau.value,
        "organization_name": organization_name or None,
        "site_name": None,
        "filiale_name": None,
        "filiere_name": None,
    }
    colonne = _COLONNE_ENTITE.get(niveau)
    if colonne is not None:
        if not entite:
            raise ErreurUtilisateur("Sélectionnez l'entité de rattachement.")
        valeurs[colonne] = entite
    return valeurs


class ServiceUtilisateurs:
    """Administration des comptes gérés (contributeur, validateur, admin_client).

    `perimetre` est l’organisation imposée à un admin_client : il ne voit et
    ne modifie que les comptes gérés de cette organisation. `None` pour
    l’admin plateforme.
    """

    def __init__(self, donnees: ServiceDonnees, auth: ServiceAuth, *, perimetre: str | None = None) -> None:
        self._donnees = donnees
        self._auth = auth
        self._perimetre = perimetre

    def _organisation_cible(self, organization_name: str | None) -> str | None:
        if self._perimetre is None:
            return organization_name
        if organization_name and organization_name != self._perimetre:
            raise HorsPerimetre(f"Organisation hors de votre périmètre : {organization_name}")
        return self._perimetre

    async def _verifier_cible(self, email: str) -> None:
        if self._perimetre is None:
            return None
        profil = await selectionner_une(
            self._donnees,
            "profiles",
            colonnes=("role", "organization_name"),
            egal={"email": email},
        )
        if profil is None:
            raise UtilisateurIntrouvable(f"Utilisateur introuvable : {email}")
        if profil["organization_name"] != self._perimetre or profil["role"] not in {r.value for r in ROLES_GERES}:
            raise HorsPerimetre(f"Utilisateur hors de votre périmètre : {email}")
        return None

    @staticmethod
    def _verifier_role(role: Role) -> None:
        if role not in ROLES_GERES:
            raise RoleNonAutorise(f"Rôle « {role.value} » non attribuable.")

    async def _structure_complexe(self, organization_name: str | None) -> bool:
        if not organization_name:
            return False
        filieres = await self._donnees.selectionner(
            "filieres",
            colonnes=("name",),
            egal={"organization_name": organization_name},
        )
        return bool(filieres)

    async def lister_utilisateurs(self, organization_name: str | None = None) -> list[UtilisateurDetaille]:
        organization_name = self._organisation_cible(organization_name)
        egal = {"organization_name": organization_name} if organization_name else None
        profils = await self._donnees.selectionner(
            "profiles",
            egal=egal,
            dans={"role": [r.value for r in ROLES_GERES]},
            ordre="email",
        )
        if not profils:
            return []

        informations = await self._donnees.selectionner("users", dans={"email": [p["email"] for p in profils]})
        par_email = {i["email"]: i for i in informations}
        return [UtilisateurDetaille(profil=p, informations=par_email.get(p["email"])) for p in profils]

    async def creer_utilisateur(
        self,
        *,
        email: str,
        mot_de_passe: str,
        nom_complet: str,
        fonction: str | None = None,
        role: Role = Role.CONTRIBUTEUR,
        organization_name: str | None = None,
    ) -> UtilisateurDetaille:
        self._verifier_role(role)
        organization_name = self._organisation_cible(organization_name)

        await self._auth.inscrire(email, mot_de_passe, metadonnees={"full_name": nom_complet, "fonction": fonction})

        nom, prenom = decouper_nom_complet(nom_complet)
        informations = {"nom": nom, "prenom": prenom, "fonction": fonction or "----"}
        if await selectionner_une(self._donnees, "users", colonnes=("email",), egal={"email": email}) is None:
            informations = (await self._donnees.inserer("users", [{"email": email, **informations}]))[0]
        else:
            informations = (await self._donnees.mettre_a_jour("users", informations, egal={"email": email}))[0]

        profil = {"role": role.value, "organization_name": organization_name or None}
        if await selectionner_une(self._donnees, "profiles", colonnes=("email",), egal={"email": email}) is None:
            profil = (await self._donnees.inserer("profiles", [{"email": email, **profil}]))[0]
        else:
            profil = (await self._donnees.mettre_a_jour("profiles", profil, egal={"email": email}))[0]

        logger.info("utilisateur_cree email=%s role=%s organisation=%s", email, role.value, organization_name)
        return UtilisateurDetaille(profil=profil, informations=informations)

    async def configurer_utilisateur(
        self,
        email: str,
        *,
        role: Role,
        niveau: NiveauOrganisation,
        organization_name: str | None,
        entite: str | None = None,
    ) -> dict[str, Any]:
        self._verifier_role(role)
        organization_name = self._organisation_cible(organization_name)
        await self._verifier_cible(email)

        complexe = await self._structure_complexe(organization_name)
        if niveau not in niveaux_autorises(role, structure_complexe=complexe):
            raise NiveauNonAutorise(f"Niveau « {niveau.value} » non autorisé pour le rôle « {role.value} ».")

        lignes = await self._donnees.mettre_a_jour(
            "profiles",
            valeurs_rattachement(role, niveau, organization_name, entite),
            egal={"email": email},
        )
        if not lignes:
            raise UtilisateurIntrouvable(f"Utilisateur introuvable : {email}")
        return lignes[0]

    async def modifier_informations(self, email: str, valeurs: Mapping[str, Any]) -> dict[str, Any]:
        await self._verifier_cible(email)
        champs = {k: valeurs[k] for k in ("nom", "prenom", "fonction", "telephone") if k in valeurs}
        if champs:
            lignes = await self._donnees.mettre_a_jour("users", champs, egal={"email": email})
        else:
            lignes = await self._donnees.selectionner("users", egal={"email": email})
        if not lignes:
            raise UtilisateurIntrouvable(f"Utilisateur introuvable : {email}")
        return lignes[0]

    async def supprimer_utilisateur(self, email: str) -> None:
        await self._verifier_cible(email)
        supprimes = await self._donnees.supprimer("profiles", egal={"email": email})
        supprimes += await self._donnees.supprimer("users", egal={"email": email})
        if not supprimes:
            raise UtilisateurIntrouvable(f"Utilisateur introuvable : {email}")
        logger.info("utilisateur_supprime email=%s", email)
