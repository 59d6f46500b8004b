from __future__ import annotations

import logging

import pytest

from gestion_energie.core.service_auth import ErreurAuth, ServiceAuthJwt
from gestion_energie.core.service_donnees import ErreurReseau, ErreurServiceDonnees, ServiceDonneesMemoire
from gestion_energie.domaine.enums.types import Role
from gestion_energie.domaine.services.contexte_session import (
    MESSAGE_ADMIN_CLIENT_REFUSE,
    MESSAGE_RETOUR_ADMIN_IMPOSSIBLE,
    ContexteSession,
    EtatSession,
)
from tests._helpers import MOT_DE_PASSE_TEST, SECRET_TEST, compte, profil


class _AuthEnErreur:
    """Auth dont la lecture de session échoue toujours avec la même erreur."""

    def __init__(self, erreur: ErreurServiceDonnees) -> None:
        self.erreur = erreur
        self.deconnexions = 0

    async def lire_session(self, jeton):
        raise self.erreur

    async def deconnecter(self, jeton):
        self.deconnexions += 1


@pytest.fixture
def donnees_comptes() -> ServiceDonneesMemoire:
    return ServiceDonneesMemoire(
        {
            "auth_accounts": [
                compte("admin@energie.fr", nom_complet="Alice Admin"),
                compte("contrib@energie.fr"),
                compte("sansprofil@energie.fr"),
            ],
            "profiles": [
                profil("admin@energie.fr", "admin"),
                profil("contrib@energie.fr", "contributeur", organization_name="Acme"),
            ],
        }
    )


@pytest.fixture
def auth_comptes(donnees_comptes) -> ServiceAuthJwt:
    return ServiceAuthJwt(donnees_comptes, secret=SECRET_TEST, duree_minutes=60)


async def _contexte_connecte(auth, donnees, email: str) -> ContexteSession:
    contexte = ContexteSession(auth, donnees)
    resultat = await contexte.login(email, MOT_DE_PASSE_TEST)
    assert resultat.succes, resultat.erreur
    return contexte


# ---- démarrage ----


@pytest.mark.asyncio
async def test_demarrer_sans_jeton_non_authentifie_sans_erreur(auth, donnees):
    contexte = ContexteSession(auth, donnees)
    assert contexte.etat is EtatSession.NON_RESOLU

    assert await contexte.demarrer() is None

    assert contexte.etat is EtatSession.NON_AUTHENTIFIE
    assert contexte.courant() is None
    assert contexte.erreur is None
    assert contexte.en_chargement is False


@pytest.mark.asyncio
async def test_session_absente_traitee_comme_non_connecte(donnees):
    auth = _AuthEnErreur(ErreurAuth("Auth session missing!"))
    contexte = ContexteSession(auth, donnees, jeton="quelconque")

    assert await contexte.demarrer() is None

    assert contexte.courant() is None
    assert contexte.erreur is None
    assert contexte.etat is EtatSession.NON_AUTHENTIFIE
    # Session périmée effacée côté service
    assert auth.deconnexions == 1


@pytest.mark.asyncio
async def test_demarrer_avec_jeton_valide(auth_comptes, donnees_comptes):
    connecte = await _contexte_connecte(auth_comptes, donnees_comptes, "contrib@energie.fr")

    contexte = ContexteSession(auth_comptes, donnees_comptes, jeton=connecte.jeton)
    identite = await contexte.demarrer()

    assert identite is not None
    assert identite.email == "contrib@energie.fr"
    assert identite.role is Role.CONTRIBUTEUR
    assert identite.organization_name == "Acme"
    assert contexte.etat is EtatSession.AUTHENTIFIE


@pytest.mark.asyncio
async def test_demarrer_ne_resout_qu_une_fois(auth_comptes, donnees_comptes):
    contexte = ContexteSession(auth_comptes, donnees_comptes)
    await contexte.demarrer()
    appels = donnees_comptes.nombre_appels

    await contexte.demarrer()

    assert donnees_comptes.nombre_appels == appels


@pytest.mark.asyncio
async def test_jeton_expire_efface_la_session(donnees_comptes):
    auth_expiree = ServiceAuthJwt(donnees_comptes, secret=SECRET_TEST, duree_minutes=-1)
    session = await auth_expiree.connecter("admin@energie.fr", MOT_DE_PASSE_TEST)
    assert len(donnees_comptes.tables["auth_sessions"]) == 1

    auth = ServiceAuthJwt(donnees_comptes, secret=SECRET_TEST, duree_minutes=60)
    contexte = ContexteSession(auth, donnees_comptes, jeton=session.jeton_acces)

    assert await contexte.demarrer() is None
    assert contexte.erreur is None
    assert donnees_comptes.tables["auth_sessions"] == []


@pytest.mark.asyncio
async def test_jeton_revoque_non_authentifie(auth_comptes, donnees_comptes):
    connecte = await _contexte_connecte(auth_comptes, donnees_comptes, "admin@energie.fr")
    jeton = connecte.jeton
    await connecte.logout()

    contexte = ContexteSession(auth_comptes, donnees_comptes, jeton=jeton)

    assert await contexte.demarrer() is None
    assert contexte.etat is EtatSession.NON_AUTHENTIFIE
    assert contexte.erreur is None


@pytest.mark.asyncio
async def test_panne_reseau_warning_sans_erreur(donnees, caplog):
    auth = _AuthEnErreur(ErreurReseau("Failed to fetch"))
    contexte = ContexteSession(auth, donnees, jeton="quelconque")

    with caplog.at_level(logging.WARNING):
        assert await contexte.demarrer() is None

    assert contexte.erreur is None
    assert auth.deconnexions == 0
    assert "resolution_session_reseau_indisponible" in caplog.text


@pytest.mark.asyncio
async def test_profil_illisible_role_guest(auth_comptes, donnees_comptes, caplog):
    donnees_comptes.programmer_erreur("selectionner", "profiles", ErreurServiceDonnees("permission denied"))
    contexte = ContexteSession(auth_comptes, donnees_comptes)

    with caplog.at_level(logging.WARNING):
        resultat = await contexte.login("admin@energie.fr", MOT_DE_PASSE_TEST)

    assert resultat.succes
    assert resultat.role is Role.GUEST
    assert "lecture_profil_echec" in caplog.text


# ---- connexion / inscription / déconnexion ----


@pytest.mark.asyncio
async def test_login_renseigne_identite(auth_comptes, donnees_comptes):
    contexte = ContexteSession(auth_comptes, donnees_comptes)

    resultat = await contexte.login("admin@energie.fr", MOT_DE_PASSE_TEST)

    assert resultat.succes
    assert resultat.role is Role.ADMIN
    identite = contexte.courant()
    assert identite.nom_complet == "Alice Admin"
    assert identite.derniere_connexion_le is not None
    assert contexte.jeton


@pytest.mark.asyncio
async def test_login_sans_profil_role_guest(auth_comptes, donnees_comptes):
    contexte = ContexteSession(auth_comptes, donnees_comptes)

    resultat = await contexte.login("sansprofil@energie.fr", MOT_DE_PASSE_TEST)

    assert resultat.role is Role.GUEST


@pytest.mark.asyncio
async def test_login_refuse_message_brut(auth_comptes, donnees_comptes):
    contexte = ContexteSession(auth_comptes, donnees_comptes)

    resultat = await contexte.login("admin@energie.fr", "Mauvais123")

    assert resultat.succes is False
    assert resultat.erreur == "Invalid login credentials"
    assert resultat.code == "invalid_credentials"
    assert contexte.erreur == "Invalid login credentials"
    assert contexte.courant() is None
    assert contexte.en_chargement is False


@pytest.mark.asyncio
async def test_register_toujours_guest(auth, donnees):
    contexte = ContexteSession(auth, donnees)

    resultat = await contexte.register(
        {"email": "nouveau@energie.fr", "mot_de_passe": "Motdepasse1", "nom_complet": "Nina Nouveau", "role": "admin"}
    )

    assert resultat.succes
    assert resultat.role is Role.GUEST
    assert contexte.courant().role is Role.GUEST
    assert contexte.courant().nom_complet == "Nina Nouveau"
    assert donnees.tables["profiles"] == [
        {"email": "nouveau@energie.fr", "role": "guest", "created_at": donnees.tables["profiles"][0]["created_at"]}
    ]
    assert [u["email"] for u in donnees.tables["users"]] == ["nouveau@energie.fr"]


@pytest.mark.asyncio
async def test_register_ne_duplique_pas_un_profil_existant(auth, donnees):
    donnees.tables["profiles"] = [profil("nouveau@energie.fr", "contributeur")]
    contexte = ContexteSession(auth, donnees)

    resultat = await contexte.register({"email": "nouveau@energie.fr", "mot_de_passe": "Motdepasse1"})

    assert resultat.succes
    assert len(donnees.tables["profiles"]) == 1


@pytest.mark.asyncio
async def test_register_email_existant(auth_comptes, donnees_comptes):
    contexte = ContexteSession(auth_comptes, donnees_comptes)

    resultat = await contexte.register({"email": "admin@energie.fr", "mot_de_passe": "Motdepasse1"})

    assert resultat.succes is False
    assert resultat.code == "email_exists"
    assert contexte.courant() is None


@pytest.mark.asyncio
async def test_register_avec_confirmation_email_sans_session(donnees):
    auth = ServiceAuthJwt(donnees, secret=SECRET_TEST, duree_minutes=60, confirmation_email_requise=True)
    contexte = ContexteSession(auth, donnees)

    resultat = await contexte.register({"email": "nouveau@energie.fr", "mot_de_passe": "Motdepasse1"})

    assert resultat.succes
    assert contexte.courant() is None
    assert contexte.en_chargement is False


@pytest.mark.asyncio
async def test_logout_idempotent(auth_comptes, donnees_comptes):
    contexte = await _contexte_connecte(auth_comptes, donnees_comptes, "admin@energie.fr")

    assert (await contexte.logout()).succes
    assert contexte.courant() is None
    assert contexte.etat is EtatSession.NON_AUTHENTIFIE
    assert donnees_comptes.tables["auth_sessions"] == []

    assert (await contexte.logout()).succes


@pytest.mark.asyncio
async def test_logout_jeton_illisible_efface_quand_meme(auth, donnees):
    contexte = ContexteSession(auth, donnees, jeton="pas-un-jwt")

    resultat = await contexte.logout()

    assert resultat.succes
    assert contexte.jeton is None


# ---- admin_client ----


@pytest.mark.asyncio
async def test_devenir_admin_client_puis_retour(auth_comptes, donnees_comptes):
    contexte = await _contexte_connecte(auth_comptes, donnees_comptes, "admin@energie.fr")

    resultat = await contexte.devenir_admin_client("Acme")

    assert resultat.succes
    assert contexte.courant().role is Role.ADMIN_CLIENT
    assert contexte.courant().organization_name == "Acme"
    ligne = donnees_comptes.tables["profiles"][0]
    assert ligne["role"] == "admin_client"
    assert ligne["organization_level"] == "groupe"
    assert ligne["original_role"] == "admin"

    resultat = await contexte.retour_admin()

    assert resultat.succes
    assert resultat.role is Role.ADMIN
    assert contexte.courant().organization_name is None
    ligne = donnees_comptes.tables["profiles"][0]
    assert (ligne["role"], ligne["organization_name"], ligne["organization_level"], ligne["original_role"]) == (
        "admin",
        None,
        None,
        None,
    )


@pytest.mark.asyncio
async def test_devenir_admin_client_refuse_hors_admin(auth_comptes, donnees_comptes):
    contexte = await _contexte_connecte(auth_comptes, donnees_comptes, "contrib@energie.fr")

    resultat = await contexte.devenir_admin_client("Acme")

    assert resultat.succes is False
    assert resultat.erreur == MESSAGE_ADMIN_CLIENT_REFUSE
    assert donnees_comptes.tables["profiles"][1]["role"] == "contributeur"


@pytest.mark.asyncio
async def test_retour_admin_refuse_hors_admin_client(auth_comptes, donnees_comptes):
    contexte = await _contexte_connecte(auth_comptes, donnees_comptes, "admin@energie.fr")

    resultat = await contexte.retour_admin()

    assert resultat.succes is False
    assert resultat.erreur == MESSAGE_RETOUR_ADMIN_IMPOSSIBLE


@pytest.mark.asyncio
async def test_retour_admin_sans_role_d_origine(auth_comptes, donnees_comptes):
    donnees_comptes.tables["profiles"][1].update(role="admin_client")
    contexte = await _contexte_connecte(auth_comptes, donnees_comptes, "contrib@energie.fr")

    resultat = await contexte.retour_admin()

    assert resultat.succes is False
    assert resultat.erreur == MESSAGE_RETOUR_ADMIN_IMPOSSIBLE
    assert contexte.courant().role is Role.ADMIN_CLIENT

