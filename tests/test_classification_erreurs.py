from __future__ import annotations

import pytest

from gestion_energie.core.service_auth import ErreurAuth
from gestion_energie.core.service_donnees import ErreurReseau, ErreurServiceDonnees
from gestion_energie.domaine.services.classification_erreurs import (
    MESSAGE_CONNEXION_DEFAUT,
    MESSAGE_INSCRIPTION_DEFAUT,
    REGLES_CONNEXION,
    REGLES_INSCRIPTION,
    classer_erreur,
    est_erreur_jeton_invalide,
    est_erreur_reseau,
    est_erreur_session_invalide,
)


def _connexion(erreur) -> str:
    return classer_erreur(erreur, REGLES_CONNEXION, defaut=MESSAGE_CONNEXION_DEFAUT)


def _inscription(erreur) -> str:
    return classer_erreur(erreur, REGLES_INSCRIPTION, defaut=MESSAGE_INSCRIPTION_DEFAUT)


@pytest.mark.parametrize(
    ("erreur", "attendu"),
    [
        (ErreurAuth("Invalid login credentials", code="invalid_credentials"), "Email ou mot de passe incorrect"),
        ("Invalid login credentials", "Email ou mot de passe incorrect"),
        (ErreurAuth("Email not confirmed"), "confirmer votre email"),
        (ErreurAuth("Too many requests", code="over_request_rate_limit"), "Trop de tentatives"),
        # Code connu, texte reformulé
        (ErreurAuth("Rate limit reached", code="over_request_rate_limit"), "Trop de tentatives"),
    ],
)
def test_classement_connexion(erreur, attendu):
    assert attendu in _connexion(erreur)


@pytest.mark.parametrize("erreur", [ErreurAuth("Something unexpected"), None, ""])
def test_connexion_message_par_defaut(erreur):
    assert _connexion(erreur) == MESSAGE_CONNEXION_DEFAUT


def test_classement_inscription():
    assert "déjà utilisée" in _inscription(ErreurAuth("Email already registered", code="email_exists"))
    assert "critères de sécurité" in _inscription(ErreurAuth("Password should be at least 8 characters"))
    assert _inscription(ValueError("boom")) == MESSAGE_INSCRIPTION_DEFAUT


def test_premiere_regle_l_emporte():
    # Les deux fragments sont présents : l’ordre des règles décide.
    erreur = ErreurAuth("Invalid login credentials / too many requests")

    assert "incorrect" in _connexion(erreur)


def test_classement_insensible_a_la_casse():
    assert "incorrect" in _connexion("INVALID LOGIN CREDENTIALS")


@pytest.mark.parametrize(
    "erreur",
    [
        ErreurAuth("Auth session missing!"),
        ErreurAuth("Session from session_id claim in JWT does not exist", code="session_not_found"),
        ErreurAuth("token is expired", code="session_expired"),
        ErreurAuth("autre texte", code="session_missing"),
    ],
)
def test_session_invalide(erreur):
    assert est_erreur_session_invalide(erreur)


def test_session_invalide_faux_pour_autre_erreur():
    assert not est_erreur_session_invalide(ErreurServiceDonnees("permission denied"))
    assert not est_erreur_session_invalide(None)


def test_jeton_invalide():
    assert est_erreur_jeton_invalide(ErreurAuth("invalid JWT", code="bad_jwt"))
    assert est_erreur_jeton_invalide("token is expired")
    assert not est_erreur_jeton_invalide(ErreurAuth("Invalid login credentials"))


def test_erreur_reseau():
    assert est_erreur_reseau(ErreurReseau("connexion refusée"))
    assert est_erreur_reseau(ErreurServiceDonnees("TypeError: Failed to fetch"))
    assert est_erreur_reseau("Network error")
    assert not est_erreur_reseau(ErreurServiceDonnees("permission denied"))
