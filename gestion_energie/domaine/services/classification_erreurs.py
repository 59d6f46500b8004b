from __future__ import annotations

"""Traduction des erreurs distantes en messages utilisateur.

Règles ordonnées (prédicat, message) évaluées sur une erreur normalisée
(code + message en minuscules) ; la première qui correspond l’emporte.

ATTENTION : quand le service distant ne fournit pas de code, les prédicats
retombent sur une recherche de sous-chaîne dans le texte libre de l’erreur.
Un changement de formulation côté service casse silencieusement la
correspondance (on retombe alors sur le message par défaut).
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from gestion_energie.core.service_donnees import ErreurReseau, ErreurServiceDonnees


@dataclass(frozen=True)
class ErreurNormalisee:
    code: str | None
    message: str

    @classmethod
    def depuis(cls, erreur: BaseException | str | None) -> ErreurNormalisee:
        if erreur is None:
            return cls(code=None, message="")
        if isinstance(erreur, ErreurServiceDonnees):
            return cls(code=(erreur.code or None), message=erreur.message.lower())
        return cls(code=None, message=str(erreur).lower())


Predicat = Callable[[ErreurNormalisee], bool]


@dataclass(frozen=True)
class RegleMessage:
    predicat: Predicat
    message: str


def code_ou_fragment(codes: Iterable[str], *fragments: str) -> Predicat:
    """Vrai si le code est connu, ou (à défaut) si le message contient un fragment."""

    codes_connus = frozenset(codes)
    fragments_bas = tuple(f.lower() for f in fragments)

    def _predicat(erreur: ErreurNormalisee) -> bool:
        if erreur.code is not None and erreur.code in codes_connus:
            return True
        return any(fragment in erreur.message for fragment in fragments_bas)

    return _predicat


MESSAGE_CONNEXION_DEFAUT = "Échec de la connexion. Veuillez vérifier vos identifiants."
MESSAGE_INSCRIPTION_DEFAUT = "Échec de l'inscription. Veuillez réessayer."

REGLES_CONNEXION: tuple[RegleMessage, ...] = (
    RegleMessage(
        code_ou_fragment({"invalid_credentials"}, "invalid login credentials"),
        "Email ou mot de passe incorrect. Veuillez réessayer.",
    ),
    RegleMessage(
        code_ou_fragment({"email_not_confirmed"}, "email not confirmed"),
        "Veuillez confirmer votre email avant de vous connecter.",
    ),
    RegleMessage(
        code_ou_fragment({"over_request_rate_limit"}, "too many requests"),
        "Trop de tentatives de connexion. Veuillez réessayer plus tard.",
    ),
)

REGLES_INSCRIPTION: tuple[RegleMessage, ...] = (
    RegleMessage(
        code_ou_fragment({"email_exists"}, "email already registered"),
        "Cette adresse email est déjà utilisée. Veuillez vous connecter ou utiliser une autre adresse.",
    ),
    RegleMessage(
        code_ou_fragment({"weak_password"}, "password"),
        "Le mot de passe ne respecte pas les critères de sécurité requis.",
    ),
)


def classer_erreur(
    erreur: BaseException | str | None,
    regles: Sequence[RegleMessage],
    *,
    defaut: str,
) -> str:
    normalisee = ErreurNormalisee.depuis(erreur)
    for regle in regles:
        if regle.predicat(normalisee):
            return regle.message
    return defaut


# ---- prédicats utilisés par le contexte de session ----

_session_invalide = code_ou_fragment(
    {"session_missing", "session_not_found", "session_expired"},
    "auth session missing!",
    "session_not_found",
    "token is expired",
    "session from session_id claim in jwt does not exist",
)

_jeton_invalide = code_ou_fragment({"bad_jwt", "session_expired"}, "bad_jwt", "token is expired", "invalid jwt")

_reseau = code_ou_fragment((), "failed to fetch", "network error")


def est_erreur_session_invalide(erreur: BaseException | str | None) -> bool:
    """Session absente, expirée ou révoquée : cas normal « pas encore connecté »."""

    return _session_invalide(ErreurNormalisee.depuis(erreur))


def est_erreur_jeton_invalide(erreur: BaseException | str | None) -> bool:
    """Jeton expiré ou illisible : à la déconnexion, la session locale est quand même effacée."""

    return _jeton_invalide(ErreurNormalisee.depuis(erreur))


def est_erreur_reseau(erreur: BaseException | str | None) -> bool:
    if isinstance(erreur, ErreurReseau):
        return True
    return _reseau(ErreurNormalisee.depuis(erreur))
