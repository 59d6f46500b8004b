from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext


ALGORITHME_JWT = "HS256"
EMETTEUR_JWT = "gestion-energie"

_contexte_hachage = CryptContext(schemes=["bcrypt"], deprecated="auto")


@dataclass(frozen=True)
class RevendicationsJeton:
    """Contenu utile d’un jeton d’accès : compte (`sub`) et session (`sid`)."""

    email: str
    session_id: str
    expire_le: datetime | None


def hasher_mot_de_passe(mot_de_passe: str) -> str:
    return _contexte_hachage.hash(mot_de_passe)


def verifier_mot_de_passe(mot_de_passe: str, empreinte: str) -> bool:
    # Une empreinte illisible (compte importé, colonne vide) vaut refus.
    try:
        return _contexte_hachage.verify(mot_de_passe, empreinte)
    except ValueError:
        return False


def creer_token_acces(
    *,
    secret: str,
    sujet: str,
    duree_minutes: int,
    session_id: str,
) -> str:
    emis_le = datetime.now(tz=timezone.utc)

    return jwt.encode(
        {
            "iss": EMETTEUR_JWT,
            "sub": sujet,
            "sid": session_id,
            "iat": emis_le,
            "exp": emis_le + timedelta(minutes=duree_minutes),
        },
        secret,
        algorithm=ALGORITHME_JWT,
    )


def decoder_token_acces(token: str, *, secret: str, verifier_expiration: bool = True) -> RevendicationsJeton:
    """Vérifie la signature et l’émetteur du jeton.

    Lève `jwt.ExpiredSignatureError` si le jeton est expiré (sauf
    `verifier_expiration=False`, utilisé à la déconnexion) et
    `jwt.InvalidTokenError` pour tout autre défaut, y compris l’absence
    des revendications `sub` ou `sid`.
    """

    contenu = jwt.decode(
        token,
        secret,
        algorithms=[ALGORITHME_JWT],
        issuer=EMETTEUR_JWT,
        options={"verify_exp": verifier_expiration, "require": ["sub", "sid", "exp"]},
    )

    expiration = contenu.get("exp")
    return RevendicationsJeton(
        email=contenu["sub"],
        session_id=contenu["sid"],
        expire_le=datetime.fromtimestamp(expiration, tz=timezone.utc) if expiration is not None else None,
    )
