from __future__ import annotations

"""Validation des formulaires avant toute écriture distante.

Fonctions pures : valeurs du formulaire -> dictionnaire {champ: message}.
Un dictionnaire vide signifie que le formulaire peut être soumis.
"""

import re
from collections.abc import Mapping
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from gestion_energie.domaine.enums.types import StatutPeriode, TypePeriode


MOTIF_EMAIL = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

# Au moins une minuscule, une majuscule, un chiffre ; 8 caractères minimum.
# Alphabet : lettres, chiffres et caractères non-mot (ASCII) ; `_` n’en fait pas partie.
MOTIF_MOT_DE_PASSE = re.compile(r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[a-zA-Z\d\W]{8,}", re.ASCII)

MESSAGE_CONFIRMATION_DIFFERENTE = "Les mots de passe ne correspondent pas."


def _verifier_email(valeur: str) -> str:
    if not valeur:
        raise PydanticCustomError("email_requis", "L'email est requis.")
    if MOTIF_EMAIL.fullmatch(valeur) is None:
        raise PydanticCustomError("email_invalide", "Adresse email invalide.")
    return valeur


class FormulaireConnexion(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_default=True)

    email: str = ""
    mot_de_passe: str = ""

    @field_validator("email")
    @classmethod
    def _email_valide(cls, valeur: str) -> str:
        return _verifier_email(valeur)

    @field_validator("mot_de_passe")
    @classmethod
    def _mot_de_passe_present(cls, valeur: str) -> str:
        # Pas de contrôle de robustesse à la connexion.
        if not valeur:
            raise PydanticCustomError("mot_de_passe_requis", "Le mot de passe est requis.")
        return valeur


class FormulaireInscription(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_default=True)

    email: str = ""
    mot_de_passe: str = ""
    confirmation_mot_de_passe: str = ""
    nom_complet: str = ""

    @field_validator("email")
    @classmethod
    def _email_valide(cls, valeur: str) -> str:
        return _verifier_email(valeur)

    @field_validator("mot_de_passe")
    @classmethod
    def _mot_de_passe_robuste(cls, valeur: str) -> str:
        if len(valeur) < 8:
            raise PydanticCustomError(
                "mot_de_passe_court",
                "Le mot de passe doit contenir au moins 8 caractères.",
            )
        if MOTIF_MOT_DE_PASSE.fullmatch(valeur) is None:
            raise PydanticCustomError(
                "mot_de_passe_faible",
                "Le mot de passe doit contenir au moins une majuscule, une minuscule et un chiffre.",
            )
        return valeur

    @field_validator("confirmation_mot_de_passe")
    @classmethod
    def _confirmation_presente(cls, valeur: str) -> str:
        if not valeur:
            raise PydanticCustomError("confirmation_requise", "Veuillez confirmer votre mot de passe.")
        return valeur

    @field_validator("nom_complet")
    @classmethod
    def _nom_present(cls, valeur: str) -> str:
        if not valeur.strip():
            raise PydanticCustomError("nom_requis", "Le nom complet est requis.")
        return valeur


def numero_periode_max(type_periode: TypePeriode) -> int:
    return {TypePeriode.MOIS: 12, TypePeriode.TRIMESTRE: 4, TypePeriode.ANNEE: 1}[type_periode]


class FormulairePeriodeCollecte(BaseModel):
    model_config = ConfigDict(extra="ignore", validate_default=True)

    organization_name: str = ""
    year: int | None = None
    period_type: TypePeriode = TypePeriode.MOIS
    period_number: int = 1
    start_date: date | None = None
    end_date: date | None = None
    status: StatutPeriode = StatutPeriode.OUVERTE

    @field_validator("organization_name")
    @classmethod
    def _organisation_presente(cls, valeur: str) -> str:
        if not valeur.strip():
            raise PydanticCustomError("organisation_requise", "L'organisation est requise.")
        return valeur

    @field_validator("year")
    @classmethod
    def _annee_presente(cls, valeur: int | None) -> int:
        if valeur is None:
            raise PydanticCustomError("annee_requise", "L'année est requise.")
        return valeur

    @field_validator("start_date", "end_date")
    @classmethod
    def _date_presente(cls, valeur: date | None) -> date:
        if valeur is None:
            raise PydanticCustomError("date_requise", "Les dates de début et de fin sont requises.")
        return valeur

    @field_validator("period_number")
    @classmethod
    def _numero_dans_la_plage(cls, valeur: int, info: ValidationInfo) -> int:
        # period_type est déclaré avant : déjà validé (absent s’il est invalide).
        type_periode = info.data.get("period_type")
        if type_periode is None:
            return valeur
        maximum = numero_periode_max(type_periode)
        if not 1 <= valeur <= maximum:
            raise PydanticCustomError(
                "numero_periode_invalide",
                "Le numéro de période doit être compris entre 1 et {maximum}.",
                {"maximum": maximum},
            )
        return valeur


def _erreurs_par_champ(erreur: ValidationError, *, champ_modele: str = "formulaire") -> dict[str, str]:
    erreurs: dict[str, str] = {}
    for detail in erreur.errors():
        loc = detail.get("loc") or ()
        champ = str(loc[0]) if loc else champ_modele
        erreurs[champ] = detail["msg"]
    return erreurs


def _normaliser(valeurs: Mapping[str, Any]) -> dict[str, Any]:
    return {cle: ("" if valeur is None else valeur) for cle, valeur in valeurs.items()}


def valider_formulaire_connexion(valeurs: Mapping[str, Any]) -> dict[str, str]:
    try:
        FormulaireConnexion.model_validate(_normaliser(valeurs))
    except ValidationError as e:
        return _erreurs_par_champ(e)
    return {}


def valider_formulaire_inscription(valeurs: Mapping[str, Any]) -> dict[str, str]:
    normalisees = _normaliser(valeurs)

    erreurs: dict[str, str] = {}
    try:
        FormulaireInscription.model_validate(normalisees)
    except ValidationError as e:
        erreurs = _erreurs_par_champ(e)

    # Signalée même si d’autres champs sont déjà en erreur.
    if normalisees.get("mot_de_passe", "") != normalisees.get("confirmation_mot_de_passe", ""):
        erreurs["confirmation_mot_de_passe"] = MESSAGE_CONFIRMATION_DIFFERENTE

    return erreurs


def valider_periode_collecte(valeurs: Mapping[str, Any]) -> dict[str, str]:
    try:
        FormulairePeriodeCollecte.model_validate(dict(valeurs))
    except ValidationError as e:
        return _erreurs_par_champ(e)
    return {}
