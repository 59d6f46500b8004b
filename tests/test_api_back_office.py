from __future__ import annotations

import pytest

from tests._helpers import compte, connecter, profil


@pytest.fixture
def donnees_back_office(donnees):
    donnees.tables["auth_accounts"] = [
        compte("admin@energie.fr"),
        compte("client@energie.fr"),
        compte("contrib@energie.fr"),
        compte("invite@energie.fr"),
    ]
    donnees.tables["profiles"] = [
        profil("admin@energie.fr", "admin"),
        profil("client@energie.fr", "admin_client", organization_name="Acme"),
        profil("contrib@energie.fr", "contributeur", organization_name="Acme"),
        profil("invite@energie.fr", "guest"),
    ]
    return donnees


# ---- organisations ----


def test_creation_organisation_par_un_invite(client, donnees_back_office):
    headers = connecter(client, "invite@energie.fr")

    res = client.post(
        "/api/organisations",
        json={
            "name": "Acme",
            "sector_name": "Industrie",
            "city": "Paris",
            "sites": [{"name": "Siège"}],
            "selection": {"secteur": "Industrie", "types_energie": ["Electricite"], "normes": ["ISO50001"]},
            "indicateurs": ["Consommation annuelle"],
        },
        headers=headers,
    )

    assert res.status_code == 201, res.text
    assert res.json()["organisation"]["name"] == "Acme"
    assert res.json()["delai_effacement_secondes"] > 0
    createur = next(p for p in donnees_back_office.tables["profiles"] if p["email"] == "invite@energie.fr")
    assert createur["organization_name"] == "Acme"
    assert donnees_back_office.tables["organization_selections"][0]["indicator_names"] == ["Consommation annuelle"]


def test_organisation_doublon_409(client, donnees_back_office):
    headers = connecter(client, "admin@energie.fr")
    assert client.post("/api/organisations", json={"name": "Acme"}, headers=headers).status_code == 201

    res = client.post("/api/organisations", json={"name": "Acme"}, headers=headers)

    assert res.status_code == 409
    assert res.json()["detail"].startswith("Erreur lors de l'enregistrement")


def test_organisations_acces(client, donnees_back_office):
    assert client.get("/api/organisations").status_code == 401

    headers = connecter(client, "contrib@energie.fr")
    assert client.get("/api/organisations", headers=headers).status_code == 403

    headers = connecter(client, "client@energie.fr")
    client.post("/api/organisations", json={"name": "Acme"}, headers=headers)
    assert client.get("/api/organisations", headers=headers).status_code == 200
    # Suppression réservée à l’admin
    assert client.delete("/api/organisations/Acme", headers=headers).status_code == 403


def test_detail_modification_site_suppression(client, donnees_back_office):
    headers = connecter(client, "admin@energie.fr")
    client.post(
        "/api/organisations",
        json={"name": "Acme", "filieres": [{"name": "Énergie", "filiales": [{"name": "Acme Sud"}]}]},
        headers=headers,
    )

    res = client.post(
        "/api/organisations/Acme/sites",
        json={"name": "Usine", "filiere_name": "Énergie", "filiale_name": "Acme Sud"},
        headers=headers,
    )
    assert res.status_code == 201

    res = client.patch("/api/organisations/Acme", json={"city": "Lyon"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["organisation"]["city"] == "Lyon"

    arbre = client.get("/api/organisations/Acme", headers=headers).json()
    assert arbre["filieres"][0]["filiales"][0]["sites"][0]["name"] == "Usine"

    assert client.delete("/api/organisations/Acme", headers=headers).status_code == 200
    assert client.get("/api/organisations/Acme", headers=headers).status_code == 404
    assert client.patch("/api/organisations/Acme", json={"city": "X"}, headers=headers).status_code == 404


# ---- utilisateurs ----


def test_creer_et_lister_utilisateurs(client, donnees_back_office):
    headers = connecter(client, "client@energie.fr")

    res = client.post(
        "/api/utilisateurs",
        json={
            "email": "paul@energie.fr",
            "mot_de_passe": "Motdepasse1",
            "nom_complet": "Durand Paul",
            "organization_name": "Acme",
        },
        headers=headers,
    )
    assert res.status_code == 201, res.text
    assert res.json()["utilisateur"]["informations"]["prenom"] == "Paul"

    res = client.get("/api/utilisateurs", params={"organization_name": "Acme"}, headers=headers)
    assert res.status_code == 200
    assert [u["email"] for u in res.json()] == ["client@energie.fr", "contrib@energie.fr", "paul@energie.fr"]


def test_creer_utilisateur_erreurs(client, donnees_back_office):
    headers = connecter(client, "admin@energie.fr")

    res = client.post(
        "/api/utilisateurs",
        json={"email": "contrib@energie.fr", "mot_de_passe": "Motdepasse1"},
        headers=headers,
    )
    assert res.status_code == 409
    assert "déjà utilisée" in res.json()["detail"]

    res = client.post("/api/utilisateurs", json={"email": "pas-un-email", "mot_de_passe": "Motdepasse1"}, headers=headers)
    assert res.status_code == 422


def test_utilisateurs_interdit_au_contributeur(client, donnees_back_office):
    headers = connecter(client, "contrib@energie.fr")

    assert client.get("/api/utilisateurs", headers=headers).status_code == 403


def test_rattachement_utilisateur(client, donnees_back_office):
    headers = connecter(client, "admin@energie.fr")

    res = client.put(
        "/api/utilisateurs/contrib@energie.fr/rattachement",
        json={"role": "contributeur", "niveau": "site", "organization_name": "Acme", "entite": "Siège"},
        headers=headers,
    )
    assert res.status_code == 200, res.text
    assert res.json()["profil"]["site_name"] == "Siège"

    res = client.put(
        "/api/utilisateurs/contrib@energie.fr/rattachement",
        json={"role": "contributeur", "niveau": "groupe", "organization_name": "Acme"},
        headers=headers,
    )
    assert res.status_code == 422

    res = client.put(
        "/api/utilisateurs/contrib@energie.fr/rattachement",
        json={"role": "contributeur", "niveau": "site", "organization_name": "Acme"},
        headers=headers,
    )
    assert res.status_code == 400


def test_modifier_et_supprimer_utilisateur(client, donnees_back_office):
    donnees_back_office.tables["users"] = [{"email": "contrib@energie.fr", "nom": "Carl"}]
    headers = connecter(client, "admin@energie.fr")

    res = client.patch("/api/utilisateurs/contrib@energie.fr", json={"fonction": "Technicien"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["informations"]["fonction"] == "Technicien"

    assert client.delete("/api/utilisateurs/contrib@energie.fr", headers=headers).status_code == 200
    assert client.delete("/api/utilisateurs/contrib@energie.fr", headers=headers).status_code == 404


def test_admin_client_ne_cree_pas_d_admin(client, donnees_back_office):
    headers = connecter(client, "client@energie.fr")

    res = client.post(
        "/api/utilisateurs",
        json={"email": "pirate@energie.fr", "mot_de_passe": "Motdepasse1", "role": "admin"},
        headers=headers,
    )

    assert res.status_code == 422
    assert all(c["email"] != "pirate@energie.fr" for c in donnees_back_office.tables["auth_accounts"])


def test_admin_client_limite_a_son_organisation(client, donnees_back_office):
    donnees_back_office.tables["profiles"].append(profil("autre@energie.fr", "contributeur", organization_name="Beta"))
    headers = connecter(client, "client@energie.fr")

    res = client.get("/api/utilisateurs", headers=headers)
    assert [u["email"] for u in res.json()] == ["client@energie.fr", "contrib@energie.fr"]
    assert client.get("/api/utilisateurs", params={"organization_name": "Beta"}, headers=headers).status_code == 403

    res = client.post(
        "/api/utilisateurs",
        json={"email": "paul@energie.fr", "mot_de_passe": "Motdepasse1", "organization_name": "Beta"},
        headers=headers,
    )
    assert res.status_code == 403

    assert client.delete("/api/utilisateurs/admin@energie.fr", headers=headers).status_code == 403
    assert client.delete("/api/utilisateurs/autre@energie.fr", headers=headers).status_code == 403
    assert client.patch("/api/utilisateurs/autre@energie.fr", json={"nom": "X"}, headers=headers).status_code == 403
    res = client.put(
        "/api/utilisateurs/admin@energie.fr/rattachement",
        json={"role": "contributeur", "niveau": "site", "entite": "Siège"},
        headers=headers,
    )
    assert res.status_code == 403

    assert {p["email"] for p in donnees_back_office.tables["profiles"]} >= {"admin@energie.fr", "autre@energie.fr"}
    assert client.delete("/api/utilisateurs/contrib@energie.fr", headers=headers).status_code == 200


# ---- périodes de collecte ----


def _periode(**champs) -> dict:
    valeurs = {
        "organization_name": "Acme",
        "year": 2025,
        "period_type": "month",
        "period_number": 1,
        "start_date": "2025-01-01",
        "end_date": "2025-01-31",
    }
    valeurs.update(champs)
    return valeurs


def test_periodes_creation_puis_mise_a_jour(client, donnees_back_office):
    headers = connecter(client, "client@energie.fr")

    res = client.post("/api/periodes-collecte", json=_periode(), headers=headers)
    assert res.status_code == 201, res.text
    id_periode = res.json()["periode"]["id"]

    res = client.post("/api/periodes-collecte", json=_periode(status="closed"), headers=headers)
    assert res.status_code == 200
    assert res.json()["periode"]["id"] == id_periode

    res = client.get("/api/periodes-collecte", params={"organization_name": "Acme", "statut": "closed"}, headers=headers)
    assert [p["id"] for p in res.json()] == [id_periode]

    res = client.patch(f"/api/periodes-collecte/{id_periode}", json={"status": "open"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["periode"]["status"] == "open"

    assert client.delete(f"/api/periodes-collecte/{id_periode}", headers=headers).status_code == 200
    assert client.delete(f"/api/periodes-collecte/{id_periode}", headers=headers).status_code == 404


def test_periode_invalide_422(client, donnees_back_office):
    headers = connecter(client, "admin@energie.fr")

    res = client.post("/api/periodes-collecte", json=_periode(period_number=13, start_date=None), headers=headers)

    assert res.status_code == 422
    assert res.json()["detail"] == {
        "period_number": "Le numéro de période doit être compris entre 1 et 12.",
        "start_date": "Les dates de début et de fin sont requises.",
    }


def test_periodes_interdites_au_contributeur(client, donnees_back_office):
    headers = connecter(client, "contrib@energie.fr")

    assert client.post("/api/periodes-collecte", json=_periode(), headers=headers).status_code == 403
