from __future__ import annotations

import pytest

from gestion_energie.core.service_donnees import (
    CODE_VIOLATION_UNICITE,
    ErreurServiceDonnees,
    ServiceDonneesMemoire,
    selectionner_une,
)


@pytest.fixture
def donnees() -> ServiceDonneesMemoire:
    return ServiceDonneesMemoire(
        {
            "organizations": [
                {"name": "Beta", "city": "Lyon"},
                {"name": "Acme", "city": "Paris"},
                {"name": "Gamma", "city": None},
            ]
        }
    )


@pytest.mark.asyncio
async def test_selection_filtree_et_triee(donnees):
    assert [o["name"] for o in await donnees.selectionner("organizations", ordre="name")] == ["Acme", "Beta", "Gamma"]
    assert [o["name"] for o in await donnees.selectionner("organizations", ordre="-name")] == ["Gamma", "Beta", "Acme"]
    assert await donnees.selectionner("organizations", egal={"city": "Lyon"}, colonnes=("name",)) == [{"name": "Beta"}]
    assert len(await donnees.selectionner("organizations", dans={"name": ["Acme", "Gamma", "X"]})) == 2
    assert await donnees.selectionner("table_vide") == []


@pytest.mark.asyncio
async def test_valeurs_nulles_triees_en_dernier(donnees):
    lignes = await donnees.selectionner("organizations", ordre="city")

    assert [o["name"] for o in lignes] == ["Beta", "Acme", "Gamma"]


@pytest.mark.asyncio
async def test_selection_renvoie_des_copies(donnees):
    [ligne] = await donnees.selectionner("organizations", egal={"name": "Acme"})
    ligne["city"] = "Modifiée"

    assert (await selectionner_une(donnees, "organizations", egal={"name": "Acme"}))["city"] == "Paris"


@pytest.mark.asyncio
async def test_insertion_valeurs_par_defaut(donnees):
    [ligne] = await donnees.inserer("collection_periods", [{"organization_name": "Acme", "year": 2025}])

    assert ligne["id"]
    assert ligne["created_at"] is not None


@pytest.mark.asyncio
async def test_cle_unique(donnees):
    with pytest.raises(ErreurServiceDonnees) as exc:
        await donnees.inserer("organizations", [{"name": "Acme"}])

    assert exc.value.code == CODE_VIOLATION_UNICITE
    assert "duplicate key" in exc.value.message


@pytest.mark.asyncio
async def test_mise_a_jour_et_suppression(donnees):
    lignes = await donnees.mettre_a_jour("organizations", {"city": "Nantes"}, egal={"name": "Acme"})
    assert [l["city"] for l in lignes] == ["Nantes"]

    assert await donnees.mettre_a_jour("organizations", {"city": "X"}, egal={"name": "Inconnue"}) == []

    with pytest.raises(ErreurServiceDonnees):
        await donnees.mettre_a_jour("organizations", {"name": "Beta"}, egal={"name": "Acme"})

    assert await donnees.supprimer("organizations", egal={"name": "Acme"}) == 1
    assert await donnees.supprimer("organizations", egal={"name": "Acme"}) == 0


@pytest.mark.asyncio
async def test_journal_et_erreur_programmee(donnees):
    donnees.programmer_erreur("inserer", "sites", ErreurServiceDonnees("permission denied"))

    await donnees.selectionner("organizations")
    with pytest.raises(ErreurServiceDonnees, match="permission denied"):
        await donnees.inserer("sites", [{"name": "S"}])

    assert donnees.journal == [("selectionner", "organizations"), ("inserer", "sites")]
    assert donnees.nombre_appels == 2
    assert "sites" not in donnees.tables
