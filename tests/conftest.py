from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from gestion_energie.api.dependances import fournir_service_auth, fournir_service_donnees
from gestion_energie.core.service_auth import ServiceAuthJwt
from gestion_energie.core.service_donnees import ServiceDonneesMemoire
from gestion_energie.main import creer_application
from tests._helpers import SECRET_TEST


@pytest.fixture
def donnees() -> ServiceDonneesMemoire:
    """Service de données en mémoire, vide."""

    return ServiceDonneesMemoire()


@pytest.fixture
def auth(donnees: ServiceDonneesMemoire) -> ServiceAuthJwt:
    return ServiceAuthJwt(donnees, secret=SECRET_TEST, duree_minutes=60)


@pytest.fixture
def donnees_taxonomie() -> ServiceDonneesMemoire:
    """Taxonomie minimale : un secteur, deux énergies, une norme, deux enjeux, trois critères."""

    return ServiceDonneesMemoire(
        {
            "sectors": [{"name": "Industrie"}],
            "energy_types": [
                {"sector_name": "Industrie", "name": "Electricite"},
                {"sector_name": "Industrie", "name": "Gaz"},
            ],
            "sector_standards": [
                {"sector_name": "Industrie", "energy_type_name": "Electricite", "standard_codes": ["ISO50001"]},
                {"sector_name": "Industrie", "energy_type_name": "Gaz", "standard_codes": ["ISO50001", "ISO14001"]},
            ],
            "sector_standards_issues": [
                {
                    "sector_name": "Industrie",
                    "energy_type_name": "Electricite",
                    "standard_name": "ISO50001",
                    "issue_codes": ["E1", "E2", "E1"],
                },
            ],
            "issues": [
                {"code": "E1", "name": "Efficacité énergétique"},
                {"code": "E2", "name": "Sobriété"},
            ],
            "sector_standards_issues_criteria": [
                {
                    "sector_name": "Industrie",
                    "energy_type_name": "Electricite",
                    "standard_name": "ISO50001",
                    "issue_name": "E1",
                    "criteria_codes": ["C1", "C2"],
                },
            ],
            "criteria": [
                {"code": "C1", "name": "Consommation", "description": "Consommation globale"},
                {"code": "C2", "name": "Pointe", "description": None},
            ],
            "sector_standards_issues_criteria_indicators": [
                {
                    "sector_name": "Industrie",
                    "energy_type_name": "Electricite",
                    "standard_name": "ISO50001",
                    "issue_name": "E1",
                    "criteria_name": "Consommation",
                    "indicator_codes": ["I1", "I2"],
                    "unit": "kWh",
                },
                {
                    "sector_name": "Industrie",
                    "energy_type_name": "Electricite",
                    "standard_name": "ISO50001",
                    "issue_name": "E1",
                    "criteria_name": "Pointe",
                    "indicator_codes": ["I2", "I9"],
                    "unit": "kW",
                },
            ],
            "indicators": [
                {"code": "I1", "name": "Consommation annuelle"},
                {"code": "I2", "name": "Puissance max"},
            ],
        }
    )


def _client(donnees: ServiceDonneesMemoire) -> Iterator[TestClient]:
    application = creer_application()
    service_auth = ServiceAuthJwt(donnees, secret=SECRET_TEST, duree_minutes=60)

    application.dependency_overrides[fournir_service_donnees] = lambda: donnees
    application.dependency_overrides[fournir_service_auth] = lambda: service_auth

    with TestClient(application) as client:
        yield client


@pytest.fixture
def client(donnees: ServiceDonneesMemoire) -> Iterator[TestClient]:
    yield from _client(donnees)


@pytest.fixture
def client_taxonomie(donnees_taxonomie: ServiceDonneesMemoire) -> Iterator[TestClient]:
    yield from _client(donnees_taxonomie)

