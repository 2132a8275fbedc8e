from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from meadpilot.core.config import settings
from meadpilot.main import create_app


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    with TestClient(create_app()) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    response = client.get(f"{settings.api_prefix}/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Request-ID"]


def test_target_calculation(client: TestClient) -> None:
    response = client.post(
        f"{settings.api_prefix}/calculator/target",
        json={"volume_liters": 5, "target_abv": 12},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["og"] == 1.091
    assert body["honey_needed_kg"] == 1.57


def test_target_calculation_rejects_zero_volume(client: TestClient) -> None:
    response = client.post(
        f"{settings.api_prefix}/calculator/target",
        json={"volume_liters": 0, "target_abv": 12},
    )

    assert response.status_code == 422


def test_ingredients_calculation_with_fruit(client: TestClient) -> None:
    response = client.post(
        f"{settings.api_prefix}/calculator/ingredients",
        json={
            "volume_liters": 10,
            "honey_kg": 2,
            "fruits": [{"name": "Apple", "amount": 2, "sugarPercent": 13}],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["og"] == 1.068
    assert body["abv"] == 9.0


def test_fruit_presets(client: TestClient) -> None:
    response = client.get(f"{settings.api_prefix}/calculator/fruits", params={"include_custom": "false"})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 22
    assert body["items"][0] == {"name": "Apple", "sugar_percent": 13.0}


def test_abv_from_readings(client: TestClient) -> None:
    response = client.post(f"{settings.api_prefix}/calculator/abv", json={"og": 1.091, "fg": 1.01})

    assert response.status_code == 200
    assert response.json() == {"og": "1.091", "fg": "1.010", "abv": 10.6}


def test_abv_rejects_gravity_out_of_range(client: TestClient) -> None:
    response = client.post(f"{settings.api_prefix}/calculator/abv", json={"og": 1.091, "fg": 0.95})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_recipe_preview_drops_blank_fruits(client: TestClient) -> None:
    response = client.post(
        f"{settings.api_prefix}/calculator/recipe",
        json={
            "name": "Melomel",
            "mode": "ingredients",
            "volume": 10,
            "honeyAmount": 2,
            "fruits": [
                {"name": "Apple", "amount": 2, "sugarPercent": 13},
                {"name": "", "amount": 1, "sugarPercent": 10},
            ],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert [fruit["name"] for fruit in body["fruits"]] == ["Apple"]
    assert body["calculatedOg"] == "1.072"
    assert "id" not in body


def test_metrics_count_requests(client: TestClient) -> None:
    client.get(f"{settings.api_prefix}/health")
    client.post(f"{settings.api_prefix}/calculator/target", json={"volume_liters": 0, "target_abv": 1})

    response = client.get(f"{settings.api_prefix}/observability/metrics")

    assert response.status_code == 200
    routes = {(route["method"], route["path"]): route for route in response.json()["requests"]}
    assert routes[("GET", f"{settings.api_prefix}/health")]["count"] == 1
    assert routes[("POST", f"{settings.api_prefix}/calculator/target")]["status_classes"] == {"4xx": 1}
