from fastapi.testclient import TestClient

from app.main import app, create_app
from app.wiring import AppServices, build_services
from services.settings import Settings

client = TestClient(app)


def test_health() -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_build_services_wires_shared_registry() -> None:
    services = build_services(Settings(jwt_secret="s", poller_enabled=False))
    assert isinstance(services, AppServices)
    assert services.dispatcher.registry is services.registry
    assert services.index.enabled is False
    assert services.poller is not None
    assert services.intake is not None


def test_lifespan_starts_and_stops_without_external_services() -> None:
    services = build_services(Settings(jwt_secret="s", poller_enabled=False))
    with TestClient(create_app(services=services)) as lifespan_client:
        assert lifespan_client.get("/health").status_code == 200
        assert not services.poller.running
    assert len(services.registry) == 0
