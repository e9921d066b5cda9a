import pytest
from botocore.exceptions import EndpointConnectionError
from fastapi.testclient import TestClient

from lex_provider.api.deps import (
    get_bot_alias_resource,
    get_bot_resource,
    get_state_store,
)
from lex_provider.main import app
from lex_provider.schemas.lex import BotConfig
from lex_provider.services.state import ResourceStateStore
from tests.conftest import alias_payload, bot_payload


@pytest.fixture
def api(bot_resource, alias_resource):
    store = ResourceStateStore()
    app.dependency_overrides[get_bot_resource] = lambda: bot_resource
    app.dependency_overrides[get_bot_alias_resource] = lambda: alias_resource
    app.dependency_overrides[get_state_store] = lambda: store
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def test_health_probes(api):
    assert api.get("/health/live").json() == {"status": "alive"}
    assert api.get("/health/ready").json()["status"] == "ok"


def test_request_id_is_echoed(api):
    response = api.get("/health/live", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"


def test_create_bot(api, fake_lex):
    response = api.post("/v1/bots", json=bot_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["id"] == "OrderFlowers"
    assert body["checksum"] == "checksum-1"
    assert body["process_behavior"] == "BUILD"
    assert body["intent"] == [{"intent_name": "OrderFlowers", "intent_version": "1"}]
    assert len(body["abort_statement"]) == 1


def test_create_bot_twice_conflicts(api):
    api.post("/v1/bots", json=bot_payload())

    assert api.post("/v1/bots", json=bot_payload()).status_code == 409


def test_invalid_config_is_rejected_before_calling_lex(api, fake_lex):
    response = api.post("/v1/bots", json=bot_payload(name="Order-Flowers"))

    assert response.status_code == 422
    assert fake_lex.calls == []


def test_remote_conflict_on_create_maps_to_409(api, fake_lex):
    fake_lex.fail("put_bot", "ConflictException")

    response = api.post("/v1/bots", json=bot_payload())

    assert response.status_code == 409
    assert "error creating bot OrderFlowers" in response.json()["detail"]


def test_read_drops_bot_missing_remotely(api, fake_lex):
    api.post("/v1/bots", json=bot_payload())
    fake_lex.bots.clear()

    assert api.get("/v1/bots/OrderFlowers").status_code == 404
    assert "not managed" in api.get("/v1/bots/OrderFlowers").json()["detail"]


def test_read_keeps_configured_process_behavior(api):
    api.post("/v1/bots", json=bot_payload())

    assert api.get("/v1/bots/OrderFlowers").json()["process_behavior"] == "BUILD"


def test_update_bot(api):
    created = api.post("/v1/bots", json=bot_payload()).json()

    response = api.put(
        "/v1/bots/OrderFlowers", json=bot_payload(idle_session_ttl_in_seconds=900)
    )

    assert response.status_code == 200
    assert response.json()["idle_session_ttl_in_seconds"] == 900
    assert response.json()["checksum"] != created["checksum"]


def test_update_cannot_change_locale(api):
    api.post("/v1/bots", json=bot_payload())

    response = api.put("/v1/bots/OrderFlowers", json=bot_payload(locale="en-GB"))

    assert response.status_code == 409


def test_update_timeout_maps_to_504(api, fake_lex):
    api.post("/v1/bots", json=bot_payload())
    fake_lex.fail("put_bot", "ConflictException", times=None)

    response = api.put("/v1/bots/OrderFlowers", json=bot_payload())

    assert response.status_code == 504
    assert "bot still updating" in response.json()["detail"]


def test_delete_bot(api, fake_lex):
    api.post("/v1/bots", json=bot_payload())

    assert api.delete("/v1/bots/OrderFlowers").status_code == 204
    assert fake_lex.bots == {}
    assert api.get("/v1/bots/OrderFlowers").status_code == 404


def test_import_bot(api, bot_resource):
    bot_resource.create(BotConfig.model_validate(bot_payload()))

    response = api.post("/v1/bots/import", json={"id": "OrderFlowers"})

    assert response.status_code == 200
    assert response.json()["version"] == "$LATEST"
    assert api.get("/v1/bots/OrderFlowers").status_code == 200


def test_bot_alias_lifecycle(api, fake_lex):
    api.post("/v1/bots", json=bot_payload())

    created = api.post("/v1/bot-aliases", json=alias_payload())
    assert created.status_code == 201
    assert created.json()["id"] == "OrderFlowersProd"

    updated = api.put(
        "/v1/bot-aliases/OrderFlowers/OrderFlowersProd",
        json=alias_payload(bot_version="$LATEST"),
    )
    assert updated.json()["bot_version"] == "$LATEST"

    fake_lex.alias_linger_polls = 2
    assert api.delete("/v1/bot-aliases/OrderFlowers/OrderFlowersProd").status_code == 204
    assert api.delete("/v1/bots/OrderFlowers").status_code == 204


def test_import_bot_alias(api, fake_lex):
    fake_lex.put_bot_alias(botName="OrderFlowers", botVersion="1", name="OrderFlowersProd")

    response = api.post("/v1/bot-aliases/import", json={"id": "OrderFlowers.OrderFlowersProd"})

    assert response.status_code == 200
    assert response.json()["bot_name"] == "OrderFlowers"
    assert response.json()["name"] == "OrderFlowersProd"


def test_import_bot_alias_rejects_bad_id(api, fake_lex):
    response = api.post("/v1/bot-aliases/import", json={"id": "OrderFlowers"})

    assert response.status_code == 400
    assert "BOT_NAME.BOT_ALIAS_NAME" in response.json()["detail"]
    assert fake_lex.calls == []


def test_import_bot_rejects_invalid_name_before_calling_lex(api, fake_lex):
    response = api.post("/v1/bots/import", json={"id": "Order.Flowers-9"})

    assert response.status_code == 400
    assert "BOT_NAME" in response.json()["detail"]
    assert fake_lex.calls == []


def test_transport_failure_maps_to_502(api, fake_lex):
    api.post("/v1/bots", json=bot_payload())
    fake_lex.raise_on(
        "get_bot", EndpointConnectionError(endpoint_url="https://models.lex.example")
    )

    response = api.get("/v1/bots/OrderFlowers")

    assert response.status_code == 502
    assert "error reading bot OrderFlowers" in response.json()["detail"]
