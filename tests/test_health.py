"""Tests for the liveness / readiness endpoints."""
import asyncio
import json

from aiohttp.test_utils import make_mocked_request

from services.health import BotState, create_health_app, health_handler, status_handler
from taro.catalog import CardCatalog
from tests.fakes import make_store


class FakeCommands:
    def uptime_seconds(self):
        return 125.5


def call(handler, state, path):
    app = create_health_app(state)
    request = make_mocked_request("GET", path, app=app)
    response = asyncio.run(handler(request))
    return response.status, json.loads(response.body)


class TestHealth:
    def test_status_reports_uptime(self):
        state = BotState(CardCatalog(make_store()), FakeCommands())

        status, body = call(status_handler, state, "/")

        assert status == 200
        assert body["status"] == "running"
        assert body["uptime_seconds"] == 125.5
        assert "timestamp" in body

    def test_not_ready_before_load(self):
        state = BotState(CardCatalog(make_store()), FakeCommands())
        state.polling = True

        _, body = call(health_handler, state, "/health")

        assert body == {"ready": False, "bot_status": "not_ready", "cards_loaded": 0, "spreads_loaded": 0}

    def test_ready_after_load_and_polling(self):
        catalog = CardCatalog(make_store())
        asyncio.run(catalog.load())
        state = BotState(catalog, FakeCommands())

        assert call(health_handler, state, "/health")[1]["ready"] is False

        state.polling = True
        _, body = call(health_handler, state, "/health")

        assert body == {"ready": True, "bot_status": "ready", "cards_loaded": 22, "spreads_loaded": 6}

    def test_routes(self):
        app = create_health_app(BotState(CardCatalog(make_store()), FakeCommands()))

        paths = {r.resource.canonical for r in app.router.routes()}

        assert {"/", "/health"} <= paths
