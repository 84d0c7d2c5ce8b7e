"""Integration tests for the FastAPI layer."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from nemeths.api.app import create_app
from nemeths.api.runtime import ApiState
from nemeths.config import Settings

SMALL_RUN = {"map_size": 24, "players": 3, "days": 8, "seed": 31}


def _make_app(tmp_path):
    def factory() -> ApiState:
        return ApiState(settings=Settings(data_dir=tmp_path))

    app = create_app(state_factory=factory)
    transport = ASGITransport(app=app)
    return app, transport


@pytest.mark.asyncio
async def test_simulation_lifecycle_via_api(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["stored_simulations"] == 0

        response = await client.post("/simulations", json=SMALL_RUN)
        assert response.status_code == 201
        created = response.json()
        assert created["id"] == 1
        assert created["seed"] == 31
        assert len(created["players"]) == 3
        assert created["config"]["map_size"] == 24

        response = await client.get("/simulations")
        assert response.status_code == 200
        listing = response.json()
        assert [item["id"] for item in listing] == [1]
        assert listing[0]["player_count"] == 3

        response = await client.get("/simulations/1")
        assert response.status_code == 200
        assert response.json()["winner_id"] == created["winner_id"]

        response = await client.delete("/simulations/1")
        assert response.status_code == 204

        response = await client.get("/simulations/1")
        assert response.status_code == 404
        response = await client.delete("/simulations/1")
        assert response.status_code == 404


@pytest.mark.asyncio
async def test_same_request_same_result(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        first = (await client.post("/simulations", json=SMALL_RUN)).json()
        second = (await client.post("/simulations", json=SMALL_RUN)).json()

    assert second["id"] == 2
    assert first["winner_id"] == second["winner_id"]
    assert first["players"] == second["players"]
    assert first["combat_count"] == second["combat_count"]


@pytest.mark.asyncio
async def test_invalid_config_and_rules(tmp_path):
    app, transport = _make_app(tmp_path)

    async with (
        app.router.lifespan_context(app),
        AsyncClient(transport=transport, base_url="http://test") as client,
    ):
        response = await client.post("/simulations", json={"map_size": 4})
        assert response.status_code == 422

        response = await client.get("/rules")
        assert response.status_code == 200
        rules = response.json()
        assert rules["scheduler"]["actions_per_turn"] == 3
        assert rules["map"]["forsaken_density"]["heart"] == 0.5

        response = await client.get("/simulations/99")
        assert response.status_code == 404
        assert response.json()["detail"] == "simulation 99 not found"
