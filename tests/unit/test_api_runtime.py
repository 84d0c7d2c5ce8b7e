"""Tests for the API runtime state."""

from __future__ import annotations

import pytest

from nemeths.api.runtime import ApiState
from nemeths.config import Settings, get_settings
from nemeths.schemas import SimulationConfig


def test_run_simulation_sync_stores_summary(tmp_path):
    state = ApiState(settings=Settings(data_dir=tmp_path))
    config = SimulationConfig(map_size=20, players=2, days=5, seed=3)

    summary = state.run_simulation_sync(config)

    assert summary.id == 1
    assert state.get_simulation(1) == summary
    assert [s.id for s in state.list_simulations()] == [1]

    state.delete_simulation(1)
    assert state.list_simulations() == []
    with pytest.raises(FileNotFoundError):
        state.delete_simulation(1)


@pytest.mark.asyncio
async def test_run_simulation_async(tmp_path):
    state = ApiState(settings=Settings(data_dir=tmp_path))
    summary = await state.run_simulation(SimulationConfig(map_size=20, players=2, days=3, seed=9))
    assert summary.config.seed == 9
    await state.shutdown()


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("NEMETHS_DATA_DIR", str(tmp_path / "store"))
    monkeypatch.setenv("NEMETHS_WORKERS", "4")
    get_settings.cache_clear()
    try:
        settings = get_settings()
        assert settings.workers == 4
        assert (tmp_path / "store").is_dir()
    finally:
        get_settings.cache_clear()
