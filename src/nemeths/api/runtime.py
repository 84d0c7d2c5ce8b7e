"""Runtime primitives backing the Nemeths HTTP API."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress

from nemeths.config import Settings, get_settings
from nemeths.domain.game import run_generation
from nemeths.domain.rules_config import DEFAULT_RULES, RulesConfig
from nemeths.repository import JsonResultRepository
from nemeths.schemas import GenerationSummary, SimulationConfig

logger = logging.getLogger(__name__)


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self, *, settings: Settings | None = None, rules: RulesConfig = DEFAULT_RULES
    ) -> None:
        self.settings = settings or get_settings()
        self.repository = JsonResultRepository(self.settings.data_dir)
        self.rules = rules
        self._run_lock = asyncio.Lock()

    def run_simulation_sync(self, config: SimulationConfig) -> GenerationSummary:
        """Play one generation and store its summary."""

        result = run_generation(config, rules=self.rules)
        summary = self.repository.save_generation(
            GenerationSummary.from_result(result, config=config)
        )
        logger.info(
            "Stored generation %d (seed=%d, winner=%s)",
            summary.id,
            summary.seed,
            summary.winner_id,
        )
        return summary

    async def run_simulation(self, config: SimulationConfig) -> GenerationSummary:
        # id assignment reads the directory, so runs are serialised
        async with self._run_lock:
            return await asyncio.to_thread(self.run_simulation_sync, config)

    def list_simulations(self) -> list[GenerationSummary]:
        """Return every stored summary ordered by id."""

        summaries: list[GenerationSummary] = []
        for generation_id in self.repository.list_generations():
            with suppress(FileNotFoundError):
                summaries.append(self.repository.load_generation(generation_id))
        return summaries

    def get_simulation(self, generation_id: int) -> GenerationSummary:
        return self.repository.load_generation(generation_id)

    def delete_simulation(self, generation_id: int) -> None:
        self.repository.delete_generation(generation_id)
        logger.info("Deleted generation %d", generation_id)

    async def shutdown(self) -> None:
        async with self._run_lock:
            logger.debug("API state shut down")


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
