"""HTTP routes for the Nemeths API."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel

from nemeths import __version__
from nemeths.api.runtime import ApiState
from nemeths.schemas import GenerationSummary, SimulationConfig

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


class SimulationListItem(BaseModel):
    id: int
    seed: int
    winner_id: int | None
    final_day: int
    player_count: int
    combat_count: int
    created_at: datetime


def _not_found(generation_id: int) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND, detail=f"simulation {generation_id} not found"
    )


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "version": __version__,
        "stored_simulations": len(state.repository.list_generations()),
    }


@router.get("/rules")
async def rules_overview(state: ApiStateDep) -> dict[str, object]:
    """Expose a snapshot of the tunable rule constants for clients."""

    scheduler = state.rules.scheduler
    economy = state.rules.economy
    combat = state.rules.combat
    return {
        "scheduler": {
            "planning_end_day": scheduler.planning_end_day,
            "active_end_day": scheduler.active_end_day,
            "actions_per_turn": scheduler.actions_per_turn,
            "premium_chance": scheduler.premium_chance,
            "starter_army_size": scheduler.starter_army_size,
        },
        "economy": {
            "base_gold_per_territory": economy.base_gold_per_territory,
            "base_food_per_territory": economy.base_food_per_territory,
            "starvation_desertion_rate": economy.starvation_desertion_rate,
            "morale_recovery_per_day": economy.morale_recovery_per_day,
        },
        "combat": {
            "attacker_role_bonus": combat.attacker_role_bonus,
            "defender_role_bonus": combat.defender_role_bonus,
            "base_territory_bonus": combat.base_territory_bonus,
            "decisive_ratio": combat.decisive_ratio,
            "assassination_chance": combat.assassination_chance,
            "death_save_threshold": combat.death_save_threshold,
        },
        "map": {
            "heartbeat_interval_days": state.rules.map.heartbeat_interval_days,
            "forsaken_density": dict(state.rules.map.forsaken_density),
        },
    }


@router.post(
    "/simulations",
    response_model=GenerationSummary,
    status_code=status.HTTP_201_CREATED,
)
async def create_simulation(
    config: SimulationConfig, state: ApiStateDep
) -> GenerationSummary:
    return await state.run_simulation(config)


@router.get("/simulations", response_model=list[SimulationListItem])
async def list_simulations(state: ApiStateDep) -> list[SimulationListItem]:
    return [
        SimulationListItem(
            id=summary.id,
            seed=summary.seed,
            winner_id=summary.winner_id,
            final_day=summary.final_day,
            player_count=len(summary.players),
            combat_count=summary.combat_count,
            created_at=summary.created_at,
        )
        for summary in state.list_simulations()
        if summary.id is not None
    ]


@router.get("/simulations/{generation_id}", response_model=GenerationSummary)
async def get_simulation(generation_id: int, state: ApiStateDep) -> GenerationSummary:
    try:
        return state.get_simulation(generation_id)
    except FileNotFoundError as exc:
        raise _not_found(generation_id) from exc


@router.delete("/simulations/{generation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_simulation(generation_id: int, state: ApiStateDep) -> Response:
    try:
        state.delete_simulation(generation_id)
    except FileNotFoundError as exc:
        raise _not_found(generation_id) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
