from pydantic import BaseModel, Field, model_validator

from nemeths.domain.enums import AgentType


class AgentDistribution(BaseModel):
    random: float = Field(default=0.1, ge=0.0, description="Weight of random agents")
    aggressive: float = Field(default=0.25, ge=0.0, description="Weight of aggressive agents")
    defensive: float = Field(default=0.2, ge=0.0, description="Weight of defensive agents")
    economic: float = Field(default=0.2, ge=0.0, description="Weight of economic agents")
    balanced: float = Field(default=0.25, ge=0.0, description="Weight of balanced agents")

    @model_validator(mode="after")
    def _require_positive_weight(self) -> "AgentDistribution":
        if sum(self.weights().values()) <= 0:
            raise ValueError("agent distribution needs at least one positive weight")
        return self

    def weights(self) -> dict[AgentType, float]:
        """Weights keyed by agent type, in the order agents are drawn."""

        return {
            AgentType.RANDOM: self.random,
            AgentType.AGGRESSIVE: self.aggressive,
            AgentType.DEFENSIVE: self.defensive,
            AgentType.ECONOMIC: self.economic,
            AgentType.BALANCED: self.balanced,
        }

    @classmethod
    def even(cls) -> "AgentDistribution":
        return cls(random=0.2, aggressive=0.2, defensive=0.2, economic=0.2, balanced=0.2)


class SimulationConfig(BaseModel):
    map_size: int = Field(default=100, ge=16, description="Side length of the square map")
    days: int = Field(default=50, ge=1, description="Days simulated per generation")
    players: int = Field(default=20, ge=1, description="Players joining each generation")
    agent_distribution: AgentDistribution = Field(
        default_factory=AgentDistribution, description="Relative weights of agent strategies"
    )
    seed: int = Field(default=12345, description="Seed for every random draw of the generation")
    verbose: bool = Field(default=False, description="Log per-day progress")


class BatchConfig(BaseModel):
    generations: int = Field(default=100, ge=1, description="Generations to simulate")
    simulation: SimulationConfig = Field(
        default_factory=SimulationConfig,
        description="Template configuration; each generation derives its own seed",
    )
    workers: int = Field(
        default=1, ge=0, description="Worker processes (0 or 1 runs serially in-process)"
    )
