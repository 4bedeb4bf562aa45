"""View-side state for the optimization goal controls.

The sliders glide from their current values to a preset in fixed steps. The
frames are computed here so any front end can replay them; the last frame
always equals the preset exactly.
"""

from __future__ import annotations

import logging
import math

from pydantic import Field

from compsetiq.config import OptimizationConfig
from compsetiq.errors import ValidationError
from compsetiq.models import CamelModel, OptimizationGoal, OptimizationParameters
from compsetiq.optimization.presets import OptimizationPresetMapper, parse_goal

logger = logging.getLogger(__name__)


def interpolate(current: int, target: int, steps: int) -> list[int]:
    """Stepped, rounded frames from current to target, ending on target."""
    if current == target:
        return [target]
    step_size = (target - current) / steps
    frames = [int(math.floor(current + step_size * i + 0.5)) for i in range(steps)]
    frames.append(target)
    return frames


class GoalTransition(CamelModel):
    goal: OptimizationGoal
    occupancy_frames: list[int] = Field(default_factory=list)
    risk_frames: list[int] = Field(default_factory=list)
    interval_ms: float = 0.0

    @property
    def animated(self) -> bool:
        return len(self.occupancy_frames) > 1 or len(self.risk_frames) > 1


class GoalControls:
    """Current goal plus the occupancy/risk values the sliders show."""

    def __init__(
        self,
        goal: OptimizationGoal = OptimizationGoal.BALANCED,
        config: OptimizationConfig | None = None,
        mapper: OptimizationPresetMapper | None = None,
    ):
        self.cfg = config or OptimizationConfig()
        self.mapper = mapper or OptimizationPresetMapper()
        self.goal = parse_goal(goal)
        params = self.mapper.parameters_for(self.goal)
        if params is None:
            params = self.mapper.parameters_for(OptimizationGoal.BALANCED)
        self.occupancy = params.occupancy
        self.risk = params.risk

    @property
    def parameters(self) -> OptimizationParameters:
        return OptimizationParameters(occupancy=self.occupancy, risk=self.risk)

    @property
    def is_custom(self) -> bool:
        return self.goal == OptimizationGoal.CUSTOM

    def select_goal(self, goal: str | OptimizationGoal) -> GoalTransition:
        """Switch goal and return the frames the sliders should play.

        Switching to custom keeps the current values as they are.
        """
        goal = parse_goal(goal)
        previous = self.goal
        self.goal = goal

        target = self.mapper.parameters_for(goal)
        if target is None or goal == previous:
            return GoalTransition(
                goal=goal, occupancy_frames=[self.occupancy], risk_frames=[self.risk]
            )

        steps = max(1, self.cfg.transition_steps)
        transition = GoalTransition(
            goal=goal,
            occupancy_frames=interpolate(self.occupancy, target.occupancy, steps),
            risk_frames=interpolate(self.risk, target.risk, steps),
            interval_ms=self.cfg.transition_ms / steps,
        )
        self.occupancy = target.occupancy
        self.risk = target.risk
        logger.debug(
            "Goal %s -> %s: occupancy=%d risk=%d",
            previous.value, goal.value, self.occupancy, self.risk,
        )
        return transition

    def set_custom_values(self, occupancy: int | None = None, risk: int | None = None) -> None:
        """Adjust sliders by hand; only allowed with the custom goal."""
        if not self.is_custom:
            raise ValidationError("goal", "slider values can only be edited in custom mode")
        if occupancy is not None:
            if not 85 <= occupancy <= 100:
                raise ValidationError("occupancy", "must be between 85 and 100")
            self.occupancy = occupancy
        if risk is not None:
            if risk not in (1, 2, 3):
                raise ValidationError("risk", "must be 1, 2 or 3")
            self.risk = risk
