"""Optimization goal presets."""

from __future__ import annotations

from compsetiq.errors import ValidationError
from compsetiq.models import OptimizationGoal, OptimizationParameters

# (target occupancy %, risk tolerance 1-3) per goal
PRESETS: dict[OptimizationGoal, tuple[int, int]] = {
    OptimizationGoal.MAXIMIZE_REVENUE: (85, 3),
    OptimizationGoal.MAXIMIZE_OCCUPANCY: (98, 1),
    OptimizationGoal.BALANCED: (92, 2),
}

_RISK_LABELS = {1: "Low", 2: "Medium", 3: "High"}


def parse_goal(goal: str | OptimizationGoal) -> OptimizationGoal:
    try:
        return OptimizationGoal(goal)
    except ValueError:
        raise ValidationError(
            "goal", f"unknown goal {goal!r}, expected one of {[g.value for g in OptimizationGoal]}"
        ) from None


def risk_label(risk: int) -> str:
    return _RISK_LABELS.get(risk, "Medium")


class OptimizationPresetMapper:
    """Maps an optimization goal to its occupancy and risk parameters."""

    def parameters_for(self, goal: str | OptimizationGoal) -> OptimizationParameters | None:
        """Preset parameters for a goal, or None for custom.

        Custom values are authored by the user and must never be replaced
        by a preset.
        """
        goal = parse_goal(goal)
        if goal == OptimizationGoal.CUSTOM:
            return None
        occupancy, risk = PRESETS[goal]
        return OptimizationParameters(occupancy=occupancy, risk=risk)
