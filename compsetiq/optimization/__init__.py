"""Optimization goal presets and controls."""

from compsetiq.optimization.presets import PRESETS, OptimizationPresetMapper, risk_label
from compsetiq.optimization.controls import GoalControls, GoalTransition, interpolate
