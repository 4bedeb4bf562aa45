"""Filtered comparative analytics for subject properties."""

from compsetiq.analysis.filters import FilterEngine
from compsetiq.analysis.aggregator import UnitAggregator
from compsetiq.analysis.edges import EdgeCalculator
from compsetiq.analysis.comparative import ComparativeAnalyzer
