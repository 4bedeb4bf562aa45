"""Unit-level competitive positioning of a subject against its market."""

from __future__ import annotations

from compsetiq.config import AnalysisConfig
from compsetiq.models import (
    CompetitiveEdge,
    CompetitiveEdges,
    EdgeStatus,
    PropertyUnit,
    UnitStatus,
)


def _avg(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def percentile_rank(subject_avg_rent: float, competitor_rents: list[float]) -> int:
    """Share of competitor units renting below the subject's average, 0-100.

    Returns 50 when there is nothing to rank against.
    """
    if not competitor_rents or subject_avg_rent <= 0:
        return 50
    below = sum(1 for r in competitor_rents if r < subject_avg_rent)
    return round(below / len(competitor_rents) * 100)


def market_position(rank: int) -> str:
    if rank > 75:
        return "Premium Market Leader"
    if rank > 50:
        return "Above Market Average"
    if rank > 25:
        return "Below Market Average"
    return "Value Market Position"


class EdgeCalculator:
    """Compares pooled subject units with pooled competitor units."""

    def __init__(self, config: AnalysisConfig | None = None):
        self.cfg = config or AnalysisConfig()

    def calculate(
        self,
        subject_units: list[PropertyUnit],
        competitor_units: list[PropertyUnit],
    ) -> CompetitiveEdges:
        if not competitor_units:
            return CompetitiveEdges(
                recommendations=["Add active competitors to compare against the market"],
            )

        subject_rents = [u.current_rent for u in subject_units if u.has_rent]
        competitor_rents = sorted(u.current_rent for u in competitor_units if u.has_rent)
        subject_rent = _avg(subject_rents)
        competitor_rent = _avg(competitor_rents)
        subject_sqft = _avg([float(u.square_feet) for u in subject_units if u.has_sqft])
        competitor_sqft = _avg([float(u.square_feet) for u in competitor_units if u.has_sqft])

        rank = percentile_rank(subject_rent, competitor_rents)
        pricing = self._pricing_edge(subject_rent, competitor_rent)
        size = self._size_edge(subject_sqft, competitor_sqft)
        availability = self._availability_edge(subject_units, competitor_units)

        size_bonus = {EdgeStatus.ADVANTAGE: 10, EdgeStatus.DISADVANTAGE: -10}.get(size.status, 0)
        power = min(100, max(0, rank + size_bonus))

        advantages: list[str] = []
        if rank > 75:
            advantages.append("Premium market positioning")
        if size.status == EdgeStatus.ADVANTAGE:
            advantages.append("Larger than average units")
        if pricing.status == EdgeStatus.ADVANTAGE:
            advantages.append("Competitive pricing advantage")
        if availability.status == EdgeStatus.ADVANTAGE:
            advantages.append("Higher unit availability")

        recommendations: list[str] = []
        if rank < 30:
            recommendations.append("Consider reviewing pricing strategy to better align with market")
        if size.status == EdgeStatus.DISADVANTAGE:
            recommendations.append("Highlight other value propositions to offset smaller unit sizes")
        if pricing.status == EdgeStatus.DISADVANTAGE:
            recommendations.append("Ensure premium pricing is justified by amenities or location")
        if availability.status == EdgeStatus.DISADVANTAGE:
            recommendations.append("Limited availability may support premium pricing strategy")
        if not recommendations:
            recommendations.append("Maintain current competitive positioning")

        return CompetitiveEdges(
            pricing=pricing,
            size=size,
            availability=availability,
            percentile_rank=rank,
            pricing_power_score=power,
            market_position=market_position(rank),
            price_per_sq_ft=round(subject_rent / subject_sqft, 2) if subject_sqft > 0 else 0.0,
            competitive_advantages=advantages,
            recommendations=recommendations,
        )

    def _pricing_edge(self, subject_rent: float, competitor_rent: float) -> CompetitiveEdge:
        if competitor_rent <= 0 or subject_rent <= 0:
            return CompetitiveEdge()
        edge = (subject_rent - competitor_rent) / competitor_rent * 100
        if edge > 0:
            label = f"+{round(edge)}% above market"
        elif edge < 0:
            label = f"{abs(round(edge))}% below market"
        else:
            label = "At market rate"
        # Pricing above the market is a leasing disadvantage, below is an advantage
        if edge > self.cfg.pricing_edge_pct:
            status = EdgeStatus.DISADVANTAGE
        elif edge < -self.cfg.pricing_edge_pct:
            status = EdgeStatus.ADVANTAGE
        else:
            status = EdgeStatus.NEUTRAL
        return CompetitiveEdge(edge=round(edge, 1), label=label, status=status)

    def _size_edge(self, subject_sqft: float, competitor_sqft: float) -> CompetitiveEdge:
        if competitor_sqft <= 0 or subject_sqft <= 0:
            return CompetitiveEdge()
        edge = subject_sqft - competitor_sqft
        if edge > 0:
            label = f"+{round(edge)} sq ft larger"
        elif edge < 0:
            label = f"{abs(round(edge))} sq ft smaller"
        else:
            label = "Similar size"
        if edge > self.cfg.size_edge_sqft:
            status = EdgeStatus.ADVANTAGE
        elif edge < -self.cfg.size_edge_sqft:
            status = EdgeStatus.DISADVANTAGE
        else:
            status = EdgeStatus.NEUTRAL
        return CompetitiveEdge(edge=round(edge), label=label, status=status)

    def _availability_edge(
        self,
        subject_units: list[PropertyUnit],
        competitor_units: list[PropertyUnit],
    ) -> CompetitiveEdge:
        edge = sum(1 for u in subject_units if u.status == UnitStatus.VACANT) - sum(
            1 for u in competitor_units if u.status == UnitStatus.VACANT
        )
        if edge > 0:
            label = f"{edge} more units available"
        elif edge < 0:
            label = f"{abs(edge)} fewer units available"
        else:
            label = "Similar availability"
        threshold = self.cfg.availability_edge_units
        if edge > threshold:
            status = EdgeStatus.ADVANTAGE
        elif edge < -threshold:
            status = EdgeStatus.DISADVANTAGE
        else:
            status = EdgeStatus.NEUTRAL
        return CompetitiveEdge(edge=edge, label=label, status=status)
