"""Tests for competitive edge calculation."""

from compsetiq.analysis.edges import EdgeCalculator, market_position, percentile_rank
from compsetiq.config import AnalysisConfig
from compsetiq.models import EdgeStatus, PropertyUnit, UnitStatus


def _make_unit(**overrides) -> PropertyUnit:
    defaults = {
        "property_id": "p1",
        "unit_number": "101",
        "bedrooms": 1,
        "square_feet": 800,
        "current_rent": 1500.0,
        "status": UnitStatus.OCCUPIED,
    }
    defaults.update(overrides)
    return PropertyUnit(**defaults)


def test_percentile_rank():
    assert percentile_rank(1500, [1000, 1200, 1400, 1600]) == 75
    assert percentile_rank(900, [1000, 1200]) == 0
    assert percentile_rank(1500, []) == 50
    assert percentile_rank(0, [1000]) == 50


def test_market_position_bands():
    assert market_position(90) == "Premium Market Leader"
    assert market_position(60) == "Above Market Average"
    assert market_position(40) == "Below Market Average"
    assert market_position(10) == "Value Market Position"


class TestEdgeCalculator:
    def setup_method(self):
        self.calc = EdgeCalculator(AnalysisConfig())

    def test_no_competitors(self):
        edges = self.calc.calculate([_make_unit()], [])
        assert edges.percentile_rank == 50
        assert edges.pricing.status == EdgeStatus.NEUTRAL
        assert edges.recommendations

    def test_overpriced_subject(self):
        subject = [_make_unit(current_rent=1500)]
        competitors = [_make_unit(current_rent=1200), _make_unit(current_rent=1300)]
        edges = self.calc.calculate(subject, competitors)
        assert edges.pricing.edge == 20.0
        assert edges.pricing.status == EdgeStatus.DISADVANTAGE
        assert edges.pricing.label == "+20% above market"
        assert edges.percentile_rank == 100

    def test_underpriced_and_larger(self):
        subject = [_make_unit(current_rent=1000, square_feet=1000)]
        competitors = [_make_unit(current_rent=1250, square_feet=850)]
        edges = self.calc.calculate(subject, competitors)
        assert edges.pricing.status == EdgeStatus.ADVANTAGE
        assert edges.size.edge == 150
        assert edges.size.status == EdgeStatus.ADVANTAGE
        assert "Larger than average units" in edges.competitive_advantages
        assert edges.price_per_sq_ft == 1.0

    def test_missing_data_is_neutral(self):
        subject = [_make_unit(current_rent=None, square_feet=None)]
        competitors = [_make_unit(current_rent=None, square_feet=None)]
        edges = self.calc.calculate(subject, competitors)
        assert edges.pricing.status == EdgeStatus.NEUTRAL
        assert edges.size.status == EdgeStatus.NEUTRAL
        assert edges.price_per_sq_ft == 0.0

    def test_pricing_power_bounded(self):
        subject = [_make_unit(current_rent=3000, square_feet=2000)]
        competitors = [_make_unit(current_rent=1000, square_feet=500)]
        edges = self.calc.calculate(subject, competitors)
        assert edges.pricing_power_score == 100
