"""Tests for filter normalization and unit matching."""

import pytest

from compsetiq.analysis.filters import FilterEngine
from compsetiq.config import FilterConfig
from compsetiq.errors import ValidationError
from compsetiq.models import FilterCriteria, PropertyUnit, Range, UnitStatus


def _make_unit(**overrides) -> PropertyUnit:
    defaults = {
        "property_id": "p1",
        "unit_number": "101",
        "bedrooms": 1,
        "bathrooms": 1.0,
        "square_feet": 750,
        "current_rent": 1400.0,
        "status": UnitStatus.VACANT,
    }
    defaults.update(overrides)
    return PropertyUnit(**defaults)


def _criteria(**overrides) -> FilterCriteria:
    defaults = {
        "bedroom_types": [],
        "price_range": Range(min=0, max=10_000),
        "availability": "60days",
        "square_footage_range": Range(min=0, max=5_000),
    }
    defaults.update(overrides)
    return FilterCriteria(**defaults)


class TestNormalize:
    def setup_method(self):
        self.engine = FilterEngine(FilterConfig())

    def test_swaps_inverted_ranges(self):
        raw = _criteria(price_range=Range(min=2000, max=1000))
        result = self.engine.normalize(raw)
        assert result.price_range.min == 1000
        assert result.price_range.max == 2000

    def test_clamps_negative_values(self):
        raw = _criteria(square_footage_range=Range(min=-200, max=900))
        result = self.engine.normalize(raw)
        assert result.square_footage_range.min == 0
        assert result.square_footage_range.max == 900

    def test_clamp_then_swap(self):
        raw = _criteria(price_range=Range(min=500, max=-100))
        result = self.engine.normalize(raw)
        assert result.price_range.min == 0
        assert result.price_range.max == 500

    def test_missing_upper_bound_is_open_ended(self):
        raw = FilterCriteria.model_validate(
            {"priceRange": {"min": 1500}, "squareFootageRange": {"min": 600}}
        )
        result = self.engine.normalize(raw)
        assert result.price_range.min == 1500
        assert result.price_range.max == 10_000
        assert result.square_footage_range.min == 600
        assert result.square_footage_range.max == 5_000
        assert self.engine.matches(_make_unit(current_rent=2000.0), result)
        assert not self.engine.matches(_make_unit(current_rent=1200.0), result)

    def test_explicit_zero_upper_bound_is_kept(self):
        raw = FilterCriteria.model_validate({"priceRange": {"min": 0, "max": 0}})
        assert self.engine.normalize(raw).price_range.max == 0

    def test_unknown_availability_maps_to_most_inclusive(self):
        raw = _criteria(availability="next-year")
        assert self.engine.normalize(raw).availability == "60days"

    def test_bedroom_aliases_canonicalized(self):
        raw = _criteria(bedroom_types=["3BR", "studio", "1br", "1BR"])
        result = self.engine.normalize(raw)
        assert result.bedroom_types == ["Studio", "1BR", "3BR+"]

    def test_unknown_bedroom_type_names_field(self):
        raw = _criteria(bedroom_types=["penthouse"])
        with pytest.raises(ValidationError) as exc:
            self.engine.normalize(raw)
        assert exc.value.field == "bedroom_types"

    def test_normalize_is_idempotent(self):
        samples = [
            _criteria(),
            _criteria(price_range=Range(min=3000, max=-5), availability="bogus"),
            _criteria(bedroom_types=["3br", "2BR"], square_footage_range=Range(min=900, max=400)),
        ]
        for raw in samples:
            once = self.engine.normalize(raw)
            assert self.engine.normalize(once) == once

    def test_default_criteria_is_normalized(self):
        default = self.engine.default_criteria()
        assert self.engine.normalize(default) == default
        assert not self.engine.price_is_restrictive(default)


class TestMatches:
    def setup_method(self):
        self.engine = FilterEngine(FilterConfig())

    def test_empty_bedroom_selection_matches_all(self):
        criteria = _criteria()
        for beds in (0, 1, 2, 4):
            assert self.engine.matches(_make_unit(bedrooms=beds), criteria)

    def test_bedroom_selection(self):
        criteria = _criteria(bedroom_types=["2BR", "3BR+"])
        assert not self.engine.matches(_make_unit(bedrooms=1), criteria)
        assert self.engine.matches(_make_unit(bedrooms=2), criteria)
        assert self.engine.matches(_make_unit(bedrooms=4), criteria)

    def test_price_range_bounds_are_inclusive(self):
        criteria = _criteria(price_range=Range(min=1000, max=1400))
        assert self.engine.matches(_make_unit(current_rent=1000), criteria)
        assert self.engine.matches(_make_unit(current_rent=1400), criteria)
        assert not self.engine.matches(_make_unit(current_rent=1401), criteria)
        assert not self.engine.matches(_make_unit(current_rent=999), criteria)

    def test_absent_rent_fails_restrictive_price_filter(self):
        criteria = _criteria(price_range=Range(min=500, max=3000))
        assert not self.engine.matches(_make_unit(current_rent=None), criteria)
        assert not self.engine.matches(_make_unit(current_rent=0), criteria)

    def test_absent_rent_passes_open_price_filter(self):
        criteria = _criteria()
        assert self.engine.matches(_make_unit(current_rent=None), criteria)

    def test_max_at_ceiling_is_open_ended(self):
        criteria = _criteria(price_range=Range(min=0, max=10_000))
        assert self.engine.matches(_make_unit(current_rent=15_000), criteria)

    def test_absent_sqft_passes(self):
        criteria = _criteria(square_footage_range=Range(min=600, max=800))
        assert self.engine.matches(_make_unit(square_feet=None), criteria)
        assert not self.engine.matches(_make_unit(square_feet=900), criteria)
        assert self.engine.matches(_make_unit(square_feet=700), criteria)

    def test_availability_horizons_widen(self):
        vacant = _make_unit(status=UnitStatus.VACANT)
        notice = _make_unit(status=UnitStatus.NOTICE_GIVEN)
        occupied = _make_unit(status=UnitStatus.OCCUPIED)

        now = _criteria(availability="now")
        assert self.engine.matches(vacant, now)
        assert not self.engine.matches(notice, now)
        assert not self.engine.matches(occupied, now)

        thirty = _criteria(availability="30days")
        assert self.engine.matches(vacant, thirty)
        assert self.engine.matches(notice, thirty)
        assert not self.engine.matches(occupied, thirty)

        sixty = _criteria(availability="60days")
        assert all(self.engine.matches(u, sixty) for u in (vacant, notice, occupied))

    def test_filter_units(self):
        units = [_make_unit(unit_number=str(i), current_rent=1000 + i * 100) for i in range(5)]
        criteria = _criteria(price_range=Range(min=1150, max=1350))
        matched = self.engine.filter_units(units, criteria)
        assert [u.unit_number for u in matched] == ["2", "3"]
