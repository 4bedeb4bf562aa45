"""Filter criteria normalization and unit matching."""

from __future__ import annotations

from compsetiq.config import FilterConfig
from compsetiq.errors import ValidationError
from compsetiq.models import (
    UNIT_TYPES,
    Availability,
    FilterCriteria,
    PropertyUnit,
    Range,
    UnitStatus,
)

# Unit statuses that count as on the market for each availability horizon.
# Wider horizons include everything the narrower ones do. 60days deliberately
# admits occupied units as well, unlike the older vacant-plus-notice reading,
# so the default filter keeps rent statistics for fully leased properties.
_HORIZON_STATUSES: dict[str, frozenset[UnitStatus]] = {
    Availability.NOW.value: frozenset({UnitStatus.VACANT}),
    Availability.THIRTY_DAYS.value: frozenset({UnitStatus.VACANT, UnitStatus.NOTICE_GIVEN}),
    Availability.SIXTY_DAYS.value: frozenset(
        {UnitStatus.VACANT, UnitStatus.NOTICE_GIVEN, UnitStatus.OCCUPIED}
    ),
}

_BEDROOM_ALIASES = {
    "studio": "Studio",
    "0br": "Studio",
    "1br": "1BR",
    "2br": "2BR",
    "3br": "3BR+",
    "3br+": "3BR+",
}


def _normalize_range(value: Range, ceiling: float) -> Range:
    # An omitted upper bound means open-ended, not zero.
    high = value.max if "max" in value.model_fields_set else ceiling
    low = max(0.0, float(value.min))
    high = max(0.0, float(high))
    if low > high:
        low, high = high, low
    return Range(min=low, max=high)


def _normalize_bedroom_types(labels: list[str]) -> list[str]:
    selected: set[str] = set()
    for label in labels:
        canonical = _BEDROOM_ALIASES.get(str(label).strip().lower().replace(" ", ""))
        if canonical is None:
            raise ValidationError(
                "bedroom_types",
                f"unknown bedroom type {label!r}, expected one of {list(UNIT_TYPES)}",
            )
        selected.add(canonical)
    return [t for t in UNIT_TYPES if t in selected]


class FilterEngine:
    """Validates filter criteria and decides which units they admit.

    Upper bounds at or above the configured ceilings are treated as open, so
    the default criteria do not drop luxury units or units with very large
    floor plans.
    """

    def __init__(self, config: FilterConfig | None = None):
        self.cfg = config or FilterConfig()
        if self.cfg.default_availability not in _HORIZON_STATUSES:
            raise ValidationError(
                "default_availability", f"unknown horizon {self.cfg.default_availability!r}"
            )

    def default_criteria(self) -> FilterCriteria:
        return FilterCriteria(
            bedroom_types=[],
            price_range=Range(min=self.cfg.default_min_price, max=self.cfg.default_max_price),
            availability=self.cfg.default_availability,
            square_footage_range=Range(
                min=self.cfg.default_min_sqft, max=self.cfg.default_max_sqft
            ),
        )

    def normalize(self, raw: FilterCriteria) -> FilterCriteria:
        """Clamp, reorder and canonicalize criteria. Idempotent."""
        availability = raw.availability
        if isinstance(availability, Availability):
            availability = availability.value
        if availability not in _HORIZON_STATUSES:
            availability = self.cfg.default_availability

        return FilterCriteria(
            bedroom_types=_normalize_bedroom_types(raw.bedroom_types),
            price_range=_normalize_range(raw.price_range, self.cfg.price_ceiling),
            availability=availability,
            square_footage_range=_normalize_range(
                raw.square_footage_range, self.cfg.sqft_ceiling
            ),
        )

    def price_is_restrictive(self, criteria: FilterCriteria) -> bool:
        return criteria.price_range.min > 0 or criteria.price_range.max < self.cfg.price_ceiling

    def statuses_for(self, availability: str) -> frozenset[UnitStatus]:
        return _HORIZON_STATUSES.get(
            availability, _HORIZON_STATUSES[self.cfg.default_availability]
        )

    def matches(self, unit: PropertyUnit, criteria: FilterCriteria) -> bool:
        """Whether a unit passes every predicate of the (normalized) criteria."""
        if criteria.bedroom_types and unit.unit_type not in criteria.bedroom_types:
            return False

        if not self._rent_matches(unit, criteria):
            return False

        if unit.has_sqft:
            sqft = criteria.square_footage_range
            if unit.square_feet < sqft.min:
                return False
            if sqft.max < self.cfg.sqft_ceiling and unit.square_feet > sqft.max:
                return False

        return unit.status in self.statuses_for(criteria.availability)

    def filter_units(
        self, units: list[PropertyUnit], criteria: FilterCriteria
    ) -> list[PropertyUnit]:
        return [u for u in units if self.matches(u, criteria)]

    def _rent_matches(self, unit: PropertyUnit, criteria: FilterCriteria) -> bool:
        if not unit.has_rent:
            return not self.price_is_restrictive(criteria)
        price = criteria.price_range
        if unit.current_rent < price.min:
            return False
        if price.max < self.cfg.price_ceiling and unit.current_rent > price.max:
            return False
        return True
