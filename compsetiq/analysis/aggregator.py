"""Per-unit-type metrics for a single property."""

from __future__ import annotations

from compsetiq.analysis.filters import FilterEngine
from compsetiq.models import (
    UNIT_TYPES,
    FilterCriteria,
    PropertyAggregate,
    PropertyProfile,
    PropertyUnit,
    Range,
    UnitStatus,
    UnitTypeMetrics,
)


def _mean(values: list[float]) -> float:
    if not values:
        return 0.0
    return round(sum(values) / len(values), 2)


def _rate(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(part / whole * 100, 2)


class UnitAggregator:
    """Buckets a property's units by type and computes vacancy and rent stats.

    Bucket totals count every unit of that type, so the vacancy rate reads as
    "share of this unit type currently on the market under the filter". All
    other statistics only see units the filter admits.
    """

    def __init__(self, filter_engine: FilterEngine | None = None):
        self.filters = filter_engine or FilterEngine()

    def aggregate(
        self, units: list[PropertyUnit], criteria: FilterCriteria
    ) -> dict[str, UnitTypeMetrics]:
        buckets: dict[str, list[PropertyUnit]] = {t: [] for t in UNIT_TYPES}
        for unit in units:
            buckets[unit.unit_type].append(unit)

        return {
            unit_type: self._bucket_metrics(unit_type, bucket, criteria)
            for unit_type, bucket in buckets.items()
        }

    def aggregate_property(
        self,
        profile: PropertyProfile,
        units: list[PropertyUnit],
        criteria: FilterCriteria,
    ) -> PropertyAggregate:
        metrics = self.aggregate(units, criteria)
        matching = self.filters.filter_units(units, criteria)
        rents = [u.current_rent for u in matching if u.has_rent]

        return PropertyAggregate(
            id=profile.id,
            name=profile.name,
            vacancy_rate=property_vacancy_rate(metrics),
            avg_rent=_mean(rents),
            matching_units=len(matching),
            unit_types=[metrics[t] for t in UNIT_TYPES],
        )

    def _bucket_metrics(
        self,
        unit_type: str,
        bucket: list[PropertyUnit],
        criteria: FilterCriteria,
    ) -> UnitTypeMetrics:
        matching = self.filters.filter_units(bucket, criteria)
        available = sum(1 for u in matching if u.status == UnitStatus.VACANT)
        rents = [u.current_rent for u in matching if u.has_rent]
        sqfts = [float(u.square_feet) for u in matching if u.has_sqft]

        return UnitTypeMetrics(
            type=unit_type,
            total_units=len(bucket),
            available_units=available,
            vacancy_rate=_rate(available, len(bucket)),
            avg_rent=_mean(rents),
            avg_sq_ft=_mean(sqfts),
            rent_range=Range(min=min(rents), max=max(rents)) if rents else Range(min=0, max=0),
        )


def property_vacancy_rate(metrics: dict[str, UnitTypeMetrics]) -> float:
    """Overall vacancy across all buckets of one property."""
    total = sum(m.total_units for m in metrics.values())
    available = sum(m.available_units for m in metrics.values())
    return _rate(available, total)
