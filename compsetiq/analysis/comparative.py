"""Comparative analysis of a subject property against its competitor set."""

from __future__ import annotations

import logging
from typing import Iterable

from compsetiq.analysis.aggregator import UnitAggregator
from compsetiq.analysis.edges import EdgeCalculator
from compsetiq.analysis.filters import FilterEngine
from compsetiq.config import AnalysisConfig
from compsetiq.db.repository import Repository
from compsetiq.errors import NotFoundError, ValidationError
from compsetiq.models import (
    UNIT_TYPES,
    AnalysisMode,
    CompetitiveRelationship,
    FilterCriteria,
    FilteredAnalysis,
    MarketInsights,
    ProfileType,
    PropertyAggregate,
    PropertyProfile,
    PropertyUnit,
)
from compsetiq.relationships.store import RelationshipStore

logger = logging.getLogger(__name__)

ABOVE_MARKET = "above market"
AT_MARKET = "at market"
BELOW_MARKET = "below market"
NO_COMPETITORS = "no competitors"


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class ComparativeAnalyzer:
    """Runs the unit aggregator over a subject and its active competitors.

    The result is a pure function of the stored units, the active
    relationships and the criteria; nothing is cached between calls.
    """

    def __init__(
        self,
        repo: Repository,
        store: RelationshipStore,
        filter_engine: FilterEngine | None = None,
        config: AnalysisConfig | None = None,
    ):
        self.repo = repo
        self.store = store
        self.cfg = config or AnalysisConfig()
        self.filters = filter_engine or FilterEngine()
        self.aggregator = UnitAggregator(self.filters)
        self.edges = EdgeCalculator(self.cfg)

    def analyze(
        self,
        subject_id: str,
        criteria: FilterCriteria,
        mode: AnalysisMode = AnalysisMode.EXTERNAL,
    ) -> FilteredAnalysis:
        """Compare a stored subject property with its active competitor set."""
        mode = AnalysisMode(mode)
        subject = self.repo.require_property(subject_id)
        relationships = self.store.list_active(subject.portfolio_id)
        competitor_ids = self._linked_ids(subject.id, relationships)
        profiles = self.repo.get_properties(competitor_ids)
        competitors = [
            profiles[pid]
            for pid in competitor_ids
            if pid in profiles and self._in_mode(profiles[pid], mode)
        ]
        return self._compose(subject, competitors, criteria, mode)

    def analyze_session(
        self,
        property_ids: list[str],
        criteria: FilterCriteria,
        mode: AnalysisMode = AnalysisMode.EXTERNAL,
        relationships: list[CompetitiveRelationship] | None = None,
    ) -> FilteredAnalysis:
        """Compare an ad-hoc selection of properties.

        The first subject-typed property in property_ids is the subject. When
        relationships are given, only properties actively linked to the
        subject are compared; otherwise every other selected property that
        fits the mode is.
        """
        mode = AnalysisMode(mode)
        ordered = list(dict.fromkeys(property_ids))
        profiles = self.repo.get_properties(ordered)
        for pid in ordered:
            if pid not in profiles:
                raise NotFoundError("property", pid)

        subject = next((profiles[pid] for pid in ordered if profiles[pid].is_subject), None)
        if subject is None:
            raise ValidationError("property_ids", "selection contains no subject property")

        candidates = [pid for pid in ordered if pid != subject.id]
        if relationships is not None:
            active = [rel for rel in relationships if rel.is_active]
            linked = set(self._linked_ids(subject.id, active))
            candidates = [pid for pid in candidates if pid in linked]

        competitors = [profiles[pid] for pid in candidates if self._in_mode(profiles[pid], mode)]
        return self._compose(subject, competitors, criteria, mode)

    def _compose(
        self,
        subject: PropertyProfile,
        competitors: list[PropertyProfile],
        criteria: FilterCriteria,
        mode: AnalysisMode,
    ) -> FilteredAnalysis:
        criteria = self.filters.normalize(criteria)
        # Guard against a relationship that loops back to the subject
        competitors = [c for c in competitors if c.id != subject.id]

        subject_units = self.repo.get_units(subject.id)
        subject_agg = self.aggregator.aggregate_property(subject, subject_units, criteria)

        competitor_aggs: list[PropertyAggregate] = []
        competitor_matching: list[PropertyUnit] = []
        for competitor in competitors:
            units = self.repo.get_units(competitor.id)
            competitor_aggs.append(self.aggregator.aggregate_property(competitor, units, criteria))
            competitor_matching.extend(self.filters.filter_units(units, criteria))

        insights = self.market_insights(subject_agg, competitor_aggs)
        edges = self.edges.calculate(
            self.filters.filter_units(subject_units, criteria), competitor_matching
        )

        logger.info(
            "Analyzed %s (%s mode) against %d competitor(s): %s",
            subject.name, mode.value, len(competitor_aggs), insights.subject_vs_market,
        )
        return FilteredAnalysis(
            mode=mode,
            filter_criteria=criteria,
            subject_property=subject_agg,
            competitors=competitor_aggs,
            market_insights=insights,
            competitive_edges=edges,
        )

    def market_insights(
        self,
        subject: PropertyAggregate,
        competitors: list[PropertyAggregate],
    ) -> MarketInsights:
        total_vacancies = sum(m.available_units for m in subject.unit_types)
        if not competitors:
            return MarketInsights(
                subject_vs_market=NO_COMPETITORS,
                strongest_unit_type=None,
                total_vacancies=total_vacancies,
                competitor_avg_vacancies=0.0,
            )

        competitor_vacancies = [
            float(sum(m.available_units for m in c.unit_types)) for c in competitors
        ]
        return MarketInsights(
            subject_vs_market=self._subject_vs_market(subject, competitors),
            strongest_unit_type=self._strongest_unit_type(subject, competitors),
            total_vacancies=total_vacancies,
            competitor_avg_vacancies=round(_mean(competitor_vacancies), 2),
        )

    def _subject_vs_market(
        self, subject: PropertyAggregate, competitors: list[PropertyAggregate]
    ) -> str:
        market_rents = [c.avg_rent for c in competitors if c.avg_rent > 0]
        if not market_rents or subject.avg_rent <= 0:
            return AT_MARKET
        market = _mean(market_rents)
        delta_pct = (subject.avg_rent - market) / market * 100
        if delta_pct > self.cfg.market_tolerance_pct:
            return ABOVE_MARKET
        if delta_pct < -self.cfg.market_tolerance_pct:
            return BELOW_MARKET
        return AT_MARKET

    @staticmethod
    def _strongest_unit_type(
        subject: PropertyAggregate, competitors: list[PropertyAggregate]
    ) -> str | None:
        best_type: str | None = None
        best_premium = 0.0
        for unit_type in UNIT_TYPES:
            ours = subject.metrics_for(unit_type)
            if ours is None or ours.avg_rent <= 0:
                continue
            theirs = [
                m.avg_rent
                for m in (c.metrics_for(unit_type) for c in competitors)
                if m is not None and m.avg_rent > 0
            ]
            if not theirs:
                continue
            premium = ours.avg_rent - _mean(theirs)
            if premium > best_premium:
                best_type, best_premium = unit_type, premium
        return best_type

    @staticmethod
    def _linked_ids(
        subject_id: str, relationships: Iterable[CompetitiveRelationship]
    ) -> list[str]:
        linked: list[str] = []
        for rel in relationships:
            other = rel.other(subject_id)
            if other and other != subject_id and other not in linked:
                linked.append(other)
        return linked

    @staticmethod
    def _in_mode(profile: PropertyProfile, mode: AnalysisMode) -> bool:
        if mode == AnalysisMode.INTERNAL:
            return profile.profile_type == ProfileType.SUBJECT
        return profile.profile_type == ProfileType.COMPETITOR
