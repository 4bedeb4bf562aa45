"""Data models for CompSetIQ."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProfileType(str, Enum):
    SUBJECT = "subject"
    COMPETITOR = "competitor"


class UnitStatus(str, Enum):
    OCCUPIED = "occupied"
    VACANT = "vacant"
    NOTICE_GIVEN = "notice_given"


class RelationshipType(str, Enum):
    DIRECT_COMPETITOR = "direct_competitor"
    INDIRECT_COMPETITOR = "indirect_competitor"
    MARKET_LEADER = "market_leader"
    MARKET_FOLLOWER = "market_follower"


class AnalysisMode(str, Enum):
    EXTERNAL = "external"
    INTERNAL = "internal"


class Availability(str, Enum):
    NOW = "now"
    THIRTY_DAYS = "30days"
    SIXTY_DAYS = "60days"


class OptimizationGoal(str, Enum):
    MAXIMIZE_REVENUE = "maximize-revenue"
    MAXIMIZE_OCCUPANCY = "maximize-occupancy"
    BALANCED = "balanced"
    CUSTOM = "custom"


# Canonical unit-type buckets, in display order.
UNIT_TYPES = ("Studio", "1BR", "2BR", "3BR+")


def unit_type_for(bedrooms: int | None) -> str:
    """Map a bedroom count to its unit-type bucket."""
    beds = bedrooms or 0
    if beds <= 0:
        return "Studio"
    if beds == 1:
        return "1BR"
    if beds == 2:
        return "2BR"
    return "3BR+"


class CamelModel(BaseModel):
    """Base for records that cross the API boundary in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Portfolio(CamelModel):
    id: str
    name: str
    description: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)


class PropertyProfile(CamelModel):
    """A property registered in a portfolio, either ours or a competitor's."""

    id: str
    portfolio_id: str
    name: str
    address: str = ""
    profile_type: ProfileType = ProfileType.COMPETITOR
    total_units: int = 0

    @property
    def is_subject(self) -> bool:
        return self.profile_type == ProfileType.SUBJECT


class PropertyUnit(CamelModel):
    """A single rentable unit belonging to one property profile."""

    id: str = ""
    property_id: str
    unit_number: str
    tag: Optional[str] = None
    bedrooms: int = 0
    bathrooms: Optional[float] = None
    square_feet: Optional[int] = None
    current_rent: Optional[float] = None  # None or 0 means "no data"
    status: UnitStatus = UnitStatus.OCCUPIED

    @property
    def unit_type(self) -> str:
        return unit_type_for(self.bedrooms)

    @property
    def has_rent(self) -> bool:
        return self.current_rent is not None and self.current_rent > 0

    @property
    def has_sqft(self) -> bool:
        return self.square_feet is not None and self.square_feet > 0


class CompetitiveRelationship(CamelModel):
    """An undirected competitive edge between two properties."""

    id: str
    portfolio_id: str
    property_a_id: str
    property_b_id: str
    relationship_type: RelationshipType = RelationshipType.DIRECT_COMPETITOR
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def other(self, property_id: str) -> str | None:
        """Return the id on the opposite end of the edge, if property_id is on it."""
        if self.property_a_id == property_id:
            return self.property_b_id
        if self.property_b_id == property_id:
            return self.property_a_id
        return None


class Range(CamelModel):
    min: float = 0
    max: float = 0


class FilterCriteria(CamelModel):
    """User-chosen constraints narrowing which units feed the metrics.

    availability is a plain string so that unrecognized horizons survive
    parsing and can be mapped to the default by FilterEngine.normalize.
    """

    bedroom_types: list[str] = Field(default_factory=list)
    price_range: Range = Field(default_factory=lambda: Range(min=0, max=10_000))
    availability: str = Availability.SIXTY_DAYS.value
    square_footage_range: Range = Field(default_factory=lambda: Range(min=0, max=5_000))


class UnitTypeMetrics(CamelModel):
    type: str
    total_units: int = 0
    available_units: int = 0
    vacancy_rate: float = 0.0  # percentage
    avg_rent: float = 0.0
    avg_sq_ft: float = 0.0
    rent_range: Range = Field(default_factory=Range)


class PropertyAggregate(CamelModel):
    """Per-bucket metrics for one property under a filter."""

    id: str
    name: str
    vacancy_rate: float = 0.0
    avg_rent: float = 0.0  # blended over all matching, rent-defined units
    matching_units: int = 0
    unit_types: list[UnitTypeMetrics] = Field(default_factory=list)

    def metrics_for(self, unit_type: str) -> UnitTypeMetrics | None:
        for metrics in self.unit_types:
            if metrics.type == unit_type:
                return metrics
        return None


class MarketInsights(CamelModel):
    subject_vs_market: str = "no competitors"
    strongest_unit_type: Optional[str] = None
    total_vacancies: int = 0
    competitor_avg_vacancies: float = 0.0


class EdgeStatus(str, Enum):
    ADVANTAGE = "advantage"
    NEUTRAL = "neutral"
    DISADVANTAGE = "disadvantage"


class CompetitiveEdge(CamelModel):
    edge: float = 0.0
    label: str = "No data"
    status: EdgeStatus = EdgeStatus.NEUTRAL


class CompetitiveEdges(CamelModel):
    """Unit-level positioning of the subject against the pooled competitor units."""

    pricing: CompetitiveEdge = Field(default_factory=CompetitiveEdge)
    size: CompetitiveEdge = Field(default_factory=CompetitiveEdge)
    availability: CompetitiveEdge = Field(default_factory=CompetitiveEdge)
    percentile_rank: int = 50  # 0-100
    pricing_power_score: int = 50  # 0-100
    market_position: str = "Market Average"
    price_per_sq_ft: float = 0.0
    competitive_advantages: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


class FilteredAnalysis(CamelModel):
    """Results of comparing a subject property with its competitor set."""

    mode: AnalysisMode = AnalysisMode.EXTERNAL
    filter_criteria: FilterCriteria
    subject_property: PropertyAggregate
    competitors: list[PropertyAggregate] = Field(default_factory=list)
    market_insights: MarketInsights = Field(default_factory=MarketInsights)
    competitive_edges: CompetitiveEdges = Field(default_factory=CompetitiveEdges)
    analyzed_at: datetime = Field(default_factory=datetime.utcnow)


class OptimizationParameters(CamelModel):
    occupancy: int = Field(ge=85, le=100)
    risk: int = Field(ge=1, le=3)
