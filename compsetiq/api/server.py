"""FastAPI service for CompSetIQ."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from compsetiq.analysis.comparative import ComparativeAnalyzer
from compsetiq.analysis.filters import FilterEngine
from compsetiq.config import AppConfig
from compsetiq.db.repository import Repository
from compsetiq.errors import ConflictError, NotFoundError, ValidationError
from compsetiq.models import (
    AnalysisMode,
    CamelModel,
    CompetitiveRelationship,
    FilterCriteria,
    FilteredAnalysis,
    OptimizationGoal,
    PropertyUnit,
    RelationshipType,
    UnitStatus,
)
from compsetiq.optimization.presets import OptimizationPresetMapper, parse_goal, risk_label
from compsetiq.relationships.matrix import CompetitiveMatrix, CompetitiveMatrixView
from compsetiq.relationships.store import RelationshipStore

logger = logging.getLogger(__name__)


class RelationshipRequest(CamelModel):
    property_a_id: str
    property_b_id: str
    relationship_type: RelationshipType = RelationshipType.DIRECT_COMPETITOR


class AnalysisRequest(CamelModel):
    filter_criteria: Optional[FilterCriteria] = None
    subject_id: Optional[str] = None
    session_property_ids: Optional[list[str]] = None
    competitive_relationships: Optional[list[CompetitiveRelationship]] = None
    mode: AnalysisMode = AnalysisMode.EXTERNAL


class RelationshipTypeRequest(CamelModel):
    relationship_type: RelationshipType


class UnitStatusRequest(CamelModel):
    status: UnitStatus


class PresetResponse(CamelModel):
    """Preset values for a goal. Custom has no mapping, so its values are null."""

    goal: OptimizationGoal
    custom: bool = False
    occupancy: Optional[int] = None
    risk: Optional[int] = None
    risk_label: Optional[str] = None


def create_app(cfg: AppConfig, repo: Repository | None = None) -> FastAPI:
    app = FastAPI(title="CompSetIQ", version="0.1.0")
    repo = repo or Repository(cfg.database.url)
    store = RelationshipStore(repo.session_factory)
    filters = FilterEngine(cfg.filters)
    analyzer = ComparativeAnalyzer(repo, store, filters, cfg.analysis)
    matrix = CompetitiveMatrix(repo, store)
    presets = OptimizationPresetMapper()

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"error": exc.message, "field": exc.field})

    @app.exception_handler(ConflictError)
    async def conflict_error(request: Request, exc: ConflictError):
        return JSONResponse(
            status_code=409, content={"error": str(exc), "existingId": exc.existing_id}
        )

    @app.exception_handler(NotFoundError)
    async def not_found_error(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.post("/relationships", response_model=CompetitiveRelationship, status_code=201)
    def create_relationship(body: RelationshipRequest):
        """Create a competitive relationship between two properties."""
        return store.create_relationship(
            body.property_a_id, body.property_b_id, body.relationship_type
        )

    @app.post("/relationships/toggle-or-create", response_model=CompetitiveRelationship)
    def toggle_or_create(body: RelationshipRequest):
        """Matrix cell click: toggle the pair's relationship, creating it if missing."""
        return matrix.click(body.property_a_id, body.property_b_id, body.relationship_type)

    @app.get("/relationships/{relationship_id}", response_model=CompetitiveRelationship)
    def get_relationship(relationship_id: str):
        return store.get(relationship_id)

    @app.patch("/relationships/{relationship_id}", response_model=CompetitiveRelationship)
    def update_relationship_type(relationship_id: str, body: RelationshipTypeRequest):
        return store.set_relationship_type(relationship_id, body.relationship_type)

    @app.post("/relationships/{relationship_id}/toggle", response_model=CompetitiveRelationship)
    def toggle_relationship(relationship_id: str):
        return store.toggle_relationship(relationship_id)

    @app.get(
        "/portfolios/{portfolio_id}/relationships",
        response_model=list[CompetitiveRelationship],
    )
    def list_relationships(portfolio_id: str, active_only: bool = Query(False, alias="activeOnly")):
        if repo.get_portfolio(portfolio_id) is None:
            raise NotFoundError("portfolio", portfolio_id)
        if active_only:
            return store.list_active(portfolio_id)
        return store.list_for_portfolio(portfolio_id)

    @app.get(
        "/properties/{property_id}/competitors",
        response_model=list[CompetitiveRelationship],
    )
    def property_competitors(property_id: str):
        """Active relationships touching one property."""
        repo.require_property(property_id)
        return store.list_active_for_property(property_id)

    @app.patch("/units/{unit_id}", response_model=PropertyUnit)
    def update_unit_status(unit_id: str, body: UnitStatusRequest):
        return repo.set_unit_status(unit_id, body.status)

    @app.get("/portfolios/{portfolio_id}/matrix", response_model=CompetitiveMatrixView)
    def get_matrix(portfolio_id: str, mode: AnalysisMode = Query(AnalysisMode.EXTERNAL)):
        if repo.get_portfolio(portfolio_id) is None:
            raise NotFoundError("portfolio", portfolio_id)
        return matrix.build(portfolio_id, mode)

    @app.post("/analysis", response_model=FilteredAnalysis)
    def run_analysis(body: AnalysisRequest):
        """Run a filtered comparative analysis for a subject or a session selection."""
        criteria = body.filter_criteria or filters.default_criteria()
        if not body.subject_id and not body.session_property_ids:
            raise ValidationError("subjectId", "either subjectId or sessionPropertyIds is required")
        try:
            if body.subject_id:
                return analyzer.analyze(body.subject_id, criteria, body.mode)
            return analyzer.analyze_session(
                body.session_property_ids,
                criteria,
                body.mode,
                relationships=body.competitive_relationships,
            )
        except (ValidationError, NotFoundError):
            raise
        except Exception:
            logger.exception("Analysis failed for subject=%s", body.subject_id)
            return JSONResponse(status_code=500, content={"error": "unable to compute analysis"})

    @app.get("/optimization-presets/{goal}", response_model=PresetResponse)
    def optimization_preset(goal: str):
        parsed = parse_goal(goal)
        params = presets.parameters_for(parsed)
        if params is None:
            return PresetResponse(goal=parsed, custom=True)
        return PresetResponse(
            goal=parsed,
            occupancy=params.occupancy,
            risk=params.risk,
            risk_label=risk_label(params.risk),
        )

    return app
