"""Subject x competitor grid backing the competitive-set screen."""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field

from compsetiq.db.repository import Repository
from compsetiq.errors import ValidationError
from compsetiq.models import (
    AnalysisMode,
    CamelModel,
    CompetitiveRelationship,
    ProfileType,
    PropertyProfile,
    RelationshipType,
)
from compsetiq.relationships.store import RelationshipStore, pair_key

logger = logging.getLogger(__name__)


class MatrixCell(CamelModel):
    subject_id: str
    competitor_id: str
    relationship_id: Optional[str] = None
    relationship_type: Optional[RelationshipType] = None
    is_active: bool = False
    is_self: bool = False


class CompetitiveMatrixView(CamelModel):
    portfolio_id: str
    mode: AnalysisMode
    subjects: list[PropertyProfile] = Field(default_factory=list)
    competitors: list[PropertyProfile] = Field(default_factory=list)
    cells: list[MatrixCell] = Field(default_factory=list)
    active_count: int = 0

    def cell(self, subject_id: str, competitor_id: str) -> MatrixCell | None:
        for c in self.cells:
            if c.subject_id == subject_id and c.competitor_id == competitor_id:
                return c
        return None


class CompetitiveMatrix:
    """Builds the relationship grid and handles cell clicks."""

    def __init__(self, repo: Repository, store: RelationshipStore):
        self.repo = repo
        self.store = store

    def build(
        self, portfolio_id: str, mode: AnalysisMode = AnalysisMode.EXTERNAL
    ) -> CompetitiveMatrixView:
        """Lay out subjects as rows against competitors (or other subjects) as columns."""
        mode = AnalysisMode(mode)
        subjects = self.repo.list_properties(portfolio_id, ProfileType.SUBJECT)
        if mode == AnalysisMode.INTERNAL:
            competitors = subjects
        else:
            competitors = self.repo.list_properties(portfolio_id, ProfileType.COMPETITOR)

        by_pair: dict[tuple[str, str], CompetitiveRelationship] = {
            pair_key(rel.property_a_id, rel.property_b_id): rel
            for rel in self.store.list_for_portfolio(portfolio_id)
        }

        cells: list[MatrixCell] = []
        active_ids: set[str] = set()
        for subject in subjects:
            for competitor in competitors:
                if subject.id == competitor.id:
                    cells.append(
                        MatrixCell(subject_id=subject.id, competitor_id=competitor.id, is_self=True)
                    )
                    continue
                rel = by_pair.get(pair_key(subject.id, competitor.id))
                cells.append(
                    MatrixCell(
                        subject_id=subject.id,
                        competitor_id=competitor.id,
                        relationship_id=rel.id if rel else None,
                        relationship_type=rel.relationship_type if rel else None,
                        is_active=bool(rel and rel.is_active),
                    )
                )
                if rel and rel.is_active:
                    active_ids.add(rel.id)

        return CompetitiveMatrixView(
            portfolio_id=portfolio_id,
            mode=mode,
            subjects=subjects,
            competitors=competitors,
            cells=cells,
            active_count=len(active_ids),
        )

    def click(
        self,
        subject_id: str,
        competitor_id: str,
        relationship_type: RelationshipType = RelationshipType.DIRECT_COMPETITOR,
    ) -> CompetitiveRelationship:
        """Toggle the cell's relationship, creating it on first click."""
        if subject_id == competitor_id:
            raise ValidationError("competitor_id", "a property cannot compete with itself")
        rel = self.store.toggle_or_create(subject_id, competitor_id, relationship_type)
        logger.debug("Matrix cell %s/%s -> active=%s", subject_id, competitor_id, rel.is_active)
        return rel
