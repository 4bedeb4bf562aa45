"""Competitive relationship graph."""

from compsetiq.relationships.store import RelationshipStore, pair_key
from compsetiq.relationships.matrix import CompetitiveMatrix, CompetitiveMatrixView, MatrixCell
