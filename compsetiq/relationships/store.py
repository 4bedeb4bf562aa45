"""Symmetric store of competitive relationships between properties."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import not_, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from compsetiq.db.tables import PropertyRow, RelationshipRow
from compsetiq.errors import ConflictError, NotFoundError, ValidationError
from compsetiq.models import CompetitiveRelationship, RelationshipType

logger = logging.getLogger(__name__)

# Pair creates hash onto a fixed set of locks so the table never grows.
LOCK_STRIPES = 64


def pair_key(property_a_id: str, property_b_id: str) -> tuple[str, str]:
    """Order-independent key for a property pair."""
    if property_a_id <= property_b_id:
        return property_a_id, property_b_id
    return property_b_id, property_a_id


def _relationship_from_row(row: RelationshipRow) -> CompetitiveRelationship:
    return CompetitiveRelationship(
        id=row.id,
        portfolio_id=row.portfolio_id,
        property_a_id=row.property_a_id,
        property_b_id=row.property_b_id,
        relationship_type=RelationshipType(row.relationship_type),
        is_active=bool(row.is_active),
        created_at=row.created_at,
    )


class RelationshipStore:
    """Owns the competitive-relationship edges of every portfolio.

    Each unordered pair is stored once, indexed by its sorted pair key, so a
    lookup in either direction lands on the same row. Creates are serialized
    per pair key in-process and backed by a unique constraint in the database;
    toggles are a single UPDATE statement.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._locks = tuple(threading.Lock() for _ in range(LOCK_STRIPES))

    def _session(self) -> Session:
        return self._session_factory()

    @contextmanager
    def _pair_lock(self, key: tuple[str, str]) -> Iterator[None]:
        with self._locks[hash(key) % len(self._locks)]:
            yield

    def get_relationship(
        self, property_a_id: str, property_b_id: str
    ) -> CompetitiveRelationship | None:
        """Look up the edge between two properties, in either order."""
        if property_a_id == property_b_id:
            return None
        low, high = pair_key(property_a_id, property_b_id)
        with self._session() as session:
            row = session.query(RelationshipRow).filter_by(pair_low=low, pair_high=high).first()
            return _relationship_from_row(row) if row else None

    def get(self, relationship_id: str) -> CompetitiveRelationship:
        with self._session() as session:
            row = session.get(RelationshipRow, relationship_id)
            if row is None:
                raise NotFoundError("relationship", relationship_id)
            return _relationship_from_row(row)

    def create_relationship(
        self,
        property_a_id: str,
        property_b_id: str,
        relationship_type: RelationshipType = RelationshipType.DIRECT_COMPETITOR,
    ) -> CompetitiveRelationship:
        """Create a new active edge.

        Raises ConflictError when the pair already has a relationship, active
        or not; callers should toggle the existing one instead.
        """
        if property_a_id == property_b_id:
            raise ValidationError("property_b_id", "a property cannot compete with itself")
        relationship_type = RelationshipType(relationship_type)
        key = pair_key(property_a_id, property_b_id)

        with self._pair_lock(key), self._session() as session:
            props = {
                row.id: row
                for row in session.query(PropertyRow)
                .filter(PropertyRow.id.in_([property_a_id, property_b_id]))
                .all()
            }
            for property_id in (property_a_id, property_b_id):
                if property_id not in props:
                    raise NotFoundError("property", property_id)

            portfolio_id = props[property_a_id].portfolio_id
            if props[property_b_id].portfolio_id != portfolio_id:
                raise ValidationError(
                    "property_b_id", "properties belong to different portfolios"
                )

            existing = (
                session.query(RelationshipRow)
                .filter_by(portfolio_id=portfolio_id, pair_low=key[0], pair_high=key[1])
                .first()
            )
            if existing:
                raise ConflictError(
                    f"Relationship already exists between {property_a_id} and {property_b_id}",
                    existing_id=existing.id,
                )

            row = RelationshipRow(
                portfolio_id=portfolio_id,
                property_a_id=property_a_id,
                property_b_id=property_b_id,
                pair_low=key[0],
                pair_high=key[1],
                relationship_type=relationship_type.value,
                is_active=True,
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError as e:
                # Another process won the race for this pair
                session.rollback()
                raise ConflictError(
                    f"Relationship already exists between {property_a_id} and {property_b_id}"
                ) from e

            logger.info(
                "Created %s relationship %s between %s and %s",
                row.relationship_type, row.id, property_a_id, property_b_id,
            )
            return _relationship_from_row(row)

    def toggle_relationship(self, relationship_id: str) -> CompetitiveRelationship:
        """Flip is_active atomically. Two toggles restore the starting state."""
        with self._session() as session:
            result = session.execute(
                update(RelationshipRow)
                .where(RelationshipRow.id == relationship_id)
                .values(is_active=not_(RelationshipRow.is_active))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                session.rollback()
                raise NotFoundError("relationship", relationship_id)
            session.commit()
            row = session.get(RelationshipRow, relationship_id)
            logger.info("Toggled relationship %s -> active=%s", relationship_id, row.is_active)
            return _relationship_from_row(row)

    def toggle_or_create(
        self,
        property_a_id: str,
        property_b_id: str,
        relationship_type: RelationshipType = RelationshipType.DIRECT_COMPETITOR,
    ) -> CompetitiveRelationship:
        """Toggle the pair's edge if there is one, otherwise create it."""
        existing = self.get_relationship(property_a_id, property_b_id)
        if existing:
            return self.toggle_relationship(existing.id)
        try:
            return self.create_relationship(property_a_id, property_b_id, relationship_type)
        except ConflictError as e:
            if e.existing_id is None:
                existing = self.get_relationship(property_a_id, property_b_id)
                if existing is None:
                    raise
                return self.toggle_relationship(existing.id)
            return self.toggle_relationship(e.existing_id)

    def set_relationship_type(
        self, relationship_id: str, relationship_type: RelationshipType
    ) -> CompetitiveRelationship:
        relationship_type = RelationshipType(relationship_type)
        with self._session() as session:
            row = session.get(RelationshipRow, relationship_id)
            if row is None:
                raise NotFoundError("relationship", relationship_id)
            row.relationship_type = relationship_type.value
            session.commit()
            return _relationship_from_row(row)

    def list_for_portfolio(self, portfolio_id: str) -> list[CompetitiveRelationship]:
        """All relationships of a portfolio, active or not."""
        with self._session() as session:
            rows = (
                session.query(RelationshipRow)
                .filter_by(portfolio_id=portfolio_id)
                .order_by(RelationshipRow.created_at)
                .all()
            )
            return [_relationship_from_row(row) for row in rows]

    def list_active(self, portfolio_id: str) -> list[CompetitiveRelationship]:
        with self._session() as session:
            rows = (
                session.query(RelationshipRow)
                .filter_by(portfolio_id=portfolio_id, is_active=True)
                .order_by(RelationshipRow.created_at)
                .all()
            )
            return [_relationship_from_row(row) for row in rows]

    def list_active_for_property(self, property_id: str) -> list[CompetitiveRelationship]:
        """Active edges touching one property, whichever end it is stored on."""
        with self._session() as session:
            rows = (
                session.query(RelationshipRow)
                .filter(
                    RelationshipRow.is_active.is_(True),
                    or_(
                        RelationshipRow.property_a_id == property_id,
                        RelationshipRow.property_b_id == property_id,
                    ),
                )
                .all()
            )
            return [_relationship_from_row(row) for row in rows]
