"""Database repository for portfolios, property profiles and units."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session, sessionmaker

from compsetiq.db.tables import PortfolioRow, PropertyRow, UnitRow, init_db
from compsetiq.errors import NotFoundError
from compsetiq.models import (
    Portfolio,
    ProfileType,
    PropertyProfile,
    PropertyUnit,
    UnitStatus,
)

logger = logging.getLogger(__name__)


def _portfolio_from_row(row: PortfolioRow) -> Portfolio:
    return Portfolio(
        id=row.id,
        name=row.name,
        description=row.description or "",
        created_at=row.created_at,
    )


def _property_from_row(row: PropertyRow) -> PropertyProfile:
    return PropertyProfile(
        id=row.id,
        portfolio_id=row.portfolio_id,
        name=row.name,
        address=row.address or "",
        profile_type=ProfileType(row.profile_type),
        total_units=row.total_units or 0,
    )


def _unit_from_row(row: UnitRow) -> PropertyUnit:
    return PropertyUnit(
        id=row.id,
        property_id=row.property_id,
        unit_number=row.unit_number,
        tag=row.tag,
        bedrooms=row.bedrooms or 0,
        bathrooms=row.bathrooms,
        square_feet=row.square_feet,
        current_rent=row.current_rent,
        status=UnitStatus(row.status),
    )


class Repository:
    """Handles persistence of portfolios, properties and their units."""

    def __init__(self, db_url: str = "sqlite:///compsetiq.db"):
        self._session_factory = init_db(db_url)

    @property
    def session_factory(self) -> sessionmaker:
        return self._session_factory

    def _session(self) -> Session:
        return self._session_factory()

    def create_portfolio(self, name: str, description: str = "") -> Portfolio:
        with self._session() as session:
            row = PortfolioRow(name=name, description=description)
            session.add(row)
            session.commit()
            return _portfolio_from_row(row)

    def get_portfolio(self, portfolio_id: str) -> Portfolio | None:
        with self._session() as session:
            row = session.get(PortfolioRow, portfolio_id)
            return _portfolio_from_row(row) if row else None

    def add_property(
        self,
        portfolio_id: str,
        name: str,
        address: str = "",
        profile_type: ProfileType = ProfileType.COMPETITOR,
        total_units: int = 0,
    ) -> PropertyProfile:
        """Register a property profile in a portfolio."""
        with self._session() as session:
            if session.get(PortfolioRow, portfolio_id) is None:
                raise NotFoundError("portfolio", portfolio_id)
            row = PropertyRow(
                portfolio_id=portfolio_id,
                name=name,
                address=address,
                profile_type=ProfileType(profile_type).value,
                total_units=total_units,
            )
            session.add(row)
            session.commit()
            logger.info("Added %s property %s (%s)", row.profile_type, row.name, row.id)
            return _property_from_row(row)

    def get_property(self, property_id: str) -> PropertyProfile | None:
        with self._session() as session:
            row = session.get(PropertyRow, property_id)
            return _property_from_row(row) if row else None

    def require_property(self, property_id: str) -> PropertyProfile:
        prop = self.get_property(property_id)
        if prop is None:
            raise NotFoundError("property", property_id)
        return prop

    def get_properties(self, property_ids: list[str]) -> dict[str, PropertyProfile]:
        """Fetch several profiles at once, keyed by id. Unknown ids are skipped."""
        if not property_ids:
            return {}
        with self._session() as session:
            rows = session.query(PropertyRow).filter(PropertyRow.id.in_(property_ids)).all()
            return {row.id: _property_from_row(row) for row in rows}

    def list_properties(
        self,
        portfolio_id: str,
        profile_type: ProfileType | None = None,
    ) -> list[PropertyProfile]:
        with self._session() as session:
            query = session.query(PropertyRow).filter_by(portfolio_id=portfolio_id)
            if profile_type:
                query = query.filter_by(profile_type=ProfileType(profile_type).value)
            return [_property_from_row(row) for row in query.order_by(PropertyRow.created_at).all()]

    def add_units(self, property_id: str, units: list[PropertyUnit]) -> list[PropertyUnit]:
        """Store units for a property. The property_id on each unit is overwritten."""
        with self._session() as session:
            prop = session.get(PropertyRow, property_id)
            if prop is None:
                raise NotFoundError("property", property_id)
            rows = [
                UnitRow(
                    property_id=property_id,
                    unit_number=unit.unit_number,
                    tag=unit.tag,
                    bedrooms=unit.bedrooms,
                    bathrooms=unit.bathrooms,
                    square_feet=unit.square_feet,
                    current_rent=unit.current_rent,
                    status=unit.status.value,
                )
                for unit in units
            ]
            session.add_all(rows)
            if not prop.total_units:
                prop.total_units = len(rows)
            session.commit()
            return [_unit_from_row(row) for row in rows]

    def get_units(self, property_id: str) -> list[PropertyUnit]:
        with self._session() as session:
            rows = (
                session.query(UnitRow)
                .filter_by(property_id=property_id)
                .order_by(UnitRow.unit_number)
                .all()
            )
            return [_unit_from_row(row) for row in rows]

    def set_unit_status(self, unit_id: str, status: UnitStatus) -> PropertyUnit:
        with self._session() as session:
            row = session.get(UnitRow, unit_id)
            if row is None:
                raise NotFoundError("unit", unit_id)
            row.status = UnitStatus(status).value
            session.commit()
            return _unit_from_row(row)
