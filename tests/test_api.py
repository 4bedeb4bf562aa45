"""Tests for the HTTP API."""

import os
import tempfile

import pytest
from fastapi.testclient import TestClient

from compsetiq.api.server import create_app
from compsetiq.config import AppConfig, DatabaseConfig
from compsetiq.db.repository import Repository
from compsetiq.models import ProfileType, PropertyUnit, UnitStatus


@pytest.fixture
def setup():
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    cfg = AppConfig(database=DatabaseConfig(url=f"sqlite:///{path}"))
    repo = Repository(cfg.database.url)
    client = TestClient(create_app(cfg, repo=repo))

    pf = repo.create_portfolio("Downtown")
    subject = repo.add_property(pf.id, "Maple Court", profile_type=ProfileType.SUBJECT)
    competitor = repo.add_property(pf.id, "Birch Lofts")
    repo.add_units(
        subject.id,
        [
            PropertyUnit(property_id=subject.id, unit_number=f"1{i}", bedrooms=1, current_rent=1200)
            for i in range(5)
        ]
        + [
            PropertyUnit(property_id=subject.id, unit_number=f"2{i}", bedrooms=2, current_rent=1500)
            for i in range(5)
        ],
    )
    repo.add_units(
        competitor.id,
        [
            PropertyUnit(
                property_id=competitor.id,
                unit_number=f"C{i}",
                bedrooms=1,
                current_rent=1300,
                status=UnitStatus.VACANT,
            )
            for i in range(4)
        ],
    )
    yield {
        "client": client,
        "repo": repo,
        "portfolio": pf,
        "subject": subject,
        "competitor": competitor,
    }
    os.unlink(path)


def _create(client, a, b, **extra):
    return client.post("/relationships", json={"propertyAId": a, "propertyBId": b, **extra})


def test_create_relationship(setup):
    client = setup["client"]
    resp = _create(client, setup["subject"].id, setup["competitor"].id)
    assert resp.status_code == 201
    body = resp.json()
    assert set(body) == {
        "id", "portfolioId", "propertyAId", "propertyBId",
        "relationshipType", "isActive", "createdAt",
    }
    assert body["isActive"] is True
    assert body["relationshipType"] == "direct_competitor"


def test_duplicate_relationship_conflicts(setup):
    client = setup["client"]
    first = _create(client, setup["subject"].id, setup["competitor"].id).json()
    resp = _create(client, setup["competitor"].id, setup["subject"].id)
    assert resp.status_code == 409
    assert resp.json()["existingId"] == first["id"]


def test_self_relationship_rejected(setup):
    client = setup["client"]
    resp = _create(client, setup["subject"].id, setup["subject"].id)
    assert resp.status_code == 422
    assert resp.json()["field"] == "property_b_id"


def test_toggle_relationship(setup):
    client = setup["client"]
    rel = _create(client, setup["subject"].id, setup["competitor"].id).json()
    resp = client.post(f"/relationships/{rel['id']}/toggle")
    assert resp.status_code == 200
    assert resp.json()["isActive"] is False


def test_toggle_unknown_relationship(setup):
    resp = setup["client"].post("/relationships/nope/toggle")
    assert resp.status_code == 404


def test_toggle_or_create(setup):
    client = setup["client"]
    payload = {"propertyAId": setup["subject"].id, "propertyBId": setup["competitor"].id}
    first = client.post("/relationships/toggle-or-create", json=payload).json()
    second = client.post("/relationships/toggle-or-create", json=payload).json()
    assert first["id"] == second["id"]
    assert first["isActive"] is True
    assert second["isActive"] is False


def test_get_relationship(setup):
    client = setup["client"]
    rel = _create(client, setup["subject"].id, setup["competitor"].id).json()
    resp = client.get(f"/relationships/{rel['id']}")
    assert resp.status_code == 200
    assert resp.json()["id"] == rel["id"]
    assert resp.json()["propertyAId"] == setup["subject"].id
    assert client.get("/relationships/missing").status_code == 404


def test_update_relationship_type(setup):
    client = setup["client"]
    rel = _create(client, setup["subject"].id, setup["competitor"].id).json()
    resp = client.patch(
        f"/relationships/{rel['id']}", json={"relationshipType": "market_leader"}
    )
    assert resp.status_code == 200
    assert resp.json()["relationshipType"] == "market_leader"
    assert resp.json()["isActive"] is True

    bad = client.patch(f"/relationships/{rel['id']}", json={"relationshipType": "rival"})
    assert bad.status_code == 422
    missing = client.patch("/relationships/missing", json={"relationshipType": "market_leader"})
    assert missing.status_code == 404


def test_property_competitors(setup):
    client = setup["client"]
    rel = _create(client, setup["subject"].id, setup["competitor"].id).json()

    resp = client.get(f"/properties/{setup['competitor'].id}/competitors")
    assert resp.status_code == 200
    assert [r["id"] for r in resp.json()] == [rel["id"]]

    client.post(f"/relationships/{rel['id']}/toggle")
    assert client.get(f"/properties/{setup['subject'].id}/competitors").json() == []
    assert client.get("/properties/missing/competitors").status_code == 404


def test_update_unit_status(setup):
    client = setup["client"]
    unit = setup["repo"].get_units(setup["subject"].id)[0]
    resp = client.patch(f"/units/{unit.id}", json={"status": "notice_given"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "notice_given"
    assert setup["repo"].get_units(setup["subject"].id)[0].status == UnitStatus.NOTICE_GIVEN

    assert client.patch("/units/missing", json={"status": "vacant"}).status_code == 404


def test_list_portfolio_relationships(setup):
    client = setup["client"]
    _create(client, setup["subject"].id, setup["competitor"].id)
    resp = client.get(f"/portfolios/{setup['portfolio'].id}/relationships")
    assert resp.status_code == 200
    assert len(resp.json()) == 1

    assert client.get("/portfolios/missing/relationships").status_code == 404


def test_matrix(setup):
    client = setup["client"]
    _create(client, setup["subject"].id, setup["competitor"].id)
    resp = client.get(f"/portfolios/{setup['portfolio'].id}/matrix")
    assert resp.status_code == 200
    body = resp.json()
    assert body["activeCount"] == 1
    assert body["cells"][0]["isActive"] is True


def test_analysis(setup):
    client = setup["client"]
    _create(client, setup["subject"].id, setup["competitor"].id)
    resp = client.post(
        "/analysis",
        json={
            "subjectId": setup["subject"].id,
            "mode": "external",
            "filterCriteria": {
                "bedroomTypes": [],
                "priceRange": {"min": 0, "max": 10000},
                "availability": "60days",
                "squareFootageRange": {"min": 0, "max": 5000},
            },
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    subject_types = {m["type"]: m for m in body["subjectProperty"]["unitTypes"]}
    assert subject_types["1BR"]["avgRent"] == 1200
    competitor_types = {m["type"]: m for m in body["competitors"][0]["unitTypes"]}
    assert competitor_types["1BR"]["avgRent"] == 1300
    assert competitor_types["1BR"]["vacancyRate"] == 100
    assert body["marketInsights"]["subjectVsMarket"] == "above market"


def test_analysis_defaults_filter(setup):
    resp = setup["client"].post("/analysis", json={"subjectId": setup["subject"].id})
    assert resp.status_code == 200
    assert resp.json()["filterCriteria"]["availability"] == "60days"


def test_analysis_by_session_selection(setup):
    resp = setup["client"].post(
        "/analysis",
        json={"sessionPropertyIds": [setup["subject"].id, setup["competitor"].id]},
    )
    assert resp.status_code == 200
    assert len(resp.json()["competitors"]) == 1


def test_analysis_requires_target(setup):
    resp = setup["client"].post("/analysis", json={})
    assert resp.status_code == 422


def test_analysis_unknown_subject(setup):
    resp = setup["client"].post("/analysis", json={"subjectId": "missing"})
    assert resp.status_code == 404


def test_analysis_bad_bedroom_type(setup):
    resp = setup["client"].post(
        "/analysis",
        json={"subjectId": setup["subject"].id, "filterCriteria": {"bedroomTypes": ["loft"]}},
    )
    assert resp.status_code == 422
    assert resp.json()["field"] == "bedroom_types"


def test_optimization_presets(setup):
    client = setup["client"]
    resp = client.get("/optimization-presets/balanced")
    assert resp.status_code == 200
    assert resp.json() == {
        "goal": "balanced",
        "custom": False,
        "occupancy": 92,
        "risk": 2,
        "riskLabel": "Medium",
    }

    custom = client.get("/optimization-presets/custom")
    assert custom.status_code == 200
    assert custom.json() == {
        "goal": "custom",
        "custom": True,
        "occupancy": None,
        "risk": None,
        "riskLabel": None,
    }
    assert client.get("/optimization-presets/unknown").status_code == 422
