"""Integration tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from clause_reconciliation.api.app import app


@pytest.fixture
def client(monkeypatch):
    for name in (
        "CLAUSE_RECON_TIE_BREAK",
        "CLAUSE_RECON_SEED",
        "CLAUSE_RECON_MAX_WORKERS",
        "CLAUSE_RECON_DATABASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    return TestClient(app)


@pytest.fixture
def group_dict():
    return {
        "id": "g1",
        "label": "Group One",
        "variants": [
            {"id": "X", "label": "Variant X"},
            {"id": "Y", "label": "Variant Y"},
            {"id": "Z", "label": "Variant Z"},
        ],
    }


def tie_submissions():
    """A and B swap X and Y, so X and Y tie fully."""
    return [
        {"clause_group_id": "g1", "party_id": "A", "rejected": [], "ranking": ["X", "Y", "Z"]},
        {"clause_group_id": "g1", "party_id": "B", "rejected": [], "ranking": ["Y", "X", "Z"]},
    ]


class TestTieBreakStrategies:
    """Tests for GET /api/tie-break-strategies."""

    def test_lists_strategies(self, client):
        response = client.get("/api/tie-break-strategies")

        assert response.status_code == 200
        assert response.json() == {
            "strategies": ["lowest-id", "party-a-priority", "seeded-hash"],
            "default": "lowest-id",
        }


class TestValidateEndpoint:
    """Tests for POST /api/validate."""

    def test_valid_submission(self, client, group_dict):
        response = client.post("/api/validate", json={
            "clause_group": group_dict,
            "party_id": "A",
            "submission": {"rejected": ["Z"], "ranks": {"Y": 1, "X": 2}},
        })

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is True
        assert body["preference"]["ranking"] == ["Y", "X"]
        assert body["preference"]["rejected"] == ["Z"]

    def test_invalid_submission(self, client, group_dict):
        response = client.post("/api/validate", json={
            "clause_group": group_dict,
            "party_id": "A",
            "submission": {"rejected": [], "ranking": ["X", "Y"]},
        })

        assert response.status_code == 422
        body = response.json()
        assert body["valid"] is False
        assert body["error"]["violation"] == "partition_mismatch"
        assert body["error"]["variant_ids"] == ["Z"]

    def test_bad_clause_group(self, client):
        response = client.post("/api/validate", json={
            "clause_group": {"id": "g1", "label": "Group"},
            "party_id": "A",
            "submission": {},
        })

        assert response.status_code == 400

    def test_missing_party(self, client, group_dict):
        response = client.post("/api/validate", json={"clause_group": group_dict, "submission": {}})

        assert response.status_code == 400


class TestReconcileEndpoint:
    """Tests for POST /api/reconcile."""

    def test_reconcile_with_default_tie_break(self, client, group_dict):
        response = client.post("/api/reconcile", json={
            "template": {"id": "t1", "name": "Template", "clause_groups": [group_dict]},
            "party_a_id": "A",
            "party_b_id": "B",
            "submissions": tie_submissions(),
        })

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "resolved"
        outcome = body["outcomes"][0]
        assert outcome["kind"] == "scored_selection"
        assert outcome["variant_id"] == "X"
        assert outcome["score"] == 4
        assert outcome["tie_break"] == "lowest-id"

    def test_reconcile_with_tie_break_override(self, client, group_dict):
        response = client.post("/api/reconcile", json={
            "template": {"id": "t1", "name": "Template", "clause_groups": [group_dict]},
            "party_a_id": "B",
            "party_b_id": "A",
            "submissions": tie_submissions(),
            "tie_break": "party-a-priority",
        })

        assert response.status_code == 200
        outcome = response.json()["outcomes"][0]
        assert outcome["variant_id"] == "Y"
        assert outcome["tie_break"] == "party-a-priority"

    def test_missing_submission_blocks(self, client, group_dict):
        response = client.post("/api/reconcile", json={
            "template": {"id": "t1", "name": "Template", "clause_groups": [group_dict]},
            "party_a_id": "A",
            "party_b_id": "B",
            "submissions": tie_submissions()[:1],
        })

        body = response.json()
        assert body["status"] == "blocked"
        assert body["red_light_groups"] == ["g1"]
        assert body["outcomes"][0]["reason"] == "missing_preference"

    def test_unknown_tie_break(self, client, group_dict):
        response = client.post("/api/reconcile", json={
            "template": {"id": "t1", "name": "Template", "clause_groups": [group_dict]},
            "party_a_id": "A",
            "party_b_id": "B",
            "submissions": [],
            "tie_break": "coin-flip",
        })

        assert response.status_code == 400
        assert response.json()["detail"]["errors"]

    def test_non_string_tie_break(self, client, group_dict):
        response = client.post("/api/reconcile", json={
            "template": {"id": "t1", "name": "Template", "clause_groups": [group_dict]},
            "party_a_id": "A",
            "party_b_id": "B",
            "submissions": tie_submissions(),
            "tie_break": {"x": 1},
        })

        assert response.status_code == 400
        assert any("tie_break_strategy" in e for e in response.json()["detail"]["errors"])

    @pytest.mark.parametrize(
        "overrides",
        [
            {"party_b_id": "A"},
            {"submissions": "nope"},
            {"template": "nda"},
            {"template": {"id": "t1", "name": "Template", "clause_groups": []}},
        ],
    )
    def test_bad_requests(self, client, group_dict, overrides):
        payload = {
            "template": {"id": "t1", "name": "Template", "clause_groups": [group_dict]},
            "party_a_id": "A",
            "party_b_id": "B",
            "submissions": [],
        }
        payload.update(overrides)

        response = client.post("/api/reconcile", json=payload)

        assert response.status_code == 400
