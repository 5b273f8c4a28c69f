"""Tests for the HTTP API."""

import io

import ezdxf
import pytest
from fastapi.testclient import TestClient

from api.index import app


@pytest.fixture
def client():
    return TestClient(app)


def test_root(client):
    assert client.get("/").json() == {"message": "Bar Cutting Planner API"}
    assert client.get("/api").status_code == 200


def test_optimize_returns_plan(client):
    response = client.post(
        "/api/optimize",
        json={"stock_length": 12000, "parts": [{"position": "A", "length": 9000}, {"position": "B", "length": 3000}]},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total_stock_bars"] == 1
    assert body["material_utilization_percent"] == 100
    assert [cut["label"] for cut in body["stock_bars"][0]["cuts"]] == ["A-1", "B-1"]
    assert body["weld_assemblies"] == []
    assert body["exact_stock_bars"] is None


def test_optimize_with_welds_and_bulk_parts(client):
    response = client.post("/api/optimize", json={"bulk": "P 8000 4"})

    assert response.status_code == 200
    body = response.json()
    assert body["total_stock_bars"] == 3
    assert body["weld_assemblies"][0]["demand_label"] == "P-4"
    assert body["weld_assemblies"][0]["method"] == "double"


def test_optimize_empty_request(client):
    body = client.post("/api/optimize", json={}).json()

    assert body["total_stock_bars"] == 0
    assert body["stock_bars"] == []
    assert body["material_utilization_percent"] == 0


def test_optimize_compare_exact(client):
    response = client.post(
        "/api/optimize",
        json={"parts": [{"position": "A", "length": 7500, "quantity": 3}], "compare_exact": True},
    )

    body = response.json()
    assert body["total_stock_bars"] == 3
    assert body["exact_stock_bars"] == 3


def test_piece_longer_than_stock_is_bad_request(client):
    response = client.post(
        "/api/optimize",
        json={"stock_length": 6000, "parts": [{"position": "A", "length": 7000}]},
    )

    assert response.status_code == 400
    assert "exceeds stock length" in response.json()["detail"]


def test_bulk_errors_are_bad_request(client):
    response = client.post("/api/optimize", json={"parts": [{"position": "A", "length": 100}], "bulk": "A 200 1"})

    assert response.status_code == 400
    assert "already exists" in response.json()["detail"]


@pytest.mark.parametrize(
    "payload",
    [
        {"parts": [{"position": "A", "length": 0}]},
        {"parts": [{"position": "A", "length": 100, "quantity": 0}]},
        {"parts": [{"position": "A", "length": 100}, {"position": "A", "length": 200}]},
        {"stock_length": 0},
        {"weld_loss": -1},
        {"min_fire_length": 0},
        {"match_policy": "random"},
    ],
)
def test_invalid_payload_is_unprocessable(client, payload):
    assert client.post("/api/optimize", json=payload).status_code == 422


def test_parse_lines(client):
    response = client.post("/api/parse", json={"text": "P2 750 2\nP1 7500 3"})

    assert response.status_code == 200
    body = response.json()
    assert [p["position"] for p in body["parts"]] == ["P1", "P2"]
    assert body["total_pieces"] == 5


def test_parse_compact(client):
    body = client.post("/api/parse", json={"text": "7500x3, 750x2", "format": "compact"}).json()

    assert [(p["position"], p["length"], p["quantity"]) for p in body["parts"]] == [("P1", 7500, 3), ("P2", 750, 2)]


def test_parse_error(client):
    response = client.post("/api/parse", json={"text": "P1"})

    assert response.status_code == 400


def test_optimize_dxf(client):
    response = client.post("/api/optimize/dxf", json={"bulk": "P 8000 4"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/dxf")
    assert "cutting_plan.dxf" in response.headers["content-disposition"]

    doc = ezdxf.read(io.StringIO(response.text))
    assert len(doc.modelspace().query('LWPOLYLINE[layer=="CUT"]')) == 3


def test_compare_exact_counts_pieces_replaced_by_welds(client):
    response = client.post("/api/optimize", json={"bulk": "P 8000 4", "compare_exact": True})

    assert response.status_code == 200
    body = response.json()
    # the weld saves a bar, the exact count cuts every piece from stock
    assert body["total_stock_bars"] == 3
    assert len(body["weld_assemblies"]) == 1
    assert body["exact_stock_bars"] == 4


def test_add_part_to_list(client):
    response = client.post(
        "/api/parts",
        json={
            "parts": [{"position": "P2", "length": 750, "quantity": 2}],
            "position": "P1",
            "length": "7500",
            "quantity": "",
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert [(p["position"], p["length"], p["quantity"]) for p in body["parts"]] == [("P1", 7500, 1), ("P2", 750, 2)]
    assert body["total_pieces"] == 3


def test_add_part_duplicate_is_bad_request(client):
    response = client.post(
        "/api/parts",
        json={"parts": [{"position": "P1", "length": 750, "quantity": 1}], "position": "P1", "length": 900},
    )

    assert response.status_code == 400
    assert "already exists" in response.json()["detail"]


def test_add_part_invalid_length_is_bad_request(client):
    response = client.post("/api/parts", json={"position": "P1", "length": "abc"})

    assert response.status_code == 400
    assert "positive length" in response.json()["detail"]
