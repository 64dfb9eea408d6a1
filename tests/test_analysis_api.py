import os
import sys
import threading
from pathlib import Path
from unittest.mock import patch

# Keep imports predictable in local runs
sys.path.append(str(Path(__file__).resolve().parent.parent))
os.environ.setdefault("HERE_API_KEY", "test-key")

import pytest
from fastapi.testclient import TestClient

from core.exceptions import ExternalApiError
from main import app
from modules.geometry import Point


def _ring(coords):
    return [{"lat": lat, "lng": lng} for lat, lng in coords]


SQUARE_A = _ring([(0, 0), (0, 2), (2, 2), (2, 0)])
SQUARE_B = _ring([(1, 1), (1, 3), (3, 3), (3, 1)])


def test_health():
    client = TestClient(app)
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_decode_endpoint():
    client = TestClient(app)
    resp = client.post("/api/v1/polyline/decode", json={"encoded": "BFoz5xJ67i1B1B7PzIhaxL7Y"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["has_third_dimension"] is False
    assert len(data["points"]) == 4
    assert data["points"][0]["lat"] == pytest.approx(50.10228)


def test_decode_endpoint_rejects_malformed_input():
    client = TestClient(app)
    resp = client.post("/api/v1/polyline/decode", json={"encoded": "BFoz5x"})
    assert resp.status_code == 400
    data = resp.json()
    assert data["status"] == "error"
    assert "varint" in data["message"]


def test_overlap_endpoint():
    client = TestClient(app)
    resp = client.post(
        "/api/v1/analysis/overlap",
        json={"rings": [SQUARE_A, SQUARE_B], "location_ids": ["a", "b"]},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["has_overlap"] is True
    assert data["polygon"]["type"] == "Polygon"
    assert data["area_sq_mi"] > 0
    assert data["area_label"].endswith("sq mi")
    assert data["centroid"]["lat"] == pytest.approx(1.5)
    assert data["centroid"]["lng"] == pytest.approx(1.5)
    assert data["location_ids"] == ["a", "b"]


def test_overlap_endpoint_single_ring():
    client = TestClient(app)
    resp = client.post("/api/v1/analysis/overlap", json={"rings": [SQUARE_A]})
    assert resp.status_code == 200
    assert resp.json()["has_overlap"] is False


def test_overlap_endpoint_mismatched_ids():
    client = TestClient(app)
    resp = client.post(
        "/api/v1/analysis/overlap",
        json={"rings": [SQUARE_A, SQUARE_B], "location_ids": ["a"]},
    )
    assert resp.status_code == 422


def test_isoline_overlap_endpoint():
    rings = {
        10.0: [Point(**p) for p in SQUARE_A],
        20.0: [Point(**p) for p in SQUARE_B],
        30.0: None,
    }

    def fake_fetch(origin, minutes, mode):
        return rings[origin.lat]

    client = TestClient(app)
    with patch("router.analysis.fetch_isoline_ring", side_effect=fake_fetch) as mock_fetch:
        resp = client.post(
            "/api/v1/analysis/isoline-overlap",
            json={
                "locations": [
                    {"id": "home", "lat": 10, "lng": 0},
                    {"id": "work", "lat": 20, "lng": 0},
                    {"lat": 30, "lng": 0},
                ],
                "time_min": 15,
                "mode": "walk",
            },
        )

    assert mock_fetch.call_count == 3
    assert mock_fetch.call_args.args[2] == "walk"
    assert resp.status_code == 200
    data = resp.json()
    assert data["has_overlap"] is True
    assert data["location_ids"] == ["home", "work"]


def test_isoline_overlap_provider_failure():
    client = TestClient(app)
    with patch("router.analysis.fetch_isoline_ring", side_effect=ExternalApiError("HERE API request failed")):
        resp = client.post(
            "/api/v1/analysis/isoline-overlap",
            json={"locations": [{"lat": 1, "lng": 1}, {"lat": 2, "lng": 2}]},
        )
    assert resp.status_code == 502
    assert resp.json()["message"] == "HERE API request failed"


def test_isochrone_rings_endpoint_walk():
    client = TestClient(app)
    resp = client.post(
        "/api/v1/analysis/isochrone-rings",
        json={"lat": 40.0, "lng": -75.0, "time_ranges": [10, 30], "mode": "walk"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["mode"] == "walk"
    assert [r["minutes"] for r in data["rings"]] == [10, 30]
    assert all(len(r["points"]) == 16 for r in data["rings"])
    north = data["rings"][1]["points"][0]
    assert north["lat"] == pytest.approx(40.0 + 1.5 / 69)


def test_isochrone_rings_endpoint_validates_input():
    client = TestClient(app)
    resp = client.post(
        "/api/v1/analysis/isochrone-rings",
        json={"lat": 40.0, "lng": -75.0, "time_ranges": [0], "mode": "walk"},
    )
    assert resp.status_code == 422


def test_isoline_overlap_fetches_locations_concurrently():
    locations = [{"id": "a", "lat": 10, "lng": 0}, {"id": "b", "lat": 20, "lng": 0}]
    barrier = threading.Barrier(len(locations), timeout=2)
    rings = {10.0: [Point(**p) for p in SQUARE_A], 20.0: [Point(**p) for p in SQUARE_B]}

    def fake_fetch(origin, minutes, mode):
        # Only passes when every location's request is in flight at once.
        barrier.wait()
        return rings[origin.lat]

    client = TestClient(app)
    with patch("router.analysis.fetch_isoline_ring", side_effect=fake_fetch):
        resp = client.post("/api/v1/analysis/isoline-overlap", json={"locations": locations})

    assert resp.status_code == 200
    data = resp.json()
    assert data["has_overlap"] is True
    assert data["location_ids"] == ["a", "b"]


def test_isoline_overlap_per_location_time_and_mode():
    calls = {}

    def fake_fetch(origin, minutes, mode):
        calls[origin.lat] = (minutes, mode)
        return [Point(**p) for p in (SQUARE_A if origin.lat == 10 else SQUARE_B)]

    client = TestClient(app)
    with patch("router.analysis.fetch_isoline_ring", side_effect=fake_fetch):
        resp = client.post(
            "/api/v1/analysis/isoline-overlap",
            json={
                "locations": [
                    {"id": "home", "lat": 10, "lng": 0, "time_min": 15, "mode": "walk"},
                    {"id": "work", "lat": 20, "lng": 0, "time_min": 30},
                ],
                "time_min": 20,
                "mode": "drive",
            },
        )

    assert resp.status_code == 200
    assert calls[10.0] == (15, "walk")
    assert calls[20.0] == (30, "drive")


def test_isoline_overlap_rejects_bad_location_mode():
    client = TestClient(app)
    resp = client.post(
        "/api/v1/analysis/isoline-overlap",
        json={"locations": [{"lat": 1, "lng": 1, "mode": "fly"}, {"lat": 2, "lng": 2}]},
    )
    assert resp.status_code == 422


def test_isochrone_rings_endpoint_triangle():
    client = TestClient(app)
    resp = client.post(
        "/api/v1/analysis/isochrone-rings",
        json={"lat": 40.0, "lng": -75.0, "time_ranges": [10], "mode": "walk", "sample_directions": 3},
    )
    assert resp.status_code == 200
    assert len(resp.json()["rings"][0]["points"]) == 3
