import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

# Add project root to sys.path
sys.path.append(str(Path(__file__).resolve().parent.parent))

import pytest
import requests

from core.exceptions import BizError, ExternalApiError
from modules.geometry import Point
from modules.isochrone import adapter
from modules.isochrone.adapter import fetch_isoline_ring, fetch_route_summary

ORIGIN = Point(lat=50.1, lng=8.69)
ENCODED_RING = "BFoz5xJ67i1B1B7PzIhaxL7Y"


def _response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = "" if payload is None else str(payload)
    resp.json.return_value = payload
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return resp


@pytest.fixture(autouse=True)
def api_key():
    with patch.object(adapter.settings, "here_api_key", "test-key"):
        yield


def test_isoline_request_and_decode():
    payload = {"isolines": [{"polygons": [{"outer": ENCODED_RING}]}]}
    with patch("modules.isochrone.adapter.requests.get", return_value=_response(payload=payload)) as mock_get:
        ring = fetch_isoline_ring(ORIGIN, 0.5, "walk")

    params = mock_get.call_args.kwargs["params"]
    assert params["apiKey"] == "test-key"
    assert params["origin"] == "50.1,8.69"
    assert params["range[type]"] == "time"
    assert params["range[values]"] == "60"  # floored to one minute
    assert params["transportMode"] == "pedestrian"
    assert params["optimizeFor"] == "balanced"
    assert len(ring) == 4
    assert ring[0].lat == pytest.approx(50.10228)


def test_isoline_mode_mapping():
    payload = {"isolines": [{"polygons": [{"outer": ENCODED_RING}]}]}
    with patch("modules.isochrone.adapter.requests.get", return_value=_response(payload=payload)) as mock_get:
        fetch_isoline_ring(ORIGIN, 20, "bike")
        fetch_isoline_ring(ORIGIN, 20, "drive")

    modes = [c.kwargs["params"]["transportMode"] for c in mock_get.call_args_list]
    assert modes == ["bicycle", "car"]
    assert mock_get.call_args.kwargs["params"]["range[values]"] == "1200"


def test_isoline_without_polygon_returns_none():
    with patch("modules.isochrone.adapter.requests.get", return_value=_response(payload={"isolines": []})):
        assert fetch_isoline_ring(ORIGIN, 15) is None


def test_isoline_range_is_capped():
    with patch("modules.isochrone.adapter.requests.get") as mock_get:
        with pytest.raises(BizError) as exc_info:
            fetch_isoline_ring(ORIGIN, 121)
    assert exc_info.value.code == 400
    mock_get.assert_not_called()


def test_http_error_maps_to_external_api_error():
    with patch("modules.isochrone.adapter.requests.get", return_value=_response(status_code=500)):
        with pytest.raises(ExternalApiError) as exc_info:
            fetch_isoline_ring(ORIGIN, 15)
    assert exc_info.value.code == 502


def test_rate_limit_is_reported():
    with patch("modules.isochrone.adapter.requests.get", return_value=_response(status_code=429)):
        with pytest.raises(ExternalApiError) as exc_info:
            fetch_route_summary(ORIGIN, Point(lat=50.2, lng=8.7))
    assert exc_info.value.code == 429


def test_connection_error_maps_to_external_api_error():
    with patch("modules.isochrone.adapter.requests.get", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(ExternalApiError):
            fetch_route_summary(ORIGIN, Point(lat=50.2, lng=8.7))


def test_missing_api_key():
    with patch.object(adapter.settings, "here_api_key", ""):
        with patch("modules.isochrone.adapter.requests.get") as mock_get:
            with pytest.raises(ExternalApiError):
                fetch_route_summary(ORIGIN, Point(lat=50.2, lng=8.7))
    mock_get.assert_not_called()


def test_route_summary_sums_sections():
    payload = {
        "routes": [{
            "sections": [
                {"summary": {"duration": 600, "length": 8046.72}},
                {"summary": {"duration": 300, "length": 1609.344}},
            ]
        }]
    }
    with patch("modules.isochrone.adapter.requests.get", return_value=_response(payload=payload)) as mock_get:
        summary = fetch_route_summary(ORIGIN, Point(lat=50.2, lng=8.7), "drive", timeout=5)

    assert summary.time_seconds == 900
    assert summary.distance_miles == pytest.approx(6.0)
    assert mock_get.call_args.kwargs["timeout"] == 5
    params = mock_get.call_args.kwargs["params"]
    assert params["destination"] == "50.2,8.7"
    assert params["transportMode"] == "car"
    assert params["return"] == "summary"


def test_route_without_sections_is_an_error():
    with patch("modules.isochrone.adapter.requests.get", return_value=_response(payload={"routes": []})):
        with pytest.raises(ExternalApiError):
            fetch_route_summary(ORIGIN, Point(lat=50.2, lng=8.7))
