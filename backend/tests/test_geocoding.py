from unittest.mock import MagicMock, patch

import pytest
import requests

from domain.errors import NetworkError
from domain.models import ReverseResult
from services import geocoding as geo


class DummyResponse:
    def __init__(self, json_data, status_code=200):
        self._json = json_data
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if isinstance(self._json, Exception):
            raise self._json
        return self._json


@pytest.fixture(autouse=True)
def isolated_cache(monkeypatch, tmp_path):
    monkeypatch.setattr(geo, "_CACHE_DB", None, raising=False)
    monkeypatch.setattr(geo, "NOMINATIM_CACHE_PATH", str(tmp_path / "geocode.sqlite"))
    monkeypatch.setattr(geo, "NOMINATIM_CACHE_TTL_SECONDS", 1000)
    monkeypatch.setattr(geo, "_MIN_INTERVAL_SEC", 0.0)
    yield
    if geo._CACHE_DB is not None:
        geo._CACHE_DB.close()


@patch("services.geocoding._session.get")
def test_forward_geocode_returns_hits_unparsed(mock_get):
    mock_resp = MagicMock()
    mock_resp.json.return_value = [
        {"lat": "-18.9113", "lon": "-48.2622", "display_name": "Uberlândia, Minas Gerais, Brasil"}
    ]
    mock_resp.raise_for_status.return_value = None
    mock_get.return_value = mock_resp

    hits = geo.forward_geocode("Uberlândia")

    assert len(hits) == 1
    assert hits[0].lat == "-18.9113"
    assert hits[0].display_name == "Uberlândia, Minas Gerais, Brasil"
    _, kwargs = mock_get.call_args
    assert kwargs["params"]["q"] == "Uberlândia"
    assert kwargs["params"]["limit"] == "1"
    assert "User-Agent" in kwargs["headers"]


def test_forward_geocode_blank_query_skips_network(monkeypatch):
    monkeypatch.setattr(geo, "_throttled_get", MagicMock(side_effect=AssertionError("no call")))
    assert geo.forward_geocode("   ") == []


def test_forward_geocode_wraps_transport_errors(monkeypatch):
    def boom(url, params=None, headers=None, timeout=None):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(geo, "_throttled_get", boom)
    with pytest.raises(NetworkError):
        geo.forward_geocode("anything")


def test_forward_geocode_non_2xx_is_network_error(monkeypatch):
    monkeypatch.setattr(geo, "_throttled_get", lambda *a, **k: DummyResponse([], status_code=503))
    with pytest.raises(NetworkError):
        geo.forward_geocode("anything")


def test_forward_geocode_bad_json_is_network_error(monkeypatch):
    monkeypatch.setattr(geo, "_throttled_get", lambda *a, **k: DummyResponse(ValueError("bad json")))
    with pytest.raises(NetworkError):
        geo.forward_geocode("anything")


def test_reverse_geocode_prefers_poi_name(monkeypatch):
    monkeypatch.setattr(
        geo,
        "_throttled_get",
        lambda *a, **k: DummyResponse(
            {
                "name": "Parque do Sabiá",
                "display_name": "Parque do Sabiá, Tibery, Uberlândia, Brasil",
                "address": {"city": "Uberlândia", "state": "Minas Gerais", "postcode": None},
            }
        ),
    )

    result = geo.reverse_geocode(-18.9108, -48.2367)

    assert result == ReverseResult(
        name="Parque do Sabiá", address={"city": "Uberlândia", "state": "Minas Gerais"}
    )


def test_reverse_geocode_returns_none_when_nothing_there(monkeypatch):
    monkeypatch.setattr(geo, "_throttled_get", lambda *a, **k: DummyResponse({"error": "Unable to geocode"}))
    assert geo.reverse_geocode(0.0, 0.0) is None


def test_reverse_geocode_uses_sqlite_cache(monkeypatch):
    call_count = {"count": 0}

    def fake_get(url, params=None, headers=None, timeout=None):
        call_count["count"] += 1
        return DummyResponse({"address": {"road": "Avenida João Naves de Ávila", "house_number": "2121", "city": "Uberlândia"}})

    monkeypatch.setattr(geo, "_throttled_get", fake_get)

    first = geo.reverse_geocode(-18.918, -48.259)
    second = geo.reverse_geocode(-18.918, -48.259)

    assert call_count["count"] == 1
    assert first == second
    assert second.name == "Avenida João Naves de Ávila, 2121 - Uberlândia"


def test_format_display_name_trims_boilerplate():
    name = geo.format_display_name(
        {"display_name": "Rua X, Centro, 38400-100, Uberlândia, Minas Gerais, Brasil"}
    )
    assert name == "Rua X, Centro, Uberlândia"


def test_format_display_name_truncates_long_names():
    name = geo.format_display_name({"name": "A" * 80})
    assert len(name) == 58
    assert name.endswith("…")


def test_format_display_name_empty_payload():
    assert geo.format_display_name({}) is None
