"""
API checks with FastAPI's TestClient. Station endpoints use mock payloads,
so no internet is needed.

  pytest metar_decoder/api/test_api.py
"""
import sys
sys.path.insert(0, ".")

import urllib.error

from fastapi.testclient import TestClient

from metar_decoder.api.main import app
from metar_decoder.weather import fetcher
from metar_decoder.weather.parser import ReportParser

client = TestClient(app)


def test_health():
    r = client.get("/")
    assert r.status_code == 200
    assert "cloud_ceiling" in r.json()["fields"]


def test_decode_raw_report():
    r = client.post("/metar/decode", json={
        "raw": "KJFK 121851Z 18010KT 150V210 10SM FEW010 BKN025 M05/M10 A2992",
        "reference_date": "2025-07-20",
    })
    assert r.status_code == 200
    body = r.json()
    assert body["icao_code"] == "KJFK"
    assert body["time"].startswith("2025-07-12T18:51:00")
    assert body["wind"] == {"direction": 180, "speed": 10, "gusting": None, "variation": [150, 210]}
    assert body["cloud"] == [
        {"coverage": "few", "height": 1000, "type": None},
        {"coverage": "broken", "height": 2500, "type": None},
    ]
    assert body["cloud_ceiling"] == 2500
    assert (body["temperature"], body["dewpoint"]) == (-5, -10)
    assert body["altimeter"] == 1013
    assert body["visibility"] is None
    assert body["cavok"] is False


def test_decode_cloud_summary():
    r = client.post("/metar/decode", json={"raw": "EGLL 121250Z 24012KT 9999 NSC 14/08 Q1021"})
    assert r.status_code == 200
    assert r.json()["cloud"] == "no significant cloud"


def test_decode_rejects_blank_report():
    r = client.post("/metar/decode", json={"raw": "   "})
    assert r.status_code == 422


def test_station_report_mock():
    r = client.get("/metar/vobg", params={"use_mock": True, "scenario": "metric_wind"})
    assert r.status_code == 200
    body = r.json()
    assert body["icao_code"] == "VOBG"
    assert body["wind"]["speed"] == 9
    assert body["wind"]["gusting"] == 17
    assert body["cloud"][0] == {"coverage": "scattered", "height": 1500, "type": "CB"}


def test_station_field_mock():
    r = client.get("/metar/VOBG/cloud_ceiling", params={"use_mock": True, "scenario": "low_ceiling"})
    assert r.status_code == 200
    assert r.json() == {"icao_code": "VOBG", "field": "cloud_ceiling", "value": 800}


def test_station_field_decodes_only_that_field(monkeypatch):
    def whole_record(self):
        raise AssertionError("single-field lookup built the whole record")

    monkeypatch.setattr(ReportParser, "to_record", whole_record)
    r = client.get("/metar/VOBG/cloud", params={"use_mock": True, "scenario": "metric_wind"})
    assert r.status_code == 200
    assert r.json()["value"] == [
        {"coverage": "scattered", "height": 1500, "type": "CB"},
        {"coverage": "broken", "height": 4000, "type": None},
    ]

    r = client.get("/metar/VOBG/wind", params={"use_mock": True, "scenario": "high_wind"})
    assert r.json()["value"] == {"direction": 270, "speed": 25, "gusting": 38, "variation": [240, 300]}


def test_unknown_field_is_404():
    r = client.get("/metar/VOBG/remarks", params={"use_mock": True})
    assert r.status_code == 404


def test_malformed_payload_is_502():
    r = client.get("/metar/VOBG", params={"use_mock": True, "scenario": "malformed"})
    assert r.status_code == 502


def test_unreachable_source_is_503(monkeypatch):
    def offline(req, timeout=None):
        raise urllib.error.URLError("no route to host")

    fetcher.clear_cache()
    monkeypatch.setattr(fetcher.urllib.request, "urlopen", offline)
    r = client.get("/metar/VOBG", params={"use_mock": False})
    assert r.status_code == 503
    assert "VOBG" in r.json()["detail"]

    r = client.get("/metar/VOBG/wind", params={"use_mock": False})
    assert r.status_code == 503


def test_bad_station_code_is_400():
    r = client.get("/metar/TOOLONG", params={"use_mock": True})
    assert r.status_code == 400


if __name__ == "__main__":
    import pytest
    sys.exit(pytest.main([__file__, "-v"]))
