"""
FastAPI app — METAR decoding endpoints:
  GET  /                      health
  POST /metar/decode          decode a raw report from the request body
  GET  /metar/{icao}          fetch + decode the station's latest report
  GET  /metar/{icao}/{field}  one field of the station's latest report
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.encoders import jsonable_encoder

from metar_decoder import config
from metar_decoder.errors import FetchError, MalformedSourceData, UnknownField
from metar_decoder.models import FIELDS
from metar_decoder.schemas import DecodeRequest, FieldResponse, ParsedReportSchema
from metar_decoder.weather.fetcher import fetch_mock, fetch_station_lines, normalise_station
from metar_decoder.weather.parser import ReportParser

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(title="METAR Decoder API", version="1.0.0")


@app.get("/")
def health():
    return {"status": "ok", "service": "METAR Decoder", "fields": list(FIELDS)}


# ── Endpoint 1: Decode raw text ───────────────────────────────────────────────

@app.post("/metar/decode", response_model=ParsedReportSchema)
def decode(request: DecodeRequest):
    """
    Decode a raw METAR line.
    - reference_date: year/month used for the observation time (default: today, UTC)
    """
    reference = None
    if request.reference_date:
        d = request.reference_date
        reference = datetime(d.year, d.month, d.day, tzinfo=timezone.utc)

    parser = ReportParser(request.raw.strip(), reference_date=reference)
    return ParsedReportSchema.from_record(parser.to_record())


# ── Endpoint 2: Fetch + decode a station ──────────────────────────────────────

def _station_parser(icao: str, use_mock: bool, scenario: str) -> ReportParser:
    try:
        code = normalise_station(icao)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if use_mock:
        fetch = lambda c: fetch_mock(c, scenario)
    else:
        fetch = fetch_station_lines

    try:
        return ReportParser.from_station(code, fetch=fetch)
    except MalformedSourceData as e:
        logger.warning("malformed payload for %s", code)
        raise HTTPException(status_code=502, detail=str(e))
    except FetchError as e:
        raise HTTPException(status_code=503, detail=str(e))


@app.get("/metar/{icao}", response_model=ParsedReportSchema)
def station_report(icao: str, use_mock: bool = False, scenario: str = "good"):
    """
    Fetch the latest report for a station and decode every field.
    - use_mock: if True, uses a deterministic mock payload
    - scenario: "good" | "low_ceiling" | "low_vis" | "high_wind" | "cavok"
                | "metric_wind" | "malformed"
    """
    parser = _station_parser(icao, use_mock, scenario)
    return ParsedReportSchema.from_record(parser.to_record())


@app.get("/metar/{icao}/{field}", response_model=FieldResponse)
def station_field(icao: str, field: str, use_mock: bool = False, scenario: str = "good"):
    """Fetch the latest report for a station and decode a single field."""
    if field not in FIELDS:
        raise HTTPException(status_code=404, detail=str(UnknownField(field)))

    parser = _station_parser(icao, use_mock, scenario)
    return FieldResponse(
        icao_code=parser.get("icao_code"),
        field=field,
        value=jsonable_encoder(parser.get(field)),
    )
