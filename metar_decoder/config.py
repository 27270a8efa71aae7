"""
Runtime settings, read once from the environment.

  METAR_SOURCE_URL         base URL of the per-station .TXT files
  METAR_FETCH_TIMEOUT      seconds before a station fetch gives up
  METAR_CACHE_TTL_MINUTES  how long a fetched payload is reused
  METAR_LOG_LEVEL          level passed to logging.basicConfig
"""
import os

METAR_SOURCE_URL = os.getenv(
    "METAR_SOURCE_URL",
    "https://tgftp.nws.noaa.gov/data/observations/metar/stations",
).rstrip("/")

FETCH_TIMEOUT = float(os.getenv("METAR_FETCH_TIMEOUT", "5"))

CACHE_TTL_MINUTES = int(os.getenv("METAR_CACHE_TTL_MINUTES", "30"))

LOG_LEVEL = os.getenv("METAR_LOG_LEVEL", "INFO").upper()
