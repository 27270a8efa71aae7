"""Exceptions raised by the decoder and the station fetcher."""


class MetarError(Exception):
    """Base class for everything this package raises on purpose."""


class MalformedSourceData(MetarError):
    """The station payload did not carry a header line and a report line."""

    def __init__(self, icao: str):
        self.icao = icao
        super().__init__(f"raw METAR data returned is malformed for {icao!r}")


class UnknownField(MetarError, KeyError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name!r} is not a METAR report field")

    def __str__(self):
        return self.args[0]


class FetchError(MetarError):
    """Station data could not be retrieved (HTTP error, timeout, bad URL)."""
