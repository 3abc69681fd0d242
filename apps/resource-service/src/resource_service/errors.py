from __future__ import annotations


class OverpassError(Exception):
    """The Overpass upstream answered with an error or could not be reached."""


class OverpassTimeoutError(OverpassError):
    """The Overpass upstream did not answer in time."""
