"""Client for live and persisted notifications of the project catalog API."""

__version__ = "0.1.0"
