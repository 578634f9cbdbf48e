"""Search cluster monitor - telemetry, refresh scheduling and topology views."""

__version__ = "1.0.0"
