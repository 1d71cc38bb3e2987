"""swellstrike: surf and ski condition aggregation with strike detection."""

__version__ = "0.1.0"
