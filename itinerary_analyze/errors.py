"""Exception types raised by the itinerary engine.

Per-row problems are never raised: they are recorded as SkippedRow entries and
counted in ProcessingStats.
"""

from __future__ import annotations


class ItineraryError(Exception):
    """Base class for itinerary_analyze errors."""


class MalformedInputError(ItineraryError, ValueError):
    """The whole batch is structurally unreadable (missing header or required column)."""


class ConfigurationError(ItineraryError, ValueError):
    """An invalid parameter was supplied before any data was processed."""
