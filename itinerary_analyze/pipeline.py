"""End-to-end batch processing: rows -> records by date -> itineraries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Mapping, Sequence

from itinerary_analyze.config import ItineraryParams
from itinerary_analyze.models import Itinerary, NormalizedBatch
from itinerary_analyze.normalizer import normalize_rows
from itinerary_analyze.refiner import build_itinerary


@dataclass(frozen=True, slots=True)
class IngestResult:
    """Everything one ingestion pass produces. Plain data, safe to pickle."""

    batch: NormalizedBatch
    itineraries: Mapping[date, Itinerary]


def build_itineraries(batch: NormalizedBatch, params: ItineraryParams) -> dict[date, Itinerary]:
    return {day: build_itinerary(day, records, params) for day, records in batch.records_by_date.items()}


def process_batch(
    header: Sequence[str] | None,
    rows: Iterable[Sequence[str] | None],
    params: ItineraryParams,
) -> IngestResult:
    """Normalize rows and build every date's itinerary.

    Raises:
        MalformedInputError: If the batch is structurally unreadable.
    """

    batch = normalize_rows(header, rows, params)
    return IngestResult(batch=batch, itineraries=build_itineraries(batch, params))
