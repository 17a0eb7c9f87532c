"""Processing context: the single owner of records, itineraries and filter state."""

from __future__ import annotations

import logging
import threading
from datetime import date
from typing import Iterable, Mapping, Sequence

from itinerary_analyze.aggregate import DayStats, SummaryStats, bairro_index, day_stats, summarize
from itinerary_analyze.config import ItineraryParams
from itinerary_analyze.filtering import visible_segments
from itinerary_analyze.models import FilterState, GPSRecord, Itinerary, ProcessingStats, Segment, SkippedRow
from itinerary_analyze.pipeline import IngestResult, process_batch

logger = logging.getLogger(__name__)


class ProcessingContext:
    """Command/query interface over one vehicle log.

    Published itineraries are immutable; a new ingestion replaces the whole store at
    once, and a failed ingestion leaves the previous state untouched.
    """

    def __init__(self, params: ItineraryParams | None = None) -> None:
        self.params = params or ItineraryParams()
        self._lock = threading.Lock()
        self._generation = 0
        self.reset()

    def reset(self) -> None:
        """Drop all data and the filter selection."""

        with self._lock:
            self._generation += 1
            self._records_by_date: Mapping[date, tuple[GPSRecord, ...]] = {}
            self._itineraries: Mapping[date, Itinerary] = {}
            self._stats = ProcessingStats()
            self._skipped: tuple[SkippedRow, ...] = ()
            self._filter = FilterState()

    # -- commands -----------------------------------------------------------------

    def begin_pass(self) -> int:
        """Start a processing pass; only the most recent pass may publish."""

        with self._lock:
            self._generation += 1
            return self._generation

    def publish(self, token: int, result: IngestResult) -> bool:
        """Install a pass result if it is still the latest pass.

        Returns:
            False (and leaves the store untouched) if a newer pass was started.
        """

        with self._lock:
            if token != self._generation:
                logger.info("Descartando resultado obsoleto (passe %s, atual %s)", token, self._generation)
                return False
            self._records_by_date = result.batch.records_by_date
            self._itineraries = dict(result.itineraries)
            self._stats = result.batch.stats
            self._skipped = result.batch.skipped
        logger.info(
            "Itinerários publicados: %s dia(s), %s registros válidos de %s",
            len(result.itineraries),
            result.batch.stats.valid,
            result.batch.stats.total,
        )
        return True

    def ingest(self, header: Sequence[str] | None, rows: Iterable[Sequence[str] | None]) -> ProcessingStats:
        """Process a full batch synchronously and publish it.

        Raises:
            MalformedInputError: Nothing is published in that case.
        """

        token = self.begin_pass()
        result = process_batch(header, rows, self.params)
        self.publish(token, result)
        return result.batch.stats

    def set_filter(self, selection: FilterState | Iterable[str] | None) -> FilterState:
        state = selection if isinstance(selection, FilterState) else FilterState.of(selection)
        self._filter = state
        return state

    # -- queries ------------------------------------------------------------------

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    @property
    def skipped(self) -> tuple[SkippedRow, ...]:
        return self._skipped

    @property
    def filter_state(self) -> FilterState:
        return self._filter

    @property
    def records_by_date(self) -> Mapping[date, tuple[GPSRecord, ...]]:
        return self._records_by_date

    def dates(self) -> list[date]:
        return sorted(self._itineraries)

    def get_itinerary(self, day: date) -> Itinerary:
        """Raises KeyError for a date without data."""

        return self._itineraries[day]

    def itineraries(self) -> list[Itinerary]:
        store = self._itineraries
        return [store[d] for d in sorted(store)]

    def get_visible(self, day: date) -> tuple[Segment, ...]:
        return visible_segments(self.get_itinerary(day), self._filter)

    def bairro_index(self) -> dict[str, int]:
        return bairro_index(self._records_by_date)

    def day_stats(self, day: date) -> DayStats:
        return day_stats(self.get_itinerary(day))

    def summary(self, top_n: int | None = None) -> SummaryStats:
        return summarize(self.itineraries(), top_n if top_n is not None else self.params.top_n)
