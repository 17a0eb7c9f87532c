"""Bairro filter view and caller-side debouncing of filter toggles."""

from __future__ import annotations

from time import monotonic
from typing import Callable

from itinerary_analyze.models import FilterState, Itinerary, Segment


def visible_segments(itinerary: Itinerary, filter_state: FilterState) -> tuple[Segment, ...]:
    """Segments whose bairro is selected; all of them when the selection is empty.

    Never copies or mutates segments: the returned objects are those of the itinerary.
    """

    if filter_state.is_empty:
        return itinerary.segments
    selected = filter_state.selected_bairros
    return tuple(seg for seg in itinerary.segments if seg.bairro in selected)


class FilterDebouncer:
    """Coalesce bursts of filter changes.

    The UI calls submit() on every toggle and poll() on its refresh tick; poll() only
    hands back the latest selection once window_seconds passed without new submits.
    """

    def __init__(self, window_seconds: float = 0.15, clock: Callable[[], float] = monotonic) -> None:
        if window_seconds < 0:
            raise ValueError("window_seconds deve ser >= 0")
        self.window_seconds = window_seconds
        self._clock = clock
        self._pending: FilterState | None = None
        self._last_submit = 0.0

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def submit(self, selection) -> None:
        self._pending = selection if isinstance(selection, FilterState) else FilterState.of(selection)
        self._last_submit = self._clock()

    def poll(self) -> FilterState | None:
        if self._pending is None:
            return None
        if self._clock() - self._last_submit < self.window_seconds:
            return None
        return self.flush()

    def flush(self) -> FilterState | None:
        pending, self._pending = self._pending, None
        return pending
