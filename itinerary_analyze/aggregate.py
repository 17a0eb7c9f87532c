"""Per-day and cross-date statistics over refined itineraries."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping, Sequence

from itinerary_analyze.models import UNIDENTIFIED_BAIRRO, GPSRecord, Itinerary, SegmentKind
from itinerary_analyze.timeutils import format_hhmmss


def bairro_index(records_by_date: Mapping[date, Sequence[GPSRecord]]) -> dict[str, int]:
    """Count records per bairro across the full record set.

    Returns:
        Mapping ordered by count (desc) then name (asc). Counts sum to the number of
        valid records.
    """

    counts: Counter[str] = Counter()
    for records in records_by_date.values():
        counts.update(r.bairro for r in records)
    return dict(sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])))


@dataclass(frozen=True, slots=True)
class DayStats:
    """Totals for one date's itinerary."""

    day: date
    movement_seconds: float
    stop_seconds: float
    distance_km: float
    stop_count: int
    movement_count: int
    dominant_bairro: str

    @property
    def movement_hhmmss(self) -> str:
        return format_hhmmss(self.movement_seconds)

    @property
    def stop_hhmmss(self) -> str:
        return format_hhmmss(self.stop_seconds)

    def to_dict(self) -> dict[str, object]:
        return {
            "day": self.day.isoformat(),
            "movement_seconds": self.movement_seconds,
            "stop_seconds": self.stop_seconds,
            "distance_km": round(self.distance_km, 3),
            "stop_count": self.stop_count,
            "movement_count": self.movement_count,
            "dominant_bairro": self.dominant_bairro,
        }


def day_stats(itinerary: Itinerary) -> DayStats:
    """Compute totals for one itinerary.

    The dominant bairro is the one with the most stop time; ties go to the bairro
    stopped at first.
    """

    movement_s = 0.0
    stop_s = 0.0
    distance = 0.0
    stops = 0
    movements = 0
    stop_time_by_bairro: dict[str, float] = {}
    for seg in itinerary.segments:
        if seg.kind is SegmentKind.STOP:
            stops += 1
            stop_s += seg.duration_seconds
            stop_time_by_bairro[seg.bairro] = stop_time_by_bairro.get(seg.bairro, 0.0) + seg.duration_seconds
        else:
            movements += 1
            movement_s += seg.duration_seconds
            distance += seg.distance_km

    dominant = UNIDENTIFIED_BAIRRO
    best = -1.0
    for name, seconds in stop_time_by_bairro.items():
        if seconds > best:
            dominant, best = name, seconds

    return DayStats(
        day=itinerary.day,
        movement_seconds=movement_s,
        stop_seconds=stop_s,
        distance_km=distance,
        stop_count=stops,
        movement_count=movements,
        dominant_bairro=dominant,
    )


def top_bairros(itineraries: Iterable[Itinerary], n: int) -> list[tuple[str, int]]:
    """Rank bairros by number of visits (Stop segments).

    Itineraries are read in date order; ties keep first-encounter order.
    """

    counts: dict[str, int] = {}
    for itinerary in sorted(itineraries, key=lambda it: it.day):
        for seg in itinerary.segments:
            if seg.kind is SegmentKind.STOP:
                counts[seg.bairro] = counts.get(seg.bairro, 0) + 1
    # sorted() is stable and dict preserves insertion (first-encounter) order
    ranked = sorted(counts.items(), key=lambda kv: -kv[1])
    return ranked[: max(0, n)]


@dataclass(frozen=True, slots=True)
class SummaryStats:
    """Cross-date summary."""

    days: int
    movement_seconds: float
    stop_seconds: float
    distance_km: float
    per_day: tuple[DayStats, ...] = ()
    top_bairros: tuple[tuple[str, int], ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, object]:
        return {
            "days": self.days,
            "movement_seconds": self.movement_seconds,
            "stop_seconds": self.stop_seconds,
            "distance_km": round(self.distance_km, 3),
            "per_day": [d.to_dict() for d in self.per_day],
            "top_bairros": [list(t) for t in self.top_bairros],
        }


def summarize(itineraries: Iterable[Itinerary], n: int) -> SummaryStats:
    """Aggregate every itinerary into a SummaryStats bundle."""

    its = sorted(itineraries, key=lambda it: it.day)
    per_day = tuple(day_stats(it) for it in its)
    return SummaryStats(
        days=len(per_day),
        movement_seconds=sum(d.movement_seconds for d in per_day),
        stop_seconds=sum(d.stop_seconds for d in per_day),
        distance_km=sum(d.distance_km for d in per_day),
        per_day=per_day,
        top_bairros=tuple(top_bairros(its, n)),
    )
