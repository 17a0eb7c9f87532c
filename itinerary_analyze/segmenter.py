"""Raw stop/movement segmentation of one day's sorted fixes."""

from __future__ import annotations

from typing import Sequence

from itinerary_analyze.config import ItineraryParams
from itinerary_analyze.geo import haversine_km, path_length_km
from itinerary_analyze.models import GPSRecord, Segment, SegmentKind


def classify_pair(a: GPSRecord, b: GPSRecord, params: ItineraryParams) -> SegmentKind:
    """Classify the interval between two consecutive fixes.

    The pair is moving if the displacement exceeds stationary_max_distance_km, or if
    time elapsed and the implied speed exceeds stationary_max_speed_kmh. With zero
    elapsed time only the distance rule applies.
    """

    distance_km = haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)
    if distance_km > params.stationary_max_distance_km:
        return SegmentKind.MOVEMENT
    elapsed_s = b.epoch_s - a.epoch_s
    if elapsed_s <= 0:
        return SegmentKind.STOP
    speed_kmh = distance_km / (elapsed_s / 3600.0)
    if speed_kmh > params.stationary_max_speed_kmh:
        return SegmentKind.MOVEMENT
    return SegmentKind.STOP


def cumulative_distances_km(records: Sequence[GPSRecord]) -> list[float]:
    """Running haversine distance from the first fix, one value per fix."""

    out: list[float] = []
    total = 0.0
    prev: GPSRecord | None = None
    for rec in records:
        if prev is not None:
            total += haversine_km(prev.latitude, prev.longitude, rec.latitude, rec.longitude)
        out.append(total)
        prev = rec
    return out


def _make_segment(kind: SegmentKind, run: Sequence[GPSRecord]) -> Segment:
    first = run[0]
    last = run[-1]
    distance_km = 0.0
    if kind is SegmentKind.MOVEMENT:
        distance_km = path_length_km([(r.latitude, r.longitude) for r in run])
    return Segment(
        kind=kind,
        start_time=first.timestamp,
        end_time=last.timestamp,
        start_location=first.location_label,
        end_location=last.location_label,
        start_lat=first.latitude,
        start_lon=first.longitude,
        end_lat=last.latitude,
        end_lon=last.longitude,
        distance_km=distance_km,
        bairro=first.bairro,
    )


def segment_day(records: Sequence[GPSRecord], params: ItineraryParams) -> list[Segment]:
    """Split one date's fixes into alternating raw Stop/Movement segments.

    Boundary convention: consecutive segments share their boundary fix. A Stop ends at
    its last stationary fix and the following Movement starts at that same fix, so the
    segments are contiguous and cover [first fix, last fix].

    Args:
        records: Fixes of a single date, sorted ascending by timestamp.
        params: Thresholds.

    Returns:
        Raw (unrefined) segments.

    Raises:
        ValueError: If records is empty.
    """

    if not records:
        raise ValueError("segment_day precisa de ao menos um registro")
    if len(records) == 1:
        return [_make_segment(SegmentKind.STOP, records)]

    segments: list[Segment] = []
    run_kind = classify_pair(records[0], records[1], params)
    run_start = 0
    for i in range(1, len(records) - 1):
        kind = classify_pair(records[i], records[i + 1], params)
        if kind is not run_kind:
            # run covers fixes [run_start, i]; fix i opens the next run
            segments.append(_make_segment(run_kind, records[run_start : i + 1]))
            run_kind = kind
            run_start = i
    segments.append(_make_segment(run_kind, records[run_start:]))
    return segments
