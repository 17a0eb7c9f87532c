"""Itinerary refinement: merge same-kind neighbors and demote short movements."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from typing import Sequence

from itinerary_analyze.config import ItineraryParams
from itinerary_analyze.models import GPSRecord, Itinerary, Segment, SegmentKind
from itinerary_analyze.segmenter import segment_day

logger = logging.getLogger(__name__)

MAX_REFINE_ITERATIONS = 5


def _join(a: Segment, b: Segment) -> Segment:
    return replace(
        a,
        end_time=b.end_time if b.end_epoch_s >= a.end_epoch_s else a.end_time,
        end_location=b.end_location,
        end_lat=b.end_lat,
        end_lon=b.end_lon,
        distance_km=a.distance_km + b.distance_km,
    )


def merge_adjacent(segments: Sequence[Segment]) -> list[Segment]:
    """Collapse every run of adjacent same-kind segments into one.

    The merged segment keeps the start attributes (and bairro) of the first segment of
    the run and the end attributes of the last. Idempotent.
    """

    merged: list[Segment] = []
    for seg in segments:
        if merged and merged[-1].kind is seg.kind:
            merged[-1] = _join(merged[-1], seg)
        else:
            merged.append(seg)
    return merged


def demote_short_movements(segments: Sequence[Segment], params: ItineraryParams) -> tuple[list[Segment], bool]:
    """Reclassify movements that are too short or too close as stops (parked jitter).

    Returns:
        (segments, changed)
    """

    out: list[Segment] = []
    changed = False
    for seg in segments:
        if seg.kind is SegmentKind.MOVEMENT and (
            seg.duration_seconds < params.min_movement_duration_seconds
            or seg.distance_km < params.min_movement_distance_km
        ):
            out.append(replace(seg, kind=SegmentKind.STOP, distance_km=0.0))
            changed = True
        else:
            out.append(seg)
    return out, changed


def refine(segments: Sequence[Segment], params: ItineraryParams) -> list[Segment]:
    """Run merge + demote until demotion no longer changes anything.

    Raises:
        AssertionError: If the fixed point is not reached within MAX_REFINE_ITERATIONS.
    """

    current = list(segments)
    for iteration in range(1, MAX_REFINE_ITERATIONS + 1):
        current = merge_adjacent(current)
        current, changed = demote_short_movements(current, params)
        if not changed:
            logger.debug("Refinamento convergiu em %s iteração(ões)", iteration)
            return current
    raise AssertionError(f"Refinamento não convergiu em {MAX_REFINE_ITERATIONS} iterações")


def check_itinerary(itinerary: Itinerary) -> None:
    """Assert the output invariants: strict kind alternation and time contiguity."""

    segs = itinerary.segments
    for seg in segs:
        if seg.end_epoch_s < seg.start_epoch_s:
            raise AssertionError(f"Segmento com fim antes do início: {seg}")
    for prev, cur in zip(segs, segs[1:]):
        if prev.kind is cur.kind:
            raise AssertionError(f"Segmentos vizinhos do mesmo tipo em {itinerary.day}: {prev.kind.value}")
        if prev.end_epoch_s != cur.start_epoch_s:
            raise AssertionError(
                f"Lacuna/sobreposição em {itinerary.day}: {prev.end_time.isoformat()} != {cur.start_time.isoformat()}"
            )


def build_itinerary(day: date, records: Sequence[GPSRecord], params: ItineraryParams) -> Itinerary:
    """Segment and refine one date's sorted records into its final itinerary."""

    itinerary = Itinerary(day=day, segments=tuple(refine(segment_day(records, params), params)))
    check_itinerary(itinerary)
    return itinerary
