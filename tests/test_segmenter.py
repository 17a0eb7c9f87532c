from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import LAT0, LON0, at
from itinerary_analyze.config import ItineraryParams
from itinerary_analyze.geo import haversine_km, path_length_km
from itinerary_analyze.models import SegmentKind
from itinerary_analyze.pipeline import process_batch
from itinerary_analyze.segmenter import classify_pair, cumulative_distances_km, segment_day

FIVE_KM_LAT = LAT0 + 0.04497


def test_haversine_known_distance() -> None:
    # one degree of latitude on a 6371 km sphere
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.195, abs=1e-3)
    assert haversine_km(LAT0, LON0, LAT0, LON0) == 0.0
    assert haversine_km(LAT0, LON0, FIVE_KM_LAT, LON0) == pytest.approx(5.0, abs=0.01)


def test_single_record_is_zero_duration_stop(make_record, params: ItineraryParams) -> None:
    (seg,) = segment_day([make_record("2026-10-16 10:00:00")], params)
    assert seg.kind is SegmentKind.STOP
    assert seg.duration_seconds == 0.0
    assert seg.distance_km == 0.0
    assert seg.bairro == "Bairro A"


def test_empty_day_rejected(params: ItineraryParams) -> None:
    with pytest.raises(ValueError):
        segment_day([], params)


def test_stop_then_movement_boundary_at_departure_fix(make_record, params: ItineraryParams) -> None:
    records = [
        make_record("2026-10-16 10:00:00"),
        make_record("2026-10-16 10:02:00"),
        make_record("2026-10-16 10:10:00", lat=FIVE_KM_LAT, label="Rua Y, Bairro B"),
    ]
    stop, move = segment_day(records, params)

    assert stop.kind is SegmentKind.STOP
    assert (stop.start_time, stop.end_time) == (at("2026-10-16 10:00:00"), at("2026-10-16 10:02:00"))
    assert stop.bairro == "Bairro A"

    assert move.kind is SegmentKind.MOVEMENT
    assert (move.start_time, move.end_time) == (at("2026-10-16 10:02:00"), at("2026-10-16 10:10:00"))
    assert move.bairro == "Bairro A"
    assert move.end_location == "Rua Y, Bairro B"
    assert move.distance_km == pytest.approx(5.0, abs=0.01)


def test_zero_elapsed_time_uses_distance_only(make_record, params: ItineraryParams) -> None:
    a = make_record("2026-10-16 10:00:00")
    far = make_record("2026-10-16 10:00:00", lat=LAT0 + 0.01)  # ~1.1 km
    near = make_record("2026-10-16 10:00:00", lat=LAT0 + 0.001)  # ~110 m
    assert classify_pair(a, far, params) is SegmentKind.MOVEMENT
    assert classify_pair(a, near, params) is SegmentKind.STOP


def test_speed_rule(make_record, params: ItineraryParams) -> None:
    a = make_record("2026-10-16 10:00:00")
    # ~330 m in 1 minute = ~20 km/h, below the distance floor but fast
    fast = make_record("2026-10-16 10:01:00", lat=LAT0 + 0.003)
    # ~330 m in 1 hour = ~0.3 km/h
    slow = make_record("2026-10-16 11:00:00", lat=LAT0 + 0.003)
    assert classify_pair(a, fast, params) is SegmentKind.MOVEMENT
    assert classify_pair(a, slow, params) is SegmentKind.STOP


def test_segments_contiguous_and_cover_the_day(make_record, params: ItineraryParams) -> None:
    records = [make_record(f"2026-10-16 10:{m:02d}:00") for m in range(0, 10, 2)]
    records += [make_record(f"2026-10-16 10:{10 + m}:00", lat=LAT0 + 0.01 * (m + 1)) for m in range(5)]
    records += [make_record(f"2026-10-16 10:{20 + m}:00", lat=LAT0 + 0.05) for m in range(3)]
    segments = segment_day(records, params)

    assert segments[0].start_time == records[0].timestamp
    assert segments[-1].end_time == records[-1].timestamp
    for prev, cur in zip(segments, segments[1:]):
        assert prev.end_time == cur.start_time
        assert prev.kind is not cur.kind


def test_movement_distance_accumulates_haversine(make_record, params: ItineraryParams) -> None:
    records = [
        make_record("2026-10-16 10:00:00"),
        make_record("2026-10-16 10:01:00", lat=LAT0 + 0.01),
        make_record("2026-10-16 10:02:00", lat=LAT0 + 0.02, lon=LON0 + 0.01),
        make_record("2026-10-16 10:03:00", lat=LAT0 + 0.01, lon=LON0 + 0.02),
    ]
    (move,) = segment_day(records, params)
    assert move.kind is SegmentKind.MOVEMENT
    expected = path_length_km([(r.latitude, r.longitude) for r in records])
    assert move.distance_km == pytest.approx(expected)
    # distance follows the path, not the straight line
    assert move.distance_km > haversine_km(LAT0, LON0, LAT0 + 0.01, LON0 + 0.02)


def test_cumulative_distance_non_negative_and_monotonic(make_record) -> None:
    records = [
        make_record(f"2026-10-16 10:{i:02d}:00", lat=LAT0 + 0.003 * ((i * 7) % 5), lon=LON0 - 0.002 * (i % 3))
        for i in range(20)
    ]
    dist = cumulative_distances_km(records)
    assert dist[0] == 0.0
    assert all(d >= 0 for d in dist)
    assert all(b >= a for a, b in zip(dist, dist[1:]))


def test_durations_and_speeds_across_dst_shifts() -> None:
    berlin = ItineraryParams(tz_name="Europe/Berlin")

    # spring forward: 01:50 CET to 03:10 CEST is 20 real minutes
    parked = [
        ["2024-03-31 01:50:00", str(LAT0), str(LON0), "Rua X, Bairro A"],
        ["2024-03-31 03:10:00", str(LAT0), str(LON0), "Rua X, Bairro A"],
    ]
    (itinerary,) = process_batch(None, parked, berlin).itineraries.values()
    (stop,) = itinerary.segments
    assert stop.kind is SegmentKind.STOP
    assert stop.duration_seconds == 1200.0

    # fall back: 5 km between 02:50 CEST and the repeated 02:10 CET
    driving = [
        ["2024-10-27 02:10:00+01:00", str(FIVE_KM_LAT), str(LON0), "Rua Y, Bairro B"],
        ["2024-10-27 02:50:00+02:00", str(LAT0), str(LON0), "Rua X, Bairro A"],
    ]
    (itinerary,) = process_batch(None, driving, berlin).itineraries.values()
    (move,) = itinerary.segments
    assert move.kind is SegmentKind.MOVEMENT
    assert move.duration_seconds == 1200.0
    assert move.start_time.utcoffset() == timedelta(hours=2)
    assert move.end_time.utcoffset() == timedelta(hours=1)
    assert move.bairro == "Bairro A"
