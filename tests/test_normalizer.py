from __future__ import annotations

from datetime import date

import pytest

from conftest import HEADER, log_rows
from itinerary_analyze.config import ItineraryParams
from itinerary_analyze.errors import MalformedInputError
from itinerary_analyze.normalizer import REASON_IGNORED, REASON_INVALID_GPS, normalize_rows, resolve_columns


def test_counts_and_grouping(params: ItineraryParams) -> None:
    batch = normalize_rows(HEADER, log_rows(), params)
    s = batch.stats
    assert (s.total, s.valid, s.ignored, s.invalid_gps) == (10, 8, 1, 1)
    assert s.total == s.valid + s.ignored + s.invalid_gps
    assert batch.dates == [date(2026, 10, 16), date(2026, 10, 17)]
    assert len(batch.records_by_date[date(2026, 10, 16)]) == 7
    assert batch.records_by_date[date(2026, 10, 16)][0].bairro == "Consolação"


def test_invalid_latitude_counts_as_invalid_gps_not_ignored(params: ItineraryParams) -> None:
    rows = [["2026-10-16 10:00:00", "200", "-46.63", "Rua X, Bairro A"]]
    batch = normalize_rows(None, rows, params)
    assert batch.stats.invalid_gps == 1
    assert batch.stats.ignored == 0
    assert batch.skipped[0].reason == REASON_INVALID_GPS
    assert batch.skipped[0].row_number == 1


def test_unparseable_timestamp_counts_as_ignored(params: ItineraryParams) -> None:
    rows = [["ontem de manhã", "-23.55", "-46.63", "Rua X, Bairro A"]]
    batch = normalize_rows(None, rows, params)
    assert batch.stats.ignored == 1
    assert batch.stats.invalid_gps == 0
    assert batch.skipped[0].reason == REASON_IGNORED


@pytest.mark.parametrize("lat", ["nan", "inf", "abc", "", "-90.0001"])
def test_bad_coordinates(params: ItineraryParams, lat: str) -> None:
    batch = normalize_rows(None, [["2026-10-16 10:00:00", lat, "-46.63", "x"]], params)
    assert batch.stats.invalid_gps == 1
    assert batch.records_by_date == {}


def test_unreadable_and_short_rows_are_ignored(params: ItineraryParams) -> None:
    rows = [None, ["2026-10-16 10:00:00", "-23.55"], ["2026-10-16 10:00:00", "-23.55", "-46.63", "Rua X, Lapa"]]
    batch = normalize_rows(None, rows, params)
    assert batch.stats.total == 3
    assert batch.stats.ignored == 2
    assert batch.stats.valid == 1


def test_records_sorted_within_date(params: ItineraryParams) -> None:
    rows = [
        ["2026-10-16 10:10:00", "-23.55", "-46.63", "c"],
        ["2026-10-16 10:00:00", "-23.55", "-46.63", "a"],
        ["2026-10-16 10:05:00", "-23.55", "-46.63", "b"],
    ]
    batch = normalize_rows(None, rows, params)
    labels = [r.location_label for r in batch.records_by_date[date(2026, 10, 16)]]
    assert labels == ["a", "b", "c"]


def test_date_uses_reporting_timezone(params: ItineraryParams) -> None:
    rows = [["2026-10-16T01:30:00Z", "-23.55", "-46.63", "x"]]
    batch = normalize_rows(None, rows, params)
    (rec,) = batch.records_by_date[date(2026, 10, 15)]
    assert rec.timestamp.hour == 22
    assert rec.timestamp.minute == 30


def test_decimal_comma_and_epoch_ms(params: ItineraryParams) -> None:
    # 1792155600000 ms = 2026-10-16 10:00:00 -03:00
    rows = [["1792155600000", "-23,55", "-46,63", "Rua X, Lapa"]]
    batch = normalize_rows(None, rows, params)
    (rec,) = batch.records_by_date[date(2026, 10, 16)]
    assert rec.latitude == -23.55
    assert rec.longitude == -46.63
    assert rec.timestamp.hour == 10


def test_header_aliases_are_case_and_accent_insensitive() -> None:
    cols = resolve_columns(["Placa", "Data/Hora", "Localização", "Latitude", "Longitude"])
    assert (cols.timestamp, cols.label, cols.latitude, cols.longitude) == (1, 2, 3, 4)
    assert cols.min_width == 5


@pytest.mark.parametrize("header", [[], ["", ""], ["data_hora", "latitude", "localizacao"]])
def test_malformed_header_is_fatal(params: ItineraryParams, header: list[str]) -> None:
    with pytest.raises(MalformedInputError):
        normalize_rows(header, log_rows(), params)


def test_normalize_bairro_flag() -> None:
    rows = [
        ["2026-10-16 10:00:00", "-23.55", "-46.63", "Rua X, Consolação"],
        ["2026-10-16 10:05:00", "-23.55", "-46.63", "Rua Y, CONSOLACAO"],
    ]
    batch = normalize_rows(None, rows, ItineraryParams(normalize_bairro=True))
    assert {r.bairro for r in batch.records_by_date[date(2026, 10, 16)]} == {"CONSOLACAO"}


def test_fall_back_hour_sorted_by_real_time() -> None:
    berlin = ItineraryParams(tz_name="Europe/Berlin")
    rows = [
        ["2024-10-27 02:10:00+01:00", "-23.55", "-46.63", "Rua X, Bairro A"],
        ["2024-10-27 02:50:00+02:00", "-23.55", "-46.63", "Rua X, Bairro A"],
    ]
    (records,) = normalize_rows(None, rows, berlin).records_by_date.values()
    # 02:50 CEST happens before the repeated 02:10 CET
    assert [r.row_number for r in records] == [2, 1]
    assert records[1].epoch_s - records[0].epoch_s == 1200
