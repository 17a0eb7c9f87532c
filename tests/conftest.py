from __future__ import annotations

from datetime import datetime
from typing import Callable

import pytest
from zoneinfo import ZoneInfo

from itinerary_analyze.bairro import extract_bairro
from itinerary_analyze.config import ItineraryParams
from itinerary_analyze.models import GPSRecord, Segment, SegmentKind

TZ = ZoneInfo("America/Sao_Paulo")

# about 0.0449 degrees of latitude per 5 km
LAT0 = -23.5500
LON0 = -46.6300


def at(text: str) -> datetime:
    """'2026-10-16 10:00:00' in the reporting timezone."""

    return datetime.fromisoformat(text).replace(tzinfo=TZ)


@pytest.fixture
def params() -> ItineraryParams:
    return ItineraryParams()


@pytest.fixture
def make_record() -> Callable[..., GPSRecord]:
    def _make(ts: str, lat: float = LAT0, lon: float = LON0, label: str = "Rua X, Bairro A") -> GPSRecord:
        return GPSRecord(
            timestamp=at(ts),
            latitude=lat,
            longitude=lon,
            location_label=label,
            bairro=extract_bairro(label),
        )

    return _make


@pytest.fixture
def make_segment() -> Callable[..., Segment]:
    def _make(
        kind: SegmentKind,
        start: str,
        end: str,
        distance_km: float = 0.0,
        bairro: str = "Centro",
        start_location: str = "",
        end_location: str = "",
    ) -> Segment:
        return Segment(
            kind=kind,
            start_time=at(start),
            end_time=at(end),
            start_location=start_location or f"Rua {start}, {bairro}",
            end_location=end_location or f"Rua {end}, {bairro}",
            start_lat=LAT0,
            start_lon=LON0,
            end_lat=LAT0,
            end_lon=LON0,
            distance_km=distance_km,
            bairro=bairro,
        )

    return _make


HEADER = ["data_hora", "latitude", "longitude", "localizacao", "placa"]


def log_rows() -> list[list[str]]:
    """Two days: parked in Consolação, drive to Pinheiros, parked; next day a single fix."""

    return [
        ["16/10/2026 08:00:00", "-23.557700", "-46.660600", "Rua Augusta, 1500 - Consolação, São Paulo - SP", "ABC1D23"],
        ["16/10/2026 08:05:00", "-23.557710", "-46.660610", "Rua Augusta, 1500 - Consolação, São Paulo - SP", "ABC1D23"],
        ["16/10/2026 08:10:00", "-23.557690", "-46.660590", "Rua Augusta, 1500 - Consolação, São Paulo - SP", "ABC1D23"],
        ["16/10/2026 08:15:00", "-23.559000", "-46.670000", "Rua Oscar Freire, 900 - Jardins, São Paulo - SP", "ABC1D23"],
        ["16/10/2026 08:20:00", "-23.561400", "-46.683100", "Rua Teodoro Sampaio, 800 - Pinheiros, São Paulo - SP", "ABC1D23"],
        ["16/10/2026 08:30:00", "-23.561410", "-46.683110", "Rua Teodoro Sampaio, 800 - Pinheiros, São Paulo - SP", "ABC1D23"],
        ["16/10/2026 08:45:00", "-23.561400", "-46.683100", "Rua Teodoro Sampaio, 800 - Pinheiros, São Paulo - SP", "ABC1D23"],
        ["17/10/2026 09:00:00", "-23.564600", "-46.652700", "Av. Paulista, 1000 - Bela Vista, São Paulo - SP", "ABC1D23"],
        ["17/10/2026 09:01:00", "200", "-46.652700", "Av. Paulista, 1000 - Bela Vista, São Paulo - SP", "ABC1D23"],
        ["não é data", "-23.564600", "-46.652700", "Av. Paulista, 1000 - Bela Vista, São Paulo - SP", "ABC1D23"],
    ]
