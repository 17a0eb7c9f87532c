"""Data models for GPS records, itinerary segments and processing stats."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Final, Mapping, Sequence


DEFAULT_TZ: Final[str] = "America/Sao_Paulo"

UNIDENTIFIED_BAIRRO: Final[str] = "Não identificado"


@dataclass(frozen=True, slots=True)
class GPSRecord:
    """A single validated GPS fix.

    Attributes:
        timestamp: Timezone-aware datetime in the reporting timezone (seconds precision).
        latitude: Latitude in decimal degrees.
        longitude: Longitude in decimal degrees.
        location_label: Raw free-text location as exported by the tracker.
        bairro: Neighborhood parsed from the label, or UNIDENTIFIED_BAIRRO.
        row_number: 1-based data row number in the source batch.
    """

    timestamp: datetime
    latitude: float
    longitude: float
    location_label: str
    bairro: str = UNIDENTIFIED_BAIRRO
    row_number: int = 0

    @property
    def day(self) -> date:
        """Calendar date of the fix in the reporting timezone."""

        return self.timestamp.date()

    @property
    def epoch_s(self) -> float:
        """POSIX seconds of the fix; ordering and elapsed time use this, not wall-clock."""

        return self.timestamp.timestamp()


@dataclass(frozen=True, slots=True)
class ProcessingStats:
    """Row counters for one ingestion batch."""

    total: int = 0
    valid: int = 0
    ignored: int = 0
    invalid_gps: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "valid": self.valid,
            "ignored": self.ignored,
            "invalid_gps": self.invalid_gps,
        }


@dataclass(frozen=True, slots=True)
class SkippedRow:
    """A row rejected during normalization.

    reason is "ignored" (unreadable row or timestamp) or "invalid_gps".
    """

    row_number: int
    reason: str
    detail: str


class SegmentKind(str, Enum):
    STOP = "stop"
    MOVEMENT = "movement"


@dataclass(frozen=True, slots=True)
class Segment:
    """A continuous time interval classified as Stop or Movement.

    Note:
        Location attributes of the start come from the first fix of the interval and
        those of the end from the last fix. The bairro is always the start bairro.
    """

    kind: SegmentKind
    start_time: datetime
    end_time: datetime
    start_location: str
    end_location: str
    start_lat: float
    start_lon: float
    end_lat: float
    end_lon: float
    distance_km: float
    bairro: str

    @property
    def start_epoch_s(self) -> float:
        return self.start_time.timestamp()

    @property
    def end_epoch_s(self) -> float:
        return self.end_time.timestamp()

    @property
    def duration_seconds(self) -> float:
        """Elapsed seconds, measured on POSIX time so DST shifts do not count."""

        return max(0.0, self.end_epoch_s - self.start_epoch_s)

    @property
    def is_stop(self) -> bool:
        return self.kind is SegmentKind.STOP

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "start_time": self.start_time.isoformat(sep=" "),
            "end_time": self.end_time.isoformat(sep=" "),
            "duration_seconds": self.duration_seconds,
            "start_location": self.start_location,
            "end_location": self.end_location,
            "start_lat": self.start_lat,
            "start_lon": self.start_lon,
            "end_lat": self.end_lat,
            "end_lon": self.end_lon,
            "distance_km": self.distance_km,
            "bairro": self.bairro,
        }


@dataclass(frozen=True, slots=True)
class Itinerary:
    """Refined, ordered segments for exactly one calendar date."""

    day: date
    segments: tuple[Segment, ...] = ()

    @property
    def start_time(self) -> datetime | None:
        return self.segments[0].start_time if self.segments else None

    @property
    def end_time(self) -> datetime | None:
        return self.segments[-1].end_time if self.segments else None

    def __len__(self) -> int:
        return len(self.segments)


@dataclass(frozen=True, slots=True)
class FilterState:
    """Bairros currently selected as visible. Empty means no filter."""

    selected_bairros: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, selection: Sequence[str] | frozenset[str] | set[str] | None) -> "FilterState":
        if isinstance(selection, str):
            raise TypeError(f"Seleção de bairros deve ser uma coleção de nomes, recebido texto: {selection!r}")
        return cls(selected_bairros=frozenset(selection or ()))

    @property
    def is_empty(self) -> bool:
        return not self.selected_bairros

    def to_dict(self) -> dict[str, list[str]]:
        return {"selected_bairros": sorted(self.selected_bairros)}

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "FilterState":
        raw = data.get("selected_bairros") or []
        if isinstance(raw, str) or not isinstance(raw, (list, tuple, set, frozenset)):
            raise ValueError(f"selected_bairros deve ser uma lista, recebido: {raw!r}")
        return cls(selected_bairros=frozenset(str(x) for x in raw))


@dataclass(frozen=True, slots=True)
class NormalizedBatch:
    """Output of the record normalizer."""

    records_by_date: Mapping[date, tuple[GPSRecord, ...]]
    stats: ProcessingStats
    skipped: tuple[SkippedRow, ...] = ()

    @property
    def dates(self) -> list[date]:
        return sorted(self.records_by_date)
