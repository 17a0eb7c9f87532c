"""Row validation: raw tokenized rows -> typed GPS records grouped by date."""

from __future__ import annotations

import logging
import math
import unicodedata
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

from itinerary_analyze.bairro import BairroExtractor
from itinerary_analyze.config import ItineraryParams
from itinerary_analyze.errors import MalformedInputError
from itinerary_analyze.geo import is_valid_coordinate
from itinerary_analyze.models import GPSRecord, NormalizedBatch, ProcessingStats, SkippedRow
from itinerary_analyze.timeutils import parse_timestamp, tzinfo_from_name

logger = logging.getLogger(__name__)

REASON_IGNORED = "ignored"
REASON_INVALID_GPS = "invalid_gps"

COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "timestamp": ("timestamp", "data/hora", "data_hora", "datahora", "data hora", "data", "horario", "geotime"),
    "latitude": ("latitude", "lat"),
    "longitude": ("longitude", "lon", "lng", "long"),
    "label": ("location", "localizacao", "local", "endereco", "label", "place", "location_label"),
}


@dataclass(frozen=True, slots=True)
class ColumnMap:
    """Indices of the required columns inside a row."""

    timestamp: int = 0
    latitude: int = 1
    longitude: int = 2
    label: int = 3

    @property
    def min_width(self) -> int:
        return max(self.timestamp, self.latitude, self.longitude, self.label) + 1


def _fold(name: str) -> str:
    decomposed = unicodedata.normalize("NFKD", name)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).strip().lower()


def resolve_columns(header: Sequence[str] | None) -> ColumnMap:
    """Map header names to column indices.

    Args:
        header: Header row, or None to use the positional order
            (timestamp, latitude, longitude, label).

    Raises:
        MalformedInputError: If the header is empty or lacks a required column.
    """

    if header is None:
        return ColumnMap()
    folded = [_fold(h or "") for h in header]
    if not any(folded):
        raise MalformedInputError("Cabeçalho vazio: não há colunas para ler")

    found: dict[str, int] = {}
    for key, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in folded:
                found[key] = folded.index(alias)
                break

    missing = [key for key in COLUMN_ALIASES if key not in found]
    if missing:
        raise MalformedInputError(
            f"Colunas obrigatórias ausentes: {', '.join(missing)}. Colunas encontradas: {list(header)}"
        )
    return ColumnMap(**found)


def _parse_coordinate(value: str) -> float:
    s = value.strip()
    if "," in s and "." not in s:
        s = s.replace(",", ".")
    return float(s)


def normalize_rows(
    header: Sequence[str] | None,
    rows: Iterable[Sequence[str] | None],
    params: ItineraryParams,
) -> NormalizedBatch:
    """Validate rows and group the resulting records by calendar date.

    Args:
        header: Column names, or None for positional rows.
        rows: Tokenized rows. A None entry marks a row the file layer could not parse.
        params: Processing parameters (timezone, bairro rules).

    Returns:
        NormalizedBatch with date groups sorted ascending by timestamp.

    Raises:
        MalformedInputError: If the header is structurally unusable. Bad rows never raise.
    """

    cols = resolve_columns(header)
    tz = tzinfo_from_name(params.tz_name)
    extractor = BairroExtractor(params.bairro_rules, normalize=params.normalize_bairro)

    total = 0
    valid = 0
    ignored = 0
    invalid_gps = 0
    skipped: list[SkippedRow] = []
    groups: dict[date, list[GPSRecord]] = defaultdict(list)

    for row_number, row in enumerate(rows, start=1):
        total += 1
        if row is None or len(row) < cols.min_width:
            ignored += 1
            skipped.append(SkippedRow(row_number, REASON_IGNORED, "linha ilegível ou com colunas faltando"))
            continue

        try:
            ts = parse_timestamp(row[cols.timestamp], tz)
        except (ValueError, TypeError, OverflowError, OSError) as exc:
            ignored += 1
            skipped.append(SkippedRow(row_number, REASON_IGNORED, str(exc)))
            continue

        try:
            lat = _parse_coordinate(row[cols.latitude])
            lon = _parse_coordinate(row[cols.longitude])
        except (ValueError, TypeError, AttributeError):
            lat = lon = math.nan
        if not is_valid_coordinate(lat, lon):
            invalid_gps += 1
            skipped.append(
                SkippedRow(
                    row_number,
                    REASON_INVALID_GPS,
                    f"coordenada inválida: {row[cols.latitude]!r}, {row[cols.longitude]!r}",
                )
            )
            continue

        label = (row[cols.label] or "").strip()
        record = GPSRecord(
            timestamp=ts,
            latitude=lat,
            longitude=lon,
            location_label=label,
            bairro=extractor.extract(label),
            row_number=row_number,
        )
        valid += 1
        groups[record.day].append(record)

    if total == 0:
        logger.warning("Nenhuma linha de dados no lote")
    if ignored or invalid_gps:
        logger.warning(
            "%s de %s linhas descartadas (ignoradas=%s, GPS inválido=%s)",
            ignored + invalid_gps,
            total,
            ignored,
            invalid_gps,
        )

    records_by_date = {
        day: tuple(sorted(recs, key=lambda r: r.epoch_s)) for day, recs in sorted(groups.items())
    }
    stats = ProcessingStats(total=total, valid=valid, ignored=ignored, invalid_gps=invalid_gps)
    return NormalizedBatch(records_by_date=records_by_date, stats=stats, skipped=tuple(skipped))
