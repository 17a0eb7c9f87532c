"""CSV input/output for tracker log exports and itinerary reports."""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Iterable

from itinerary_analyze.errors import MalformedInputError
from itinerary_analyze.models import Itinerary
from itinerary_analyze.timeutils import format_hhmmss

logger = logging.getLogger(__name__)


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def parse_rows(text: str) -> tuple[list[str], list[list[str] | None]]:
    """Tokenize CSV text into (header, rows).

    The delimiter is "," or ";" (Brazilian exports often use ";"), whichever occurs
    more often in the first line.
    Blank lines are dropped.

    Raises:
        MalformedInputError: If there is no header line.
    """

    first_line = text.split("\n", 1)[0]
    delimiter = ";" if first_line.count(";") > first_line.count(",") else ","
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    header: list[str] | None = None
    rows: list[list[str] | None] = []
    for row in reader:
        if not row or not any(cell.strip() for cell in row):
            continue
        if header is None:
            header = [cell.strip() for cell in row]
            continue
        rows.append(row)
    if header is None:
        raise MalformedInputError("Arquivo vazio: cabeçalho ausente")
    return header, rows


def read_rows_bytes(data: bytes, max_bytes: int | None = None) -> tuple[list[str], list[list[str] | None]]:
    """Tokenize an uploaded file, enforcing the size ceiling."""

    if max_bytes is not None and len(data) > max_bytes:
        raise MalformedInputError(f"Arquivo excede o limite de {max_bytes} bytes ({len(data)} bytes)")
    return parse_rows(_decode(data))


def read_rows(csv_path: str | Path, max_bytes: int | None = None) -> tuple[list[str], list[list[str] | None]]:
    """Read a tracker log CSV from disk.

    Args:
        csv_path: Path to the exported CSV.
        max_bytes: Optional size ceiling.

    Returns:
        (header, rows)
    """

    p = Path(csv_path)
    if max_bytes is not None and p.stat().st_size > max_bytes:
        raise MalformedInputError(f"Arquivo excede o limite de {max_bytes} bytes: {str(p)!r}")
    header, rows = read_rows_bytes(p.read_bytes())
    logger.debug("Lidas %s linhas de %s", len(rows), p)
    return header, rows


ITINERARY_FIELDNAMES = [
    "date",
    "seq",
    "kind",
    "start_time",
    "end_time",
    "duration_seconds",
    "duration_hhmmss",
    "distance_km",
    "bairro",
    "start_location",
    "end_location",
]


def write_itinerary_csv(itineraries: Iterable[Itinerary], out_path: str | Path, bairros: frozenset[str] | None = None) -> int:
    """Write itineraries to CSV, optionally only segments in the given bairros.

    Returns:
        Number of segment rows written.
    """

    p = Path(out_path)
    written = 0
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=ITINERARY_FIELDNAMES)
        w.writeheader()
        for it in itineraries:
            for seq, seg in enumerate(it.segments, start=1):
                if bairros and seg.bairro not in bairros:
                    continue
                w.writerow(
                    {
                        "date": it.day.isoformat(),
                        "seq": seq,
                        "kind": seg.kind.value,
                        "start_time": seg.start_time.isoformat(sep=" "),
                        "end_time": seg.end_time.isoformat(sep=" "),
                        "duration_seconds": f"{seg.duration_seconds:.0f}",
                        "duration_hhmmss": format_hhmmss(seg.duration_seconds),
                        "distance_km": f"{seg.distance_km:.3f}",
                        "bairro": seg.bairro,
                        "start_location": seg.start_location,
                        "end_location": seg.end_location,
                    }
                )
                written += 1
    return written
