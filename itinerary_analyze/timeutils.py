"""Time parsing and formatting utilities."""

from __future__ import annotations

from datetime import datetime, tzinfo

from zoneinfo import ZoneInfo


_DAY_FIRST_FORMATS = (
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d-%m-%Y %H:%M:%S",
    "%d-%m-%Y %H:%M",
)


def tzinfo_from_name(tz_name: str) -> tzinfo:
    """Create tzinfo from an IANA timezone name.

    Args:
        tz_name: Timezone name like "America/Sao_Paulo".

    Returns:
        tzinfo instance.

    Raises:
        ValueError: If timezone name is invalid on this system.
    """

    try:
        return ZoneInfo(tz_name)
    except Exception as exc:  # ZoneInfo raises KeyError / ZoneInfoNotFoundError (platform dependent)
        raise ValueError(f"Fuso horário inválido: {tz_name!r}. Exemplo: America/Sao_Paulo") from exc


def dt_from_epoch_ms(epoch_ms: int, tz: tzinfo) -> datetime:
    """Convert epoch milliseconds to a timezone-aware datetime in tz."""

    return datetime.fromtimestamp(epoch_ms / 1000.0, tz=tz)


def parse_timestamp(text: str, tz: tzinfo) -> datetime:
    """Parse a log timestamp to a timezone-aware datetime in tz.

    Supported formats:
      - "YYYY-MM-DD HH:MM:SS" / "YYYY-MM-DDTHH:MM:SS", optional offset like "-03:00"
      - "DD/MM/YYYY HH:MM[:SS]" and "DD-MM-YYYY HH:MM[:SS]"
      - epoch seconds (10 digits) or epoch milliseconds (13 digits)

    Naive values are taken as local time in tz; aware values are converted to tz.
    Sub-second precision is dropped.

    Raises:
        ValueError: If the text matches none of the formats.
    """

    s = (text or "").strip()
    if not s:
        raise ValueError("Horário vazio")

    if s.isdigit():
        if len(s) == 13:
            return dt_from_epoch_ms(int(s), tz).replace(microsecond=0)
        if len(s) == 10:
            return datetime.fromtimestamp(int(s), tz=tz)
        raise ValueError(f"Horário numérico não reconhecido: {text!r}")

    dt: datetime | None = None
    if s[:4].isdigit() and len(s) >= 10 and s[4] == "-":
        try:
            dt = datetime.fromisoformat(s.replace("T", " ").replace("Z", "+00:00"))
        except ValueError:
            dt = None
    if dt is None:
        for fmt in _DAY_FIRST_FORMATS:
            try:
                dt = datetime.strptime(s, fmt)
                break
            except ValueError:
                continue
    if dt is None:
        raise ValueError(f"Não foi possível interpretar o horário: {text!r}. Formato sugerido: 2026-10-16 09:30:00")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    else:
        dt = dt.astimezone(tz)
    return dt.replace(microsecond=0)


def format_hhmmss(seconds: float) -> str:
    s = int(round(max(0.0, seconds)))
    h = s // 3600
    m = (s % 3600) // 60
    sec = s % 60
    return f"{h:02d}:{m:02d}:{sec:02d}"
