"""Processing parameters and their loading/validation."""

from __future__ import annotations

import math
import re
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from itinerary_analyze.bairro import DEFAULT_BAIRRO_RULES, BairroRule, compile_rules
from itinerary_analyze.errors import ConfigurationError
from itinerary_analyze.models import DEFAULT_TZ
from itinerary_analyze.timeutils import tzinfo_from_name


@dataclass(frozen=True, slots=True)
class ItineraryParams:
    """Parameters controlling normalization, segmentation and refinement.

    Defaults:
        tz_name: reporting timezone used to assign each fix to a calendar date.
        stationary_max_speed_kmh: a pair of fixes implying a faster speed is "moving".
        stationary_max_distance_km: a pair of fixes farther apart than this is "moving",
            whatever the elapsed time (also the only rule for identical timestamps).
        min_movement_duration_seconds / min_movement_distance_km: movements shorter or
            closer than these are GPS jitter while parked and are demoted to stops.
        bairro_rules: ranked extraction rules, first match wins.
        normalize_bairro: fold case/diacritics of extracted bairros before counting.
        top_n: size of the cross-date bairro ranking.
        max_file_bytes: upload ceiling, enforced by the file layer only.
    """

    tz_name: str = DEFAULT_TZ
    stationary_max_speed_kmh: float = 3.0
    stationary_max_distance_km: float = 0.5
    min_movement_duration_seconds: float = 120.0
    min_movement_distance_km: float = 0.2
    bairro_rules: tuple[BairroRule, ...] = DEFAULT_BAIRRO_RULES
    normalize_bairro: bool = False
    top_n: int = 5
    max_file_bytes: int = 20 * 1024 * 1024

    def __post_init__(self) -> None:
        try:
            tzinfo_from_name(self.tz_name)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc

        for name in (
            "stationary_max_speed_kmh",
            "stationary_max_distance_km",
            "min_movement_duration_seconds",
            "min_movement_distance_km",
        ):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} deve ser numérico, recebido: {value!r}")
            if not math.isfinite(value) or value < 0:
                raise ConfigurationError(f"{name} deve ser um número finito >= 0, recebido: {value!r}")

        if isinstance(self.top_n, bool) or not isinstance(self.top_n, int) or self.top_n < 1:
            raise ConfigurationError(f"top_n deve ser inteiro >= 1, recebido: {self.top_n!r}")
        if isinstance(self.max_file_bytes, bool) or not isinstance(self.max_file_bytes, int) or self.max_file_bytes < 1:
            raise ConfigurationError(f"max_file_bytes deve ser inteiro >= 1, recebido: {self.max_file_bytes!r}")

        if not self.bairro_rules:
            raise ConfigurationError("bairro_rules não pode ser vazio")
        try:
            compile_rules(self.bairro_rules)
        except (re.error, ValueError) as exc:
            raise ConfigurationError(f"Regra de bairro inválida: {exc}") from exc


_PARAM_NAMES = frozenset(f.name for f in fields(ItineraryParams))


def _rule_from_mapping(raw: Any) -> BairroRule:
    if not isinstance(raw, Mapping) or "pattern" not in raw:
        raise ConfigurationError(f"Regra de bairro precisa de 'pattern': {raw!r}")
    try:
        return BairroRule(
            pattern=str(raw["pattern"]),
            group=int(raw.get("group", 1)),
            name=str(raw.get("name", "")),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Regra de bairro inválida: {raw!r}") from exc


def params_from_mapping(data: Mapping[str, Any], base: ItineraryParams | None = None) -> ItineraryParams:
    """Build params from a plain mapping, starting from base (or the defaults).

    Keys equal the ItineraryParams field names; None values are ignored so CLI
    flags left unset do not override file values.

    Raises:
        ConfigurationError: On unknown keys or invalid values.
    """

    unknown = sorted(set(data) - _PARAM_NAMES)
    if unknown:
        raise ConfigurationError(f"Parâmetros desconhecidos: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    if base is not None:
        values = {name: getattr(base, name) for name in _PARAM_NAMES}
    for key, value in data.items():
        if value is None:
            continue
        if key == "bairro_rules":
            value = tuple(r if isinstance(r, BairroRule) else _rule_from_mapping(r) for r in value)
        values[key] = value
    try:
        return ItineraryParams(**values)
    except TypeError as exc:
        raise ConfigurationError(str(exc)) from exc


def load_params(path: str | Path, base: ItineraryParams | None = None) -> ItineraryParams:
    """Load params from a TOML file.

    Example:
        tz_name = "America/Sao_Paulo"
        min_movement_duration_seconds = 60

        [[bairro_rules]]
        pattern = "bairro\\\\s*:\\\\s*([^,]+)"
        group = 1
    """

    p = Path(path)
    try:
        with p.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Arquivo de configuração não encontrado: {str(p)!r}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Arquivo de configuração inválido: {exc}") from exc
    return params_from_mapping(data, base=base)
