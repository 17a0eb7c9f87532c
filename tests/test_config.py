from __future__ import annotations

from pathlib import Path

import pytest

from itinerary_analyze.bairro import DEFAULT_BAIRRO_RULES, BairroRule
from itinerary_analyze.config import ItineraryParams, load_params, params_from_mapping
from itinerary_analyze.errors import ConfigurationError


def test_defaults() -> None:
    p = ItineraryParams()
    assert p.tz_name == "America/Sao_Paulo"
    assert p.stationary_max_speed_kmh == 3.0
    assert p.stationary_max_distance_km == 0.5
    assert p.min_movement_duration_seconds == 120.0
    assert p.min_movement_distance_km == 0.2
    assert p.bairro_rules == DEFAULT_BAIRRO_RULES
    assert p.normalize_bairro is False
    assert p.top_n == 5


@pytest.mark.parametrize(
    "kwargs",
    [
        {"min_movement_duration_seconds": -1},
        {"stationary_max_speed_kmh": float("nan")},
        {"stationary_max_distance_km": float("inf")},
        {"min_movement_distance_km": "0.2"},
        {"top_n": 0},
        {"tz_name": "Marte/Olympus"},
        {"bairro_rules": ()},
        {"bairro_rules": (BairroRule("([unclosed"),)},
        {"max_file_bytes": 0},
    ],
)
def test_invalid_values_rejected(kwargs: dict[str, object]) -> None:
    with pytest.raises(ConfigurationError):
        ItineraryParams(**kwargs)


def test_params_from_mapping_overrides_base_and_skips_none() -> None:
    base = ItineraryParams(min_movement_duration_seconds=60.0)
    p = params_from_mapping({"min_movement_distance_km": 0.05, "tz_name": None}, base=base)
    assert p.min_movement_duration_seconds == 60.0
    assert p.min_movement_distance_km == 0.05
    assert p.tz_name == "America/Sao_Paulo"


def test_params_from_mapping_unknown_key() -> None:
    with pytest.raises(ConfigurationError, match="desconhecidos"):
        params_from_mapping({"velocidade": 3})


def test_load_params_toml(tmp_path: Path) -> None:
    cfg = tmp_path / "params.toml"
    cfg.write_text(
        'tz_name = "America/Manaus"\n'
        "min_movement_duration_seconds = 60\n"
        "normalize_bairro = true\n"
        "\n"
        "[[bairro_rules]]\n"
        'pattern = "setor\\\\s+(\\\\w+)"\n'
        "group = 1\n"
        'name = "setor"\n',
        encoding="utf-8",
    )
    p = load_params(cfg)
    assert p.tz_name == "America/Manaus"
    assert p.min_movement_duration_seconds == 60
    assert p.normalize_bairro is True
    assert p.bairro_rules == (BairroRule(r"setor\s+(\w+)", 1, "setor"),)


def test_load_params_missing_or_broken(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_params(tmp_path / "nao_existe.toml")
    broken = tmp_path / "broken.toml"
    broken.write_text("tz_name = ", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_params(broken)
