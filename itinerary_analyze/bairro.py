"""Bairro (neighborhood) extraction from free-text location labels.

Tracker exports embed the address in a single text column, e.g.:

    "Rua Augusta, 1500 - Consolação, São Paulo - SP, 01304-001"
    "Av. Brasil - Centro, Campinas - SP"
    "Rodovia SP-330, km 98, Bairro: Distrito Industrial"
    "Rua X, Bairro A"

The bairro is picked by a ranked list of regular expressions; the first rule
that matches (and captures a non-empty token) wins.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from typing import Sequence

from itinerary_analyze.models import UNIDENTIFIED_BAIRRO


@dataclass(frozen=True, slots=True)
class BairroRule:
    """One extraction rule: regex pattern plus the capture group holding the bairro."""

    pattern: str
    group: int = 1
    name: str = ""


DEFAULT_BAIRRO_RULES: tuple[BairroRule, ...] = (
    BairroRule(r"\bbairro\s*(?::|\s-\s)\s*([^,;]+)", 1, "explicit_tag"),
    BairroRule(r",\s*\d+\w*\s*-\s*([^,]+?)\s*(?:,|$)", 1, "number_dash_bairro"),
    BairroRule(r"^[^,\-]+?\s+-\s+([^,]+?)\s*,\s*[^,]+?\s*-\s*[a-z]{2}\b", 1, "street_dash_bairro"),
    BairroRule(r"^[^,]+,\s*([^,\d][^,]*?)\s*$", 1, "street_comma_bairro"),
)

_WS_RE = re.compile(r"\s+")


def normalize_bairro_name(name: str) -> str:
    """Fold case and diacritics so "Consolação" and "CONSOLACAO" count together."""

    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _WS_RE.sub(" ", stripped).strip().upper()


def compile_rules(rules: Sequence[BairroRule]) -> list[tuple[re.Pattern[str], int]]:
    """Compile rules (case-insensitive).

    Raises:
        re.error: If a pattern is invalid.
        ValueError: If a capture group index does not exist in its pattern.
    """

    compiled: list[tuple[re.Pattern[str], int]] = []
    for rule in rules:
        rx = re.compile(rule.pattern, re.IGNORECASE)
        if rule.group < 0 or rule.group > rx.groups:
            raise ValueError(f"Regra {rule.name or rule.pattern!r}: grupo {rule.group} inexistente")
        compiled.append((rx, rule.group))
    return compiled


class BairroExtractor:
    """Compiled, reusable bairro extractor.

    extract() is pure and total: it never raises and returns UNIDENTIFIED_BAIRRO
    when no rule matches.
    """

    def __init__(self, rules: Sequence[BairroRule] = DEFAULT_BAIRRO_RULES, normalize: bool = False) -> None:
        self._rules = compile_rules(rules)
        self._normalize = normalize

    def extract(self, label: str | None) -> str:
        if not label:
            return UNIDENTIFIED_BAIRRO
        text = label.strip()
        for rx, group in self._rules:
            m = rx.search(text)
            if m is None:
                continue
            token = _WS_RE.sub(" ", m.group(group) or "").strip(" .-")
            if not token:
                continue
            return normalize_bairro_name(token) if self._normalize else token
        return UNIDENTIFIED_BAIRRO

    __call__ = extract


def extract_bairro(
    label: str | None,
    rules: Sequence[BairroRule] = DEFAULT_BAIRRO_RULES,
    normalize: bool = False,
) -> str:
    """One-shot extraction. Prefer BairroExtractor when processing many labels."""

    return BairroExtractor(rules, normalize=normalize).extract(label)
