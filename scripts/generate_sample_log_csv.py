from __future__ import annotations

import argparse
import csv
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Final

from zoneinfo import ZoneInfo


TZ: Final[str] = "America/Sao_Paulo"


@dataclass(frozen=True, slots=True)
class Place:
    label: str
    lat: float
    lon: float


def generate_rows(
    *,
    days: int,
    seed: int,
    start_local: datetime,
    places: list[Place],
    bad_row_rate: float,
) -> list[dict[str, str]]:
    """Generate a fake tracker log: dwell at a place, drive to the next, repeat."""

    rng = random.Random(seed)
    tz = ZoneInfo(TZ)
    out: list[dict[str, str]] = []

    for day in range(days):
        cur = (start_local + timedelta(days=day)).replace(tzinfo=tz)
        end_of_shift = cur + timedelta(hours=10)
        place = rng.choice(places)
        while cur < end_of_shift:
            # dwell with parked jitter, one fix every 2-5 minutes
            dwell_until = cur + timedelta(minutes=rng.uniform(15, 90))
            while cur < dwell_until:
                out.append(_row(cur, place.lat + rng.uniform(-0.0002, 0.0002), place.lon + rng.uniform(-0.0002, 0.0002), place.label))
                cur += timedelta(seconds=rng.uniform(120, 300))

            # drive to the next place, one fix every 30 seconds
            target = rng.choice([p for p in places if p is not place])
            steps = rng.randint(8, 30)
            for i in range(1, steps + 1):
                f = i / steps
                lat = place.lat + (target.lat - place.lat) * f
                lon = place.lon + (target.lon - place.lon) * f
                label = target.label if i == steps else f"Em trânsito, {i * 30}s"
                out.append(_row(cur, lat, lon, label))
                cur += timedelta(seconds=30)
            place = target

    for row in out:
        roll = rng.random()
        if roll < bad_row_rate / 2:
            row["latitude"] = "200"
        elif roll < bad_row_rate:
            row["data_hora"] = "sem horário"

    return out


def _row(ts: datetime, lat: float, lon: float, label: str) -> dict[str, str]:
    return {
        "data_hora": ts.strftime("%d/%m/%Y %H:%M:%S"),
        "latitude": f"{lat:.6f}",
        "longitude": f"{lon:.6f}",
        "localizacao": label,
        "placa": "ABC1D23",
        "velocidade": "0",
    }


def main() -> int:
    p = argparse.ArgumentParser(description="Gera um log GPS fictício para demonstração/testes.")
    p.add_argument("--out", type=str, default="sample_data/rastreamento.csv", help="CSV de saída")
    p.add_argument("--days", type=int, default=3, help="Número de dias")
    p.add_argument("--seed", type=int, default=42, help="Semente aleatória (reprodutível)")
    p.add_argument("--bad-row-rate", type=float, default=0.01, help="Fração de linhas corrompidas")
    p.add_argument(
        "--start",
        type=str,
        default="2026-10-13 07:30:00",
        help="Horário local inicial em America/Sao_Paulo, ex.: '2026-10-13 07:30:00'",
    )
    args = p.parse_args()

    places = [
        Place("Rua Augusta, 1500 - Consolação, São Paulo - SP", -23.5577, -46.6606),
        Place("Av. Paulista, 1000 - Bela Vista, São Paulo - SP", -23.5646, -46.6527),
        Place("Rua Voluntários da Pátria, 300 - Santana, São Paulo - SP", -23.5020, -46.6253),
        Place("Rua Teodoro Sampaio, 800 - Pinheiros, São Paulo - SP", -23.5614, -46.6831),
        Place("Av. Celso Garcia, 2000 - Belenzinho, São Paulo - SP", -23.5380, -46.5990),
    ]

    rows = generate_rows(
        days=args.days,
        seed=args.seed,
        start_local=datetime.fromisoformat(args.start),
        places=places,
        bad_row_rate=args.bad_row_rate,
    )
    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    with out_path.open("w", encoding="utf-8", newline="") as f:
        w = csv.DictWriter(f, fieldnames=["data_hora", "latitude", "longitude", "localizacao", "placa", "velocidade"], delimiter=";")
        w.writeheader()
        w.writerows(rows)

    print(f"Gerado: {out_path} (linhas={len(rows)}, semente={args.seed})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
