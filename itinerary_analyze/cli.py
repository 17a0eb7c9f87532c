"""Command-line interface for itinerary_analyze.

Run:
    python -m itinerary_analyze inspect --csv rastreamento.csv
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date

from itinerary_analyze.config import ItineraryParams, load_params, params_from_mapping
from itinerary_analyze.csv_io import read_rows, write_itinerary_csv
from itinerary_analyze.errors import ItineraryError
from itinerary_analyze.models import FilterState, Itinerary
from itinerary_analyze.store import ProcessingContext
from itinerary_analyze.timeutils import format_hhmmss

_KIND_LABEL = {"stop": "PARADA", "movement": "MOVIMENTO"}


def _params_from_args(args: argparse.Namespace) -> ItineraryParams:
    base = load_params(args.config) if args.config else None
    overrides = {
        "tz_name": args.tz,
        "stationary_max_speed_kmh": args.stationary_max_speed_kmh,
        "stationary_max_distance_km": args.stationary_max_distance_km,
        "min_movement_duration_seconds": args.min_movement_duration_seconds,
        "min_movement_distance_km": args.min_movement_distance_km,
        "normalize_bairro": True if args.normalize_bairro else None,
        "top_n": getattr(args, "top", None),
    }
    return params_from_mapping(overrides, base=base)


def _load_context(args: argparse.Namespace) -> ProcessingContext:
    params = _params_from_args(args)
    header, rows = read_rows(args.csv, max_bytes=params.max_file_bytes)
    ctx = ProcessingContext(params)
    ctx.ingest(header, rows)
    return ctx


def _print_stats(ctx: ProcessingContext) -> None:
    s = ctx.stats
    print("### Linhas")
    print(f"total={s.total}, válidas={s.valid}, ignoradas={s.ignored}, gps_inválido={s.invalid_gps}")
    print()


def _cmd_inspect(args: argparse.Namespace) -> int:
    ctx = _load_context(args)
    _print_stats(ctx)

    if ctx.skipped:
        print("### Linhas descartadas (primeiras 10)")
        for sk in ctx.skipped[:10]:
            print(f"linha {sk.row_number}: {sk.reason} ({sk.detail})")
        print()

    print("### Dias")
    for d in ctx.dates():
        it = ctx.get_itinerary(d)
        print(f"{d.isoformat()}: registros={len(ctx.records_by_date[d])}, segmentos={len(it)}")
    print()

    print("### Bairros (registros)")
    for name, count in ctx.bairro_index().items():
        print(f"{count:6d}  {name}")
    return 0


def _parse_day(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Data inválida: {text!r}. Formato: 2026-10-16") from exc


def _print_itinerary(it: Itinerary, ctx: ProcessingContext) -> None:
    visible = ctx.get_visible(it.day)
    print(f"### {it.day.isoformat()} ({len(visible)}/{len(it)} segmentos)")
    for seg in visible:
        line = (
            f"{seg.start_time:%H:%M:%S}-{seg.end_time:%H:%M:%S} "
            f"{_KIND_LABEL[seg.kind.value]:<9} {format_hhmmss(seg.duration_seconds)} "
            f"{seg.bairro}"
        )
        if not seg.is_stop:
            line += f" ({seg.distance_km:.2f} km)"
        print(line)
    print()


def _cmd_itinerary(args: argparse.Namespace) -> int:
    ctx = _load_context(args)
    ctx.set_filter(FilterState.of(args.bairro))

    days = ctx.dates()
    if args.date is not None:
        if args.date not in days:
            print(f"Sem registros em {args.date.isoformat()}", file=sys.stderr)
            return 1
        days = [args.date]

    for d in days:
        _print_itinerary(ctx.get_itinerary(d), ctx)

    if args.out:
        n = write_itinerary_csv(
            [ctx.get_itinerary(d) for d in days],
            args.out,
            bairros=ctx.filter_state.selected_bairros,
        )
        print(f"Exportado: {args.out} ({n} segmentos)")
    return 0


def _cmd_summary(args: argparse.Namespace) -> int:
    ctx = _load_context(args)
    summary = ctx.summary()

    if args.json:
        print(json.dumps({"stats": ctx.stats.to_dict(), **summary.to_dict()}, ensure_ascii=False, indent=2))
        return 0

    _print_stats(ctx)
    print("### Por dia")
    for d in summary.per_day:
        print(
            f"{d.day.isoformat()}: movimento={d.movement_hhmmss}, parado={d.stop_hhmmss}, "
            f"distância={d.distance_km:.2f} km, paradas={d.stop_count}, movimentos={d.movement_count}, "
            f"bairro_dominante={d.dominant_bairro}"
        )
    print()
    print("### Total")
    print(
        f"dias={summary.days}, movimento={format_hhmmss(summary.movement_seconds)}, "
        f"parado={format_hhmmss(summary.stop_seconds)}, distância={summary.distance_km:.2f} km"
    )
    print()
    print(f"### Bairros mais visitados (top {ctx.params.top_n})")
    for rank, (name, visits) in enumerate(summary.top_bairros, start=1):
        print(f"{rank}. {name} ({visits} paradas)")
    return 0


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("--csv", type=str, required=True, help="CSV exportado do rastreador")
    p.add_argument("--config", type=str, default=None, help="Arquivo TOML com parâmetros")
    p.add_argument("--tz", type=str, default=None, help="Fuso horário de referência (IANA), padrão America/Sao_Paulo")
    p.add_argument(
        "--stationary-max-speed-kmh",
        type=float,
        default=None,
        help="Velocidade entre dois pontos acima da qual o veículo está em movimento (padrão 3 km/h)",
    )
    p.add_argument(
        "--stationary-max-distance-km",
        type=float,
        default=None,
        help="Deslocamento entre dois pontos acima do qual o veículo está em movimento (padrão 0.5 km)",
    )
    p.add_argument(
        "--min-movement-duration-seconds",
        type=float,
        default=None,
        help="Movimentos mais curtos que isso viram parada (padrão 120 s)",
    )
    p.add_argument(
        "--min-movement-distance-km",
        type=float,
        default=None,
        help="Movimentos com distância menor que isso viram parada (padrão 0.2 km)",
    )
    p.add_argument(
        "--normalize-bairro",
        action="store_true",
        help="Ignorar maiúsculas/acentos nos nomes de bairro",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="itinerary_analyze", description="Roteiro diário de veículos a partir de logs GPS")
    p.add_argument("--log-level", type=str, default="WARNING", help="Nível de log (DEBUG, INFO, WARNING, ...)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_ins = sub.add_parser("inspect", help="Contagens de linhas, dias e bairros do log")
    _add_common(p_ins)
    p_ins.set_defaults(func=_cmd_inspect)

    p_it = sub.add_parser("itinerary", help="Roteiro (paradas e movimentos) por dia")
    _add_common(p_it)
    p_it.add_argument("--date", type=_parse_day, default=None, help="Apenas este dia (AAAA-MM-DD)")
    p_it.add_argument(
        "--bairro",
        action="append",
        default=[],
        help="Mostrar apenas segmentos deste bairro (pode repetir)",
    )
    p_it.add_argument("--out", type=str, default=None, help="Exportar segmentos para CSV")
    p_it.set_defaults(func=_cmd_itinerary)

    p_sum = sub.add_parser("summary", help="Totais por dia e ranking de bairros")
    _add_common(p_sum)
    p_sum.add_argument("--top", type=int, default=None, help="Tamanho do ranking de bairros (padrão 5)")
    p_sum.add_argument("--json", action="store_true", help="Saída em JSON")
    p_sum.set_defaults(func=_cmd_summary)

    return p


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""

    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    try:
        return int(args.func(args))
    except ItineraryError as exc:
        print(f"Erro: {exc}", file=sys.stderr)
        return 2
    except FileNotFoundError as exc:
        print(f"Arquivo não encontrado: {exc.filename}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
