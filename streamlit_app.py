from __future__ import annotations

from datetime import date

import streamlit as st

from itinerary_analyze.config import ItineraryParams
from itinerary_analyze.csv_io import read_rows_bytes
from itinerary_analyze.errors import ConfigurationError, MalformedInputError
from itinerary_analyze.models import DEFAULT_TZ, FilterState, Segment
from itinerary_analyze.store import ProcessingContext
from itinerary_analyze.timeutils import format_hhmmss

_KIND_LABEL = {"stop": "Parada", "movement": "Movimento"}


def _segment_rows(segments: tuple[Segment, ...]) -> list[dict[str, object]]:
    return [
        {
            "tipo": _KIND_LABEL[seg.kind.value],
            "início": seg.start_time.strftime("%H:%M:%S"),
            "fim": seg.end_time.strftime("%H:%M:%S"),
            "duração": format_hhmmss(seg.duration_seconds),
            "distância_km": round(seg.distance_km, 2),
            "bairro": seg.bairro,
            "local_inicial": seg.start_location,
            "local_final": seg.end_location,
        }
        for seg in segments
    ]


def _context() -> ProcessingContext | None:
    # one context per browser session, never module-level
    return st.session_state.get("ctx")


def main() -> None:
    st.set_page_config(page_title="Roteiro do veículo", layout="wide")
    st.title("Roteiro diário do veículo (paradas e movimentos)")

    with st.sidebar:
        st.subheader("Arquivo e fuso")
        uploaded = st.file_uploader("Log GPS (CSV)", type=["csv", "txt"])
        tz_name = st.text_input("Fuso horário (IANA)", value=DEFAULT_TZ)

        with st.expander("Parâmetros avançados (normalmente não precisa mudar)", expanded=False):
            max_speed = st.number_input("stationary_max_speed_kmh", value=3.0, step=0.5)
            max_dist = st.number_input("stationary_max_distance_km", value=0.5, step=0.1)
            min_dur = st.number_input("min_movement_duration_seconds", value=120.0, step=10.0)
            min_km = st.number_input("min_movement_distance_km", value=0.2, step=0.05)
            normalize = st.checkbox("Ignorar maiúsculas/acentos no bairro", value=False)
            top_n = st.number_input("Top N bairros", value=5, min_value=1, step=1)

        if st.button("Processar", type="primary", use_container_width=True):
            if uploaded is None:
                st.error("Selecione um arquivo CSV.")
            else:
                try:
                    params = ItineraryParams(
                        tz_name=tz_name,
                        stationary_max_speed_kmh=float(max_speed),
                        stationary_max_distance_km=float(max_dist),
                        min_movement_duration_seconds=float(min_dur),
                        min_movement_distance_km=float(min_km),
                        normalize_bairro=bool(normalize),
                        top_n=int(top_n),
                    )
                    with st.spinner("Processando log ..."):
                        header, rows = read_rows_bytes(uploaded.getvalue(), max_bytes=params.max_file_bytes)
                        ctx = ProcessingContext(params)
                        ctx.ingest(header, rows)
                except (ConfigurationError, MalformedInputError) as exc:
                    # previous session context stays in place
                    st.error(str(exc))
                else:
                    st.session_state["ctx"] = ctx
                    st.success(f"Processado: {ctx.stats.valid} registros válidos em {len(ctx.dates())} dia(s)")

    ctx = _context()
    if ctx is None:
        st.info("Carregue um log GPS e clique em Processar.")
        return

    s = ctx.stats
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Linhas", str(s.total))
    c2.metric("Válidas", str(s.valid))
    c3.metric("Ignoradas", str(s.ignored))
    c4.metric("GPS inválido", str(s.invalid_gps))

    days = ctx.dates()
    if not days:
        st.warning("Nenhum registro válido no arquivo.")
        return

    index = ctx.bairro_index()
    selected = st.multiselect(
        "Bairros visíveis (vazio = todos)",
        options=list(index),
        default=sorted(ctx.filter_state.selected_bairros & set(index)),
        format_func=lambda b: f"{b} ({index[b]})",
    )
    ctx.set_filter(FilterState.of(selected))

    day: date = st.selectbox("Dia", options=days, format_func=lambda d: d.strftime("%d/%m/%Y"))
    stats = ctx.day_stats(day)

    st.subheader("Resumo do dia")
    d1, d2, d3, d4 = st.columns(4)
    d1.metric("Em movimento", stats.movement_hhmmss)
    d2.metric("Parado", stats.stop_hhmmss)
    d3.metric("Distância", f"{stats.distance_km:.2f} km")
    d4.metric("Bairro dominante", stats.dominant_bairro)

    visible = ctx.get_visible(day)
    st.subheader(f"Segmentos ({len(visible)} de {len(ctx.get_itinerary(day))})")
    st.dataframe(_segment_rows(visible), use_container_width=True, height=520)

    with st.expander("Bairros mais visitados (todos os dias)", expanded=False):
        summary = ctx.summary()
        st.dataframe(
            [{"bairro": name, "paradas": visits} for name, visits in summary.top_bairros],
            use_container_width=True,
        )

    st.caption(
        "Segmentos vizinhos compartilham o ponto de fronteira: a parada termina no último ponto parado, "
        "que também é o início do movimento seguinte."
    )


if __name__ == "__main__":
    main()
