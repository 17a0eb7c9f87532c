"""Offloading heavy passes to a separate worker via message passing.

Requests and responses are plain dicts so they can cross a process boundary:

    {"kind": "ingest", "header": [...], "rows": [...], "params": ItineraryParams}
        -> {"kind": "ingested", "result": IngestResult}
    {"kind": "bairro_index", "records_by_date": {...}}
        -> {"kind": "bairro_index", "bairro_index": {...}}
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Any, Iterable, Sequence

from itinerary_analyze.aggregate import bairro_index
from itinerary_analyze.config import ItineraryParams
from itinerary_analyze.pipeline import IngestResult, process_batch
from itinerary_analyze.store import ProcessingContext

logger = logging.getLogger(__name__)


def handle_request(message: dict[str, Any]) -> dict[str, Any]:
    """Serve one request message. Runs inside the worker."""

    kind = message.get("kind")
    if kind == "ingest":
        params = message.get("params") or ItineraryParams()
        result = process_batch(message.get("header"), message.get("rows") or [], params)
        return {"kind": "ingested", "result": result}
    if kind == "bairro_index":
        return {"kind": "bairro_index", "bairro_index": bairro_index(message.get("records_by_date") or {})}
    raise ValueError(f"Tipo de requisição desconhecido: {kind!r}")


class BackgroundProcessor:
    """Run ingestion off the interaction thread and publish into a ProcessingContext.

    Each submission takes a fresh pass token; when an older pass finishes after a
    newer one was submitted, its result is discarded by the context.
    """

    def __init__(self, context: ProcessingContext, executor: str | Executor = "process", max_workers: int = 1) -> None:
        self.context = context
        workers = max(1, int(max_workers))
        if isinstance(executor, Executor):
            self._executor: Executor = executor
        elif executor == "process":
            self._executor = ProcessPoolExecutor(max_workers=workers)
        elif executor == "thread":
            self._executor = ThreadPoolExecutor(max_workers=workers)
        else:
            raise ValueError(f"executor deve ser 'process' ou 'thread', recebido: {executor!r}")

    def submit_ingest(self, header: Sequence[str] | None, rows: Iterable[Sequence[str] | None]) -> Future[bool]:
        """Submit a batch; the returned future resolves to True if it was published.

        A MalformedInputError from the worker is set on the future and nothing is published.
        """

        token = self.context.begin_pass()
        request = {
            "kind": "ingest",
            "header": list(header) if header is not None else None,
            "rows": [list(r) if r is not None else None for r in rows],
            "params": self.context.params,
        }
        inner = self._executor.submit(handle_request, request)
        outer: Future[bool] = Future()

        def _done(fut: Future[dict[str, Any]]) -> None:
            exc = fut.exception()
            if exc is not None:
                logger.warning("Passe %s falhou: %s", token, exc)
                outer.set_exception(exc)
                return
            response = fut.result()
            result: IngestResult = response["result"]
            outer.set_result(self.context.publish(token, result))

        inner.add_done_callback(_done)
        return outer

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "BackgroundProcessor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
