"""Module entry point: python -m itinerary_analyze ..."""

from __future__ import annotations

from itinerary_analyze.cli import main


if __name__ == "__main__":
    raise SystemExit(main())
