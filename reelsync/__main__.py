"""Module executed when running ``python -m reelsync``."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from .config import get_settings
from .errors import NotFound, TransientProviderError
from .main import open_engine
from .models import TitleRef

logger = logging.getLogger("reelsync")


async def run(path: Path) -> int:
    """Reconcile every title listed in ``path`` and return the failure count."""

    try:
        titles = TypeAdapter(list[TitleRef]).validate_python(
            json.loads(path.read_text(encoding="utf-8"))
        )
    except (OSError, ValueError, ValidationError) as exc:
        logger.error("Could not read listings from %s: %s", path, exc)
        return 1

    failures = 0
    async with open_engine(get_settings(), log=logger) as engine:
        for title in titles:
            try:
                record = await engine.reconciler.reconcile(title)
            except (NotFound, TransientProviderError) as exc:
                logger.warning("Skipping '%s': %s", title.slug, exc)
                failures += 1
                continue
            if record is None:
                failures += 1
    return failures


def main() -> None:
    """Reconcile scraped listings read from a JSON file."""

    parser = argparse.ArgumentParser(prog="reelsync", description=main.__doc__)
    parser.add_argument("listings", type=Path, help="JSON list of titles with torrents")
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    failures = asyncio.run(run(args.listings))
    raise SystemExit(1 if failures else 0)


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()
