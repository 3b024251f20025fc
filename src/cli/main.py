"""Command-line entrypoint.

Usage:
    python -m src.cli.main book me a table at Nopa on Friday at 8pm for 4

All arguments are joined into one request; with no arguments the configured default request is
used.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from src.app import App, create_app
from src.config.logging import configure_logging
from src.config.settings import load_settings

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


async def run(app: App, message: str) -> int:
    """Parse `message`, run one reservation attempt, and return a process exit code.

    Step failures inside the workflow are reported but do not change the exit code; only errors
    that escape the workflow (for example, a browser that cannot be launched) do.
    """

    message = message.strip() or app.settings.default_request
    logger.info("starting reservation request=%r", message)
    intent = app.parse(message)
    logger.info(
        "parsed intent restaurant=%r party=%d date=%s time=%s",
        intent.restaurant,
        intent.party,
        intent.date_iso,
        intent.time_24,
    )

    # noinspection PyBroadException
    try:
        report = await app.book(intent)
    except Exception:
        # Run boundary: the session has already been closed by the scope.
        logger.exception("reservation run failed")
        return EXIT_FAILED

    failed = [str(step) for step in report.failed_steps]
    if report.completed:
        logger.info("full reservation process completed failed_steps=%s", failed)
    else:
        logger.info("reservation stopped before confirmation failed_steps=%s", failed)
    return EXIT_OK


async def main(argv: list[str] | None = None) -> int:
    """Load settings, build the app and run a single booking."""

    configure_logging()
    args = sys.argv[1:] if argv is None else argv
    message = " ".join(args).strip()

    try:
        settings = load_settings()
        app = create_app(settings)
    except RuntimeError as exc:
        # Invalid settings or a missing LLM key (ActionError is a RuntimeError).
        logger.error("%s", exc)
        return EXIT_CONFIG

    return await run(app, message)


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
