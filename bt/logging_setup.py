"""Logging configuration for the bt command line."""

import logging
import sys


class _ConsoleNoiseFilter(logging.Filter):
    """Keep bt's own records; let third-party ones through only at ERROR+."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "bt" or record.name.startswith("bt."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(*, verbose: bool = False) -> None:
    """Install a single stderr handler on the root logger.

    Warnings (skipped malformed records, duplicate ids) show by default;
    ``verbose`` adds debug output such as file moves and dangling blockers.

    Call this once, before the first command runs.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt="%(levelname)s %(name)s: %(message)s")
    if verbose:
        fmt = logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )

    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    logging.captureWarnings(True)
