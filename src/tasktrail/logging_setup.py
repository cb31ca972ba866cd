"""Logging configuration for TaskTrail."""

import logging
import sys
from pathlib import Path


class _ThirdPartyFilter(logging.Filter):
    """Keep tasktrail logs; only let other libraries through at ERROR and above."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith("tasktrail"):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    log_file: Path,
    *,
    file_level: int | str = logging.INFO,
    console_level: int | None = None,
) -> None:
    """Configure the root logger once, early, before the first log call.

    The TUI owns the terminal, so by default only the file handler is
    installed. The CLI passes console_level to also log to stderr.

    Args:
        log_file: File receiving the full log.
        file_level: Level for the file handler.
        console_level: Level for a stderr handler, or None for no console output.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
    except OSError as e:
        print(f"Warning: cannot write log file {log_file}: {e}", file=sys.stderr)
    else:
        fh.setLevel(file_level)
        fh.setFormatter(fmt)
        fh.addFilter(_ThirdPartyFilter())
        root.addHandler(fh)

    if console_level is not None:
        ch = logging.StreamHandler(sys.stderr)
        ch.setLevel(console_level)
        ch.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
        ch.addFilter(_ThirdPartyFilter())
        root.addHandler(ch)

    logging.captureWarnings(True)
