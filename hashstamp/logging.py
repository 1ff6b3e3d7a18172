"""Logging utilities for hashstamp commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .models import UnitDescriptor
    from .registry import Registry

_LOGGER_NAME = "hashstamp"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the hashstamp hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Configure the hashstamp logger with console output and optional file sink."""
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when the CLI is invoked multiple times.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(logging.Formatter("[hashstamp] %(levelname)s %(message)s"))
    logger.addHandler(stream_handler)

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


def log_run_summary(
    logger: logging.Logger,
    registry: Registry,
    dropped: Sequence[UnitDescriptor],
    elapsed: float,
) -> None:
    """Log one INFO line per run; dropped descriptors are listed at DEBUG."""
    logger.info(
        "Fingerprinted %d members in %d types across %d namespaces in %.2fs (%d dropped)",
        len(registry),
        registry.type_count(),
        registry.namespace_count(),
        elapsed,
        len(dropped),
    )
    for descriptor in dropped:
        logger.debug(
            "Dropped %s at %s: enclosing namespace or type unknown",
            descriptor.qualified_signature,
            descriptor.location or "<unknown>",
        )


__all__ = ["configure_logging", "get_logger", "log_run_summary"]
