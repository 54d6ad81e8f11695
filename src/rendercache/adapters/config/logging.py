# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Yakov Shkolnikov and contributors
"""Structured logging for rendercache.

Library modules (cache, invoker, registry) log through stdlib loggers
under the ``rendercache`` namespace. Host adapters log structured events
through ``get_logger()``; while a component renders, ``render_context()``
binds the component and cache names so every event emitted during that
render carries them.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, cast

import structlog
from structlog.typing import Processor

VALID_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

PACKAGE_LOGGER = "rendercache"


def _resolve_level(log_level: str) -> int:
    normalized = log_level.upper()
    if normalized not in VALID_LEVELS:
        logging.warning(
            f"Invalid log level '{log_level}', defaulting to INFO. "
            f"Valid levels: {', '.join(sorted(VALID_LEVELS))}"
        )
        normalized = "INFO"
    return cast(int, getattr(logging, normalized))


def _processors(json_output: bool) -> list[Processor]:
    # Render context comes first so bound names precede the event fields
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_output:
        processors += [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Apply one level to the ``rendercache`` stdlib loggers and to structlog.

    Args:
        log_level: Level name, case-insensitive. Unknown names fall back to INFO.
        json_output: JSON lines for servers, console rendering for the CLI.
    """
    level = _resolve_level(log_level)

    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stdout,
        level=level,
    )
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)

    structlog.configure(
        processors=_processors(json_output),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None, **context: Any) -> structlog.BoundLogger:
    """Structured logger with ``logger=name`` and any extra context pre-bound.

    Example:
        >>> log = get_logger(__name__, cache="greeters")
        >>> log.info("cache_cleared", entries=3)
    """
    if name:
        context = {"logger": name, **context}
    return cast(structlog.BoundLogger, structlog.get_logger().bind(**context))


@contextmanager
def render_context(component: str, cache: str | None = None, **extra: Any) -> Iterator[None]:
    """Bind the rendering component (and its cache) to every event in the block.

    The binding lives in contextvars, so concurrent renders in other
    threads or tasks keep their own values. Previous bindings are restored
    on exit.
    """
    values: dict[str, Any] = {"component": component, **extra}
    if cache is not None:
        values["cache"] = cache
    with structlog.contextvars.bound_contextvars(**values):
        yield
