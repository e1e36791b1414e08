"""structlog setup for webcallback.

Log lines go to stdout through the stdlib ``logging`` root handler,
rendered as JSON or as a colored console line depending on
``WEBCALLBACK_LOG_FORMAT``. Context bound with ``bind_context`` or
``bound_context`` is attached to every line logged from the same task,
which is how ``Callback.dispatch`` tags retry warnings with the URL.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from structlog.typing import Processor

_configured = False


def configure_logging(
    level: str | None = None,
    format: str | None = None,
) -> None:
    """Install the structlog pipeline.

    Safe to call again to switch level or format, e.g. from tests.

    Args:
        level: Stdlib level name. Defaults to WEBCALLBACK_LOG_LEVEL; unknown
            names fall back to INFO.
        format: "json" or "text". Defaults to WEBCALLBACK_LOG_FORMAT.

    Example:
        ```python
        from webcallback.logging import configure_logging

        configure_logging(level="DEBUG", format="text")
        ```
    """
    global _configured

    from .config import get_settings

    settings = get_settings()
    level = level or settings.log_level
    format = format or settings.log_format

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: list[Processor]
    if format.lower() == "json":
        renderer = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=[*shared_processors, *renderer],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a logger, installing the default pipeline if nothing has yet."""
    if not _configured:
        configure_logging()

    return structlog.get_logger(name)  # type: ignore[no-any-return]


def bind_context(**kwargs: object) -> None:
    """Attach key/value pairs to every later log line in this task."""
    structlog.contextvars.bind_contextvars(**kwargs)


@contextmanager
def bound_context(**kwargs: object) -> Iterator[None]:
    """Attach key/value pairs for the duration of a block.

    Keys already bound outside the block get their old values back on
    exit instead of being dropped.

    Example:
        ```python
        with bound_context(callback_url=url):
            logger.info("Sending")  # carries callback_url
        ```
    """
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def unbind_context(*keys: str) -> None:
    """Drop keys from the bound context. Missing keys are ignored."""
    structlog.contextvars.unbind_contextvars(*keys)
