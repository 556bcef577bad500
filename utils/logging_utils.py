import logging
from typing import Any, Mapping, Union

import structlog
from structlog.stdlib import add_log_level, add_logger_name


def _renderer(name: str):
    if name == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def setup_logging(
    level: Union[int, str] = logging.INFO, renderer: str = "console"
) -> None:
    """Configure structlog on top of stdlib logging.

    ``level`` may be a logging constant or its name ("DEBUG"); ``renderer``
    is "console" or "json".
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level!r}")
    logging.basicConfig(level=level, format="%(message)s")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_logger_name,
            add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False),
            _renderer(renderer),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def setup_logging_from_config(config: Mapping[str, Any]) -> None:
    """Apply the ``logging`` section of an RNG config mapping."""
    section = config.get("logging") or {}
    setup_logging(
        level=section.get("level", logging.INFO),
        renderer=section.get("renderer", "console"),
    )
