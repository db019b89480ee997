# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import logging
import sys
from typing import IO, Optional

import structlog

_HANDLER_NAME = "storyforge"


def setup_logging(level: str | int = "INFO", json: bool = True, stream: Optional[IO[str]] = None):
    """
    Configure structlog and route stdlib logging through it.

    Library modules keep using `logging.getLogger("storyforge.*")` with
    `extra={...}`; the root handler renders those records with structlog's
    ProcessorFormatter, so extra fields land in the output (JSON by default).
    Calling it again replaces the previously installed handler.
    """
    numeric = (
        level
        if isinstance(level, int)
        else getattr(logging, str(level).upper(), logging.INFO)
    )
    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    # applied to records coming from plain stdlib loggers
    foreign_pre_chain = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        timestamper,
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=foreign_pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(numeric)
    logging.getLogger("storyforge").setLevel(numeric)
    return structlog.get_logger("storyforge")
