"""structlog setup shared by the HTTP app and the CLI.

Modules log through ``logging.getLogger(__name__)`` and pass page fields via
``extra``; records are rendered by one structlog ``ProcessorFormatter`` so
stdlib and structlog output look the same.

    configure_logging()                     # JSON lines on stderr
    configure_logging(json_output=False)    # console renderer (CLI)

    with page_log_context('pg_1234', 'i-0abc'):
        logger.info('Stop requested')       # carries page_id / instance_id
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, TextIO

import structlog

request_id_ctx: ContextVar[str | None] = ContextVar('request_id', default=None)

# Field names whose values never reach a log line.
REDACTED_FIELDS = frozenset({'token', 'api_token', 'authorization'})

_configured = False


def _add_request_id(logger, method_name: str, event_dict: dict) -> dict:
    rid = request_id_ctx.get()
    if rid is not None:
        event_dict.setdefault('request_id', rid)
    return event_dict


def _redact_secrets(logger, method_name: str, event_dict: dict) -> dict:
    for key in REDACTED_FIELDS.intersection(event_dict):
        event_dict[key] = '[redacted]'
    return event_dict


@contextmanager
def page_log_context(page_id: str | None, instance_id: str) -> Iterator[None]:
    """Bind page identity to every record logged inside the block."""
    with structlog.contextvars.bound_contextvars(
        page_id=page_id, instance_id=instance_id
    ):
        yield


def configure_logging(
    *,
    level: str | None = None,
    json_output: bool | None = None,
    stream: TextIO | None = None,
) -> None:
    """Install the structlog formatter on the root logger. Runs once.

    ``level`` defaults to ``LOG_LEVEL`` (INFO); ``json_output`` defaults to
    ``LOG_FORMAT != "console"``. Output goes to stderr so CLI views on
    stdout stay clean.
    """
    global _configured
    if _configured:
        return
    _configured = True

    level_name = (level or os.environ.get('LOG_LEVEL', 'INFO')).upper()
    if json_output is None:
        json_output = os.environ.get('LOG_FORMAT', 'json') != 'console'

    pre_chain: list = [
        structlog.contextvars.merge_contextvars,
        _add_request_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        _redact_secrets,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.format_exc_info,
    ]
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for noisy in ('httpx', 'httpcore', 'uvicorn.access'):
        logging.getLogger(noisy).setLevel(logging.WARNING)
