import logging
import sys

import structlog

# googleapiclient logs every discovery lookup and request at INFO
QUIET_LOGGERS = ("googleapiclient.discovery", "googleapiclient.discovery_cache", "urllib3", "httplib2")


def _shared_processors():
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _select_renderer(force_json: bool):
    if not force_json and sys.stdout.isatty():
        return structlog.dev.ConsoleRenderer(colors=True)
    return structlog.processors.JSONRenderer()


def setup_logging(level=logging.INFO, force_json=False):
    """
    Routes structlog and stdlib logging (googleapiclient, psycopg2, tenacity)
    through the same renderer: colored console on a terminal, JSON otherwise.

    `level` accepts a logging constant or a name such as "DEBUG".
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    processors = _shared_processors()
    renderer = _select_renderer(force_json)

    structlog.configure(
        processors=processors + [renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=processors))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info("Logging configured", level=logging.getLevelName(level))
