"""
Logger Implementation
=====================

structlog configuration for rolezk.

Two rules hold for every entry, whatever the renderer:
- key material and the owner's actual clearance are redacted
- proof digests (nullifiers, commitments) are shortened to a prefix

Version: 0.1.0
"""

import logging
import re
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger


REDACTED = "***REDACTED***"

SENSITIVE_KEYS = frozenset(
    {
        "password",
        "secret",
        "token",
        "authorization",
        "private_key",
        "blinding",
        "owner_clearance",
    }
)

DIGEST_KEYS = frozenset(
    {
        "nullifier",
        "commitment",
        "challenge",
        "response",
        "public_key_commitment",
        "transcript_digest",
    }
)
DIGEST_PREFIX_LENGTH = 16

_HEX = re.compile(r"[0-9a-fA-F]{17,}")


def _is_sensitive(key: str) -> bool:
    key = key.lower()
    return any(marker in key for marker in SENSITIVE_KEYS)


def _scrub(key: str, value: Any) -> Any:
    if _is_sensitive(key):
        return REDACTED
    if key in DIGEST_KEYS and isinstance(value, str) and _HEX.fullmatch(value):
        return value[:DIGEST_PREFIX_LENGTH]
    if isinstance(value, dict):
        return {k: _scrub(str(k), v) for k, v in value.items()}
    return value


def scrub_event(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Redact secrets and shorten proof digests."""
    return {key: _scrub(key, value) for key, value in event_dict.items()}


def _service_context(service_name: str) -> Processor:
    def add_service(
        logger: WrappedLogger,
        method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    service_name: str = "rolezk",
) -> None:
    """
    Route structlog and stdlib logging through one handler on stdout.

    Args:
        log_level: Root level name (DEBUG, INFO, ...)
        json_logs: JSON lines instead of the colored console renderer
        service_name: Value of the ``service`` key on every entry
    """
    level = logging.getLevelName(log_level.upper())

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_context(service_name),
        scrub_event,
    ]

    renderer: Processor
    if json_logs:
        pre_chain.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=False),
        )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
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
    root.handlers = [handler]
    root.setLevel(level)

    # Redis and HTTP client chatter stays at WARNING
    for name in ("asyncio", "httpx", "httpcore", "redis"):
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> "BoundLogger":
    """
    Get a structured logger.

    Example:
        logger = get_logger(__name__)
        logger.info("role_proof_generated", proof_id="abc123", min_clearance=2)
    """
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind keys onto every entry logged from the current async context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
