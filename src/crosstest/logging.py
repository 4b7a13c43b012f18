"""JSON-lines logging for the conformance server."""
from __future__ import annotations

import logging
import sys
from typing import IO, Any, Dict, List, Optional

import structlog

_LEVELS: Dict[str, int] = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

EventDict = Dict[str, Any]


def configure_logging(level: Optional[str] = None, *, stream: Optional[IO[str]] = None) -> None:
    """Route structlog through the stdlib root logger as JSON lines.

    Records carry ``ts``, ``level``, ``msg`` and ``component``. Output goes to
    stderr unless ``stream`` is given; stdout belongs to CLI output.
    """

    threshold = _LEVELS.get((level or "info").lower(), logging.INFO)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    logging.basicConfig(level=threshold, handlers=[handler], format="%(message)s", force=True)

    structlog.configure(
        processors=_processors(),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        cache_logger_on_first_use=True,
    )


def _processors() -> List[Any]:
    return [
        structlog.processors.TimeStamper(fmt="iso", key="ts"),
        structlog.stdlib.add_log_level,
        _add_component,
        _event_as_msg,
        _summarize_bytes,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]


def _add_component(logger: Any, _method: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("component", getattr(logger, "name", None) or "crosstest")
    return event_dict


def _event_as_msg(_logger: Any, _method: str, event_dict: EventDict) -> EventDict:
    if "msg" not in event_dict:
        event_dict["msg"] = event_dict.pop("event", "")
    return event_dict


def _summarize_bytes(_logger: Any, _method: str, event_dict: EventDict) -> EventDict:
    # Payloads and key material are never written out, only their size.
    for key, value in event_dict.items():
        if isinstance(value, (bytes, bytearray, memoryview)):
            event_dict[key] = f"<{len(value)} bytes>"
    return event_dict


__all__ = ["configure_logging"]
