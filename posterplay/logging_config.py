import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from posterplay import __version__

# Exposed so other modules can set/request ids
req_id_var: ContextVar[str] = ContextVar("req_id", default="-")

_HANDLER_MARK = "_posterplay_handler"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "req_id": getattr(record, "req_id", req_id_var.get()),
            "level": record.levelname,
            "component": record.name,
            "msg": record.getMessage(),
            "env": os.getenv("ENV", "").strip(),
            "version": __version__,
        }
        if hasattr(record, "meta"):
            payload["meta"] = record.meta
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        try:
            return json.dumps(payload, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            # Fallback to plain message if payload has unserialisable types
            return payload["msg"]


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        # Propagate request id from context-var into every log line
        record.req_id = req_id_var.get()
        return True


def configure_logging() -> None:
    """
    Call once at app startup.
    LOG_LEVEL env var controls verbosity (default INFO).
    LOG_TO_STDOUT / DEBUG_MODE switch from JSON-on-stderr to a plain
    human-readable stdout handler.
    """
    level = os.getenv("LOG_LEVEL", "INFO").upper()

    force_stdout = os.getenv("LOG_TO_STDOUT", "").lower() in {"1", "true", "yes", "on"}
    debug_mode = os.getenv("DEBUG_MODE", "").lower() in {"1", "true", "yes", "on"}

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level, logging.INFO))

    # Replace only what a previous call installed; leave foreign handlers (pytest caplog) alone
    for handler in root_logger.handlers[:]:
        if getattr(handler, _HANDLER_MARK, False):
            root_logger.removeHandler(handler)

    if force_stdout or debug_mode:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(req_id)s] %(message)s"
            )
        )
    else:
        # Production: JSON logging to stderr
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())
    setattr(handler, _HANDLER_MARK, True)
    root_logger.addHandler(handler)

    # Reduce third-party verbosity unless LOG_LEVEL is DEBUG
    if level != "DEBUG":
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("asyncio").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "logging configured", extra={"meta": {"level": level, "stdout": force_stdout}}
    )
