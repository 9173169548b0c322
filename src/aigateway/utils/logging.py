"""Structured JSON logging for the gateway.

Every event is one JSON object per line on the ``aigateway`` logger. Output
goes to stdout, plus a rotating file under ``Settings.log_dir`` when
``Settings.log_to_file`` is set.
"""
import json
import logging
import os
import random
import sys
import time
from logging.handlers import RotatingFileHandler
from typing import Any, Callable, Iterable

from ..core.settings import Settings

LOG_FILENAME = "aigateway.log"
MASK = "***"

logger = logging.getLogger("aigateway")


def _file_handler(settings: Settings) -> RotatingFileHandler:
    os.makedirs(settings.log_dir, exist_ok=True)
    handler = RotatingFileHandler(
        os.path.join(settings.log_dir, LOG_FILENAME),
        maxBytes=max(1, int(settings.log_file_max_mb * 1024 * 1024)),
        backupCount=max(1, settings.log_file_backups),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def setup_logging(settings: Settings) -> None:
    """Install stdout and optional file handlers at the configured level."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    handlers = [logging.StreamHandler(sys.stdout)]
    if settings.log_to_file and settings.log_dir:
        try:
            handlers.append(_file_handler(settings))
        except OSError as exc:
            print(f"[aigateway] file logging disabled: {exc}", file=sys.stderr)
    logging.basicConfig(level=level, handlers=handlers, force=True)


def log_event(level: int, message: str, **fields) -> None:
    """Emit a structured log line."""
    payload = {"message": message, "ts": int(time.time())}
    payload.update(fields)
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


def redact(value: Any, keys: Iterable[str]) -> Any:
    """Mask values under any of ``keys`` (case-insensitive), recursing into JSON containers."""
    masked_keys = {key.lower() for key in keys}

    def walk(node):
        if isinstance(node, dict):
            return {
                key: MASK if str(key).lower() in masked_keys else walk(item)
                for key, item in node.items()
            }
        if isinstance(node, list):
            return [walk(item) for item in node]
        return node

    return walk(value)


def should_log_request(status_code: int, sample_rate: float, rng: Callable[[], float] = random.random) -> bool:
    """Errors are always logged; successes are sampled."""
    if status_code >= 400:
        return True
    return rng() <= sample_rate
