"""
Thread-safe rate-limited logging.

Some conditions (for example a node without fee-market support) are
reported on every submission attempt. This module logs each distinct
message at most once per TTL window.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECS = 300

# Keyed by "<level>:<message>"; the value is irrelevant, expiry does the work
_log_cache: TTLCache = TTLCache(maxsize=256, ttl=DEFAULT_TTL_SECS)
_log_cache_lock = threading.RLock()


def rate_limited_log(
    message: str,
    level: str = "warning",
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log a message unless the same message was logged recently.

    Args:
        message: Message to log
        level: Log level (debug, info, warning, error, critical)
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)
    key = f"{level}:{message}"

    with _log_cache_lock:
        if key in _log_cache:
            return False
        log_method(message)
        _log_cache[key] = True
        return True


def reset_rate_limited_log() -> None:
    """Forget every suppressed message."""
    with _log_cache_lock:
        _log_cache.clear()
