"""Structured logging utilities."""
import json
import logging
import traceback
from datetime import datetime, timezone
from typing import Dict, Any, Optional


def setup_logging(level: str = "INFO"):
    """Setup structured JSON logging."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(message)s',
        handlers=[logging.StreamHandler()]
    )


def log_structured(level: str, message: str, **kwargs):
    """
    Log structured JSON message.

    Args:
        level: Log level (info, warning, error, etc.)
        message: Log message
        **kwargs: Additional structured fields
    """
    logger = logging.getLogger("geoexport")
    log_method = getattr(logger, level.lower(), logger.info)
    if not logger.isEnabledFor(getattr(logging, level.upper(), logging.INFO)):
        return

    log_entry = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level.upper(),
        "message": message,
        **kwargs
    }
    log_method(json.dumps(log_entry, default=str))


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None):
    """
    Log an exception with its traceback and context fields.

    Args:
        error: The exception to log
        context: Extra fields (module, function, ids...) describing where it happened
    """
    log_structured(
        "error",
        str(error),
        error_type=type(error).__name__,
        traceback=traceback.format_exception(type(error), error, error.__traceback__),
        **(context or {})
    )
