"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from pleasy_client.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_settlement(
    request_id: Optional[str],
    account_id: Any,
    phase: str,
    reason: Optional[str],
    close_attempts: int,
) -> None:
    """Log structured settlement outcome for analysis"""
    done = reason is None
    extra = {
        "request_id": request_id or "unknown",
        "account_id": str(account_id),
        "step": "settlement_complete",
        "settlement_outcome": "done" if done else "failed",
        "failed_phase": None if done else phase,
        "failure_reason": reason,
        "close_attempts": close_attempts,
    }
    if done:
        logging.info("Settlement completed", extra=extra)
    elif reason == "CLOSE_FAILED":
        # Funds already moved while the account stayed open
        logging.error("Settlement left account open after clearing transfer", extra=extra)
    else:
        logging.warning("Settlement failed", extra=extra)
