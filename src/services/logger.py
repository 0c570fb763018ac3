"""Structured JSON logging for the whitelist resolver."""

import logging
import sys
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger.json import JsonFormatter


# Between INFO and WARNING; whitelist verdicts are logged at this level
NOTICE = 25
logging.addLevelName(NOTICE, "NOTICE")

# Global run ID for correlation across log entries
RUN_ID = str(uuid.uuid4())


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter that adds run_id and standardized fields."""

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        """Add custom fields to log record.

        Args:
            log_record: The log record to modify.
            record: The original logging.LogRecord.
            message_dict: Additional fields from the logging call.
        """
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = (
            datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        )
        log_record["run_id"] = RUN_ID
        log_record["level"] = record.levelname
        log_record["logger"] = record.name


def setup_logging(verbose: bool = False) -> logging.Logger:
    """Configure structured JSON logging for the application.

    Args:
        verbose: Log at DEBUG instead of INFO.

    Returns:
        logging.Logger: Configured root logger.
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    # Logs go to stderr; stdout carries the CLI results
    json_handler = logging.StreamHandler(sys.stderr)
    json_handler.setFormatter(CustomJsonFormatter("%(message)s"))
    logger.addHandler(json_handler)

    return logger


def log_verdict(
    remote_ip: str,
    state: str,
    verdict: Optional[str],
    zone: Optional[str] = None,
    abandoned: int = 0,
) -> None:
    """Log the final whitelist outcome for one connection.

    Args:
        remote_ip: Connecting client address.
        state: Terminal state name (RESOLVED or EXHAUSTED).
        verdict: Reason string, or None when not whitelisted.
        zone: Zone whose answer produced the verdict.
        abandoned: Pending queries discarded without being read.
    """
    logger = logging.getLogger(__name__)
    level = NOTICE if verdict is not None else logging.DEBUG
    logger.log(
        level,
        "Whitelist check completed",
        extra={
            "remote_ip": remote_ip,
            "state": state,
            "verdict": verdict,
            "zone": zone,
            "abandoned_queries": abandoned,
        },
    )


def log_query_failure(remote_ip: str, qname: str, error: str) -> None:
    """Log a DNS failure for one zone query.

    Args:
        remote_ip: Connecting client address.
        qname: Query name that failed.
        error: Error description.
    """
    logger = logging.getLogger(__name__)
    logger.error(
        "Whitelist query failed",
        extra={"remote_ip": remote_ip, "qname": qname, "error": error},
    )
