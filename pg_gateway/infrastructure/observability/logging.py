"""Structured JSON logging for payment tracing and reconciliation"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from pg_gateway.config import settings

# Never emitted in clear text, whatever a caller puts in `extra`
REDACTED_FIELDS = frozenset({"api_key", "enc", "card_number", "password", "birth_date"})

# Chatty client libraries that would log every provider round trip
QUIET_LOGGERS = ("httpx", "httpcore")


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON records stamped with UTC time, level and service; secrets redacted"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name
        for key in REDACTED_FIELDS.intersection(log_record):
            log_record[key] = "***"


def setup_logging(level: str = "INFO") -> None:
    """Route the root logger to stdout as JSON"""
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_payment(
    request_id: str,
    partner_id: int,
    payment_id: Optional[int],
    amount: Decimal,
    fee_amount: Decimal,
    approval_code: str,
    duration_ms: float,
) -> None:
    """One record per settled payment, keyed by approval code"""
    logging.getLogger("pg_gateway.payments").info(
        "Payment approved",
        extra={
            "request_id": request_id,
            "partner_id": partner_id,
            "payment_id": payment_id,
            "step": "payment_complete",
            "amount": str(amount),
            "fee_amount": str(fee_amount),
            "approval_code": approval_code,
            "duration_ms": round(duration_ms, 2),
        },
    )
