"""Opaque cursor tokens for payment history pagination.

A token is the URL-safe base64 (unpadded) of ``"<epoch-millis>:<id>"``, the
(created_at, id) ordering key of the last row a client received. Clients must
treat it as opaque; this module is the only place that builds or reads it.
"""

import base64
import binascii
from datetime import datetime
from typing import Optional

from pg_gateway.domain.models import Cursor
from pg_gateway.utils.date_utils import from_epoch_millis, to_epoch_millis


def encode_cursor(created_at: Optional[datetime], payment_id: Optional[int]) -> Optional[str]:
    """Build the token pointing just past (created_at, payment_id)"""
    if created_at is None or payment_id is None:
        return None
    raw = f"{to_epoch_millis(created_at)}:{payment_id}"
    return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")


def decode_cursor(token: Optional[str]) -> Optional[Cursor]:
    """
    Restore a cursor from a client-supplied token.

    Lenient by contract: a blank, corrupted or tampered token means "start from
    the beginning" and never raises.
    """
    if token is None or not token.strip():
        return None

    try:
        padded = token.strip() + "=" * (-len(token.strip()) % 4)
        raw = base64.b64decode(padded, altchars=b"-_", validate=True).decode("utf-8")
        millis, payment_id = raw.split(":")
        return Cursor(created_at=from_epoch_millis(int(millis)), id=int(payment_id))
    except (binascii.Error, ValueError, OverflowError):
        return None
