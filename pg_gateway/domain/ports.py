"""Ports (interfaces) used by the payment services.

Ports define the minimal persistence contracts so the orchestration and query
logic can run against the SQLAlchemy repositories or in-memory fakes.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Protocol

from pg_gateway.domain.models import Cursor, FeePolicy, Partner, Payment, PaymentFilter, PaymentSummary


class PartnerReader(Protocol):
    def get(self, partner_id: int) -> Optional[Partner]:
        ...


class FeePolicyReader(Protocol):
    def find_effective_policy(self, partner_id: int, as_of: datetime) -> Optional[FeePolicy]:
        ...


class PaymentStore(Protocol):
    """Ledger operations required by the payment services."""

    def save(self, payment: Payment) -> Payment:
        ...

    def page_by(self, payment_filter: PaymentFilter, cursor: Optional[Cursor], fetch: int) -> List[Payment]:
        """Rows ordered by (created_at desc, id desc), strictly after cursor."""
        ...

    def summary(self, payment_filter: PaymentFilter) -> PaymentSummary:
        ...
