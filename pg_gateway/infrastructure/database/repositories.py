"""Data access layer for partners, fee policies and payments.

Domain objects carry naive UTC datetimes; rows carry absolute instants.
Conversion happens here and nowhere else.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from pg_gateway.domain.models import (
    Cursor,
    FeePolicy,
    Partner,
    Payment,
    PaymentFilter,
    PaymentStatus,
    PaymentSummary,
)
from pg_gateway.infrastructure.database.models import FeePolicyRecord, PartnerRecord, PaymentRecord
from pg_gateway.utils.date_utils import from_instant, to_instant


class PartnerRepository:
    """Read access to partners"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, partner_id: int) -> Optional[Partner]:
        record = self.db.get(PartnerRecord, partner_id)
        if record is None:
            return None
        return Partner(id=record.id, code=record.code, name=record.name, active=record.active)


class FeePolicyRepository:
    """Read access to partner fee policies"""

    def __init__(self, db: Session):
        self.db = db

    def find_effective_policy(self, partner_id: int, as_of: datetime) -> Optional[FeePolicy]:
        """Policy with the latest effective_from not after as_of"""
        record = (
            self.db.query(FeePolicyRecord)
            .filter(
                FeePolicyRecord.partner_id == partner_id,
                FeePolicyRecord.effective_from <= to_instant(as_of),
            )
            .order_by(FeePolicyRecord.effective_from.desc(), FeePolicyRecord.id.desc())
            .first()
        )
        if record is None:
            return None

        return FeePolicy(
            id=record.id,
            partner_id=record.partner_id,
            effective_from=from_instant(record.effective_from),
            percentage=record.percentage,
            fixed_fee=record.fixed_fee,
        )


class PaymentRepository:
    """Payment ledger: append, cursor pages and aggregates"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, payment: Payment) -> Payment:
        """Persist payment and return it with its assigned id"""
        record = _to_record(payment)
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return payment.with_id(record.id)

    def page_by(self, payment_filter: PaymentFilter, cursor: Optional[Cursor], fetch: int) -> List[Payment]:
        """
        Fetch up to `fetch` payments ordered by (created_at desc, id desc).

        With a cursor, only rows strictly after the cursor position in that
        order are returned. created_at alone is not unique under concurrent
        writes, so id breaks ties.
        """
        query = self.db.query(PaymentRecord).filter(*_filter_conditions(payment_filter))

        if cursor is not None:
            cursor_at = to_instant(cursor.created_at)
            query = query.filter(
                or_(
                    PaymentRecord.created_at < cursor_at,
                    and_(PaymentRecord.created_at == cursor_at, PaymentRecord.id < cursor.id),
                )
            )

        records = (
            query.order_by(PaymentRecord.created_at.desc(), PaymentRecord.id.desc())
            .limit(fetch)
            .all()
        )
        return [_to_domain(record) for record in records]

    def summary(self, payment_filter: PaymentFilter) -> PaymentSummary:
        """Count and totals over every payment matching the filter"""
        count, total_amount, total_net = (
            self.db.query(
                func.count(PaymentRecord.id),
                func.coalesce(func.sum(PaymentRecord.amount), 0),
                func.coalesce(func.sum(PaymentRecord.net_amount), 0),
            )
            .filter(*_filter_conditions(payment_filter))
            .one()
        )
        return PaymentSummary(
            count=int(count),
            total_amount=Decimal(str(total_amount)),
            total_net_amount=Decimal(str(total_net)),
        )


def _filter_conditions(payment_filter: PaymentFilter) -> list:
    conditions = []
    if payment_filter.partner_id is not None:
        conditions.append(PaymentRecord.partner_id == payment_filter.partner_id)
    if payment_filter.status is not None:
        conditions.append(PaymentRecord.status == payment_filter.status.value)
    if payment_filter.from_at is not None:
        conditions.append(PaymentRecord.created_at >= to_instant(payment_filter.from_at))
    if payment_filter.to_at is not None:
        conditions.append(PaymentRecord.created_at < to_instant(payment_filter.to_at))
    return conditions


def _to_record(payment: Payment) -> PaymentRecord:
    return PaymentRecord(
        id=payment.id,
        partner_id=payment.partner_id,
        amount=payment.amount,
        applied_fee_rate=payment.applied_fee_rate,
        fee_amount=payment.fee_amount,
        net_amount=payment.net_amount,
        card_bin=payment.card_bin,
        card_last4=payment.card_last4,
        approval_code=payment.approval_code,
        approved_at=to_instant(payment.approved_at),
        approved_by=payment.approved_by,
        simulated=payment.simulated,
        status=payment.status.value,
        created_at=to_instant(payment.created_at),
        updated_at=to_instant(payment.updated_at),
    )


def _to_domain(record: PaymentRecord) -> Payment:
    return Payment(
        id=record.id,
        partner_id=record.partner_id,
        amount=record.amount,
        applied_fee_rate=record.applied_fee_rate,
        fee_amount=record.fee_amount,
        net_amount=record.net_amount,
        card_bin=record.card_bin,
        card_last4=record.card_last4,
        approval_code=record.approval_code,
        approved_at=from_instant(record.approved_at),
        approved_by=record.approved_by,
        simulated=record.simulated,
        status=PaymentStatus(record.status),
        created_at=from_instant(record.created_at),
        updated_at=from_instant(record.updated_at),
    )
