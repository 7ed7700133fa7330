"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from pg_gateway.domain.models import Payment, PaymentStatus, PaymentSummary


class PaymentRequest(BaseModel):
    """Request body for POST /v1/payments"""

    partner_id: int = Field(..., description="Partner identifier")
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2, description="Charged amount")
    card_bin: Optional[str] = Field(None, min_length=4, max_length=8, pattern=r"^\d+$")
    card_last4: Optional[str] = Field(None, min_length=4, max_length=4, pattern=r"^\d{4}$")
    product_name: Optional[str] = Field(None, max_length=200)


class PaymentResponse(BaseModel):
    """Single payment ledger entry"""

    id: int
    partner_id: int
    amount: Decimal
    applied_fee_rate: Decimal
    fee_amount: Decimal
    net_amount: Decimal
    card_bin: Optional[str] = None
    card_last4: Optional[str] = None
    approval_code: str
    approved_at: datetime
    status: PaymentStatus
    created_at: datetime
    approved_by: str
    simulated: bool = False

    @classmethod
    def from_domain(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            partner_id=payment.partner_id,
            amount=payment.amount,
            applied_fee_rate=payment.applied_fee_rate,
            fee_amount=payment.fee_amount,
            net_amount=payment.net_amount,
            card_bin=payment.card_bin,
            card_last4=payment.card_last4,
            approval_code=payment.approval_code,
            approved_at=payment.approved_at,
            status=payment.status,
            created_at=payment.created_at,
            approved_by=payment.approved_by,
            simulated=payment.simulated,
        )


class SummarySchema(BaseModel):
    """Totals over the whole filtered set, independent of the page"""

    count: int
    total_amount: Decimal
    total_net_amount: Decimal

    @classmethod
    def from_domain(cls, summary: PaymentSummary) -> "SummarySchema":
        return cls(
            count=summary.count,
            total_amount=summary.total_amount,
            total_net_amount=summary.total_net_amount,
        )


class PaymentListResponse(BaseModel):
    """Response for GET /v1/payments"""

    items: List[PaymentResponse]
    summary: SummarySchema
    next_cursor: Optional[str] = None
    has_next: bool
