"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple


class PaymentStatus(str, Enum):
    """Ledger status of a payment; only APPROVED is produced today"""

    APPROVED = "APPROVED"
    CANCELED = "CANCELED"


class FailureKind(str, Enum):
    """Category of an approval gateway failure"""

    AUTH = "AUTH"
    VALIDATION = "VALIDATION"
    PROVIDER = "PROVIDER"


@dataclass(frozen=True)
class Partner:
    """Affiliated merchant allowed to charge cards through the gateway"""

    id: int
    code: str
    name: str
    active: bool


@dataclass(frozen=True)
class FeePolicy:
    """Fee terms for a partner, effective from a UTC instant onwards"""

    id: Optional[int]
    partner_id: int
    effective_from: datetime
    percentage: Decimal  # fraction, e.g. 0.0235
    fixed_fee: Decimal


@dataclass(frozen=True)
class Payment:
    """Ledger entry for an approved card payment.

    Timestamps are naive datetimes in UTC. Only masked card data (BIN and
    last four digits) is ever carried.
    ``approved_by`` names the gateway that authorized the charge; ``simulated``
    marks approvals generated locally because the provider was unreachable.
    """

    partner_id: int
    amount: Decimal
    applied_fee_rate: Decimal
    fee_amount: Decimal
    net_amount: Decimal
    card_bin: Optional[str]
    card_last4: Optional[str]
    approval_code: str
    approved_at: datetime
    status: PaymentStatus
    created_at: datetime
    updated_at: datetime
    approved_by: str = ""
    simulated: bool = False
    id: Optional[int] = None

    def with_id(self, payment_id: int) -> "Payment":
        return replace(self, id=payment_id)


@dataclass(frozen=True)
class PaymentCommand:
    """Incoming request to charge a card for a partner"""

    partner_id: int
    amount: Decimal
    card_bin: Optional[str] = None
    card_last4: Optional[str] = None
    product_name: Optional[str] = None


@dataclass(frozen=True)
class ApprovalRequest:
    """Payload handed to an approval gateway"""

    partner_id: int
    amount: Decimal
    card_bin: Optional[str] = None
    card_last4: Optional[str] = None
    product_name: Optional[str] = None


@dataclass(frozen=True)
class ApprovalResult:
    """Successful authorization returned by a gateway.

    ``simulated`` is set when the remote gateway could not be reached and a
    locally generated approval was substituted.
    """

    approval_code: str
    approved_at: datetime
    status: PaymentStatus = PaymentStatus.APPROVED
    masked_card_last4: Optional[str] = None
    gateway: str = ""
    simulated: bool = False


@dataclass(frozen=True)
class ProviderError:
    """Structured rejection body returned by an approval provider"""

    code: int
    error_code: str
    message: str
    reference_id: str


@dataclass(frozen=True)
class ApprovalFailure:
    """Failed authorization returned by a gateway as a value"""

    kind: FailureKind
    message: str
    error: Optional[ProviderError] = None
    gateway: str = ""
    causes: Tuple["ApprovalFailure", ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class PaymentFilter:
    """Optional constraints for payment history; None means unconstrained"""

    partner_id: Optional[int] = None
    status: Optional[PaymentStatus] = None
    from_at: Optional[datetime] = None  # inclusive
    to_at: Optional[datetime] = None  # exclusive


@dataclass(frozen=True)
class Cursor:
    """Ordering key of the last row a client has seen"""

    created_at: datetime
    id: int


@dataclass(frozen=True)
class QueryFilter:
    """Payment history request: filter plus pagination window"""

    partner_id: Optional[int] = None
    status: Optional[PaymentStatus] = None
    from_at: Optional[datetime] = None
    to_at: Optional[datetime] = None
    cursor: Optional[str] = None
    limit: int = 20

    def to_payment_filter(self) -> PaymentFilter:
        return PaymentFilter(
            partner_id=self.partner_id,
            status=self.status,
            from_at=self.from_at,
            to_at=self.to_at,
        )


@dataclass(frozen=True)
class PaymentPage:
    """One window of payments plus the key needed to continue after it"""

    items: List[Payment]
    has_next: bool
    next_cursor_created_at: Optional[datetime] = None
    next_cursor_id: Optional[int] = None


@dataclass(frozen=True)
class PaymentSummary:
    """Aggregates over every payment matching a filter"""

    count: int
    total_amount: Decimal
    total_net_amount: Decimal


@dataclass(frozen=True)
class QueryResult:
    """Payment history response"""

    items: List[Payment]
    summary: PaymentSummary
    next_cursor: Optional[str]
    has_next: bool
