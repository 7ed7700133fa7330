"""Unit tests for payment approval orchestration"""

import pytest
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock
from pg_gateway.domain.exceptions import (
    ApprovalRejectedError,
    AuthenticationFailedError,
    GatewayConfigurationError,
    InactivePartnerError,
    InvalidPaymentError,
    PartnerNotFoundError,
    PolicyNotFoundError,
    ProviderUnavailableError,
)
from pg_gateway.domain.models import (
    ApprovalFailure,
    ApprovalResult,
    FailureKind,
    FeePolicy,
    Partner,
    Payment,
    PaymentCommand,
    PaymentStatus,
)
from pg_gateway.infrastructure.clients.mock import MockApprovalGateway
from pg_gateway.infrastructure.clients.simulator import SimulatedApprovalGateway
from pg_gateway.services.payment_service import PaymentService, select_gateway


class InMemoryPartners:
    def __init__(self, partners: List[Partner]):
        self.partners = {p.id: p for p in partners}

    def get(self, partner_id: int) -> Optional[Partner]:
        return self.partners.get(partner_id)


class InMemoryFeePolicies:
    def __init__(self, policies: List[FeePolicy]):
        self.policies = policies

    def find_effective_policy(self, partner_id: int, as_of: datetime) -> Optional[FeePolicy]:
        candidates = [p for p in self.policies if p.partner_id == partner_id and p.effective_from <= as_of]
        return max(candidates, key=lambda p: p.effective_from, default=None)


class InMemoryPayments:
    def __init__(self):
        self.saved: Dict[int, Payment] = {}

    def save(self, payment: Payment) -> Payment:
        stored = payment.with_id(len(self.saved) + 1)
        self.saved[stored.id] = stored
        return stored

    def page_by(self, payment_filter, cursor, fetch):
        raise NotImplementedError

    def summary(self, payment_filter):
        raise NotImplementedError


PARTNERS = [
    Partner(id=1, code="MOCK1", name="Mock Partner 1", active=True),
    Partner(id=2, code="TESTPAY1", name="Test Provider Partner", active=True),
    Partner(id=3, code="MOCK3", name="Suspended Partner", active=False),
    Partner(id=5, code="NOPOLICY", name="Unpriced Partner", active=True),
]

POLICIES = [
    FeePolicy(id=1, partner_id=1, effective_from=datetime(2020, 1, 1), percentage=Decimal("0.0235"), fixed_fee=Decimal("100")),
    FeePolicy(id=2, partner_id=2, effective_from=datetime(2020, 1, 1), percentage=Decimal("0.0300"), fixed_fee=Decimal("100")),
    # Future policy must not apply yet
    FeePolicy(id=3, partner_id=2, effective_from=datetime(2999, 1, 1), percentage=Decimal("0.5"), fixed_fee=Decimal("0")),
]


def make_service(gateways=None, payments: Optional[InMemoryPayments] = None) -> PaymentService:
    return PaymentService(
        partners=InMemoryPartners(PARTNERS),
        fee_policies=InMemoryFeePolicies(POLICIES),
        payments=payments or InMemoryPayments(),
        gateways=gateways if gateways is not None else [SimulatedApprovalGateway(), MockApprovalGateway()],
    )


def command(partner_id: int, amount: str, card=("1111", "1111")) -> PaymentCommand:
    return PaymentCommand(partner_id=partner_id, amount=Decimal(amount), card_bin=card[0], card_last4=card[1])


def failing_gateway(kind: FailureKind, message: str = "failed") -> MagicMock:
    gateway = MagicMock()
    gateway.name = "stub"
    gateway.supports.return_value = True
    gateway.approve = AsyncMock(return_value=ApprovalFailure(kind=kind, message=message))
    return gateway


async def test_pay_applies_fee_and_persists():
    """Test 10,000 at 2.35% + 100 -> fee 335, net 9665"""
    payments = InMemoryPayments()

    payment = await make_service(payments=payments).pay(command(1, "10000"))

    assert payment.id == 1
    assert payment.fee_amount == Decimal("335.00")
    assert payment.net_amount == Decimal("9665.00")
    assert payment.applied_fee_rate == Decimal("0.0235")
    assert payment.status == PaymentStatus.APPROVED
    assert payment.card_last4 == "1111"
    assert len(payment.approval_code) == 8
    assert payment.created_at == payment.updated_at
    assert payments.saved[1] == payment


async def test_pay_uses_currently_effective_policy():
    """Test future-dated policy is ignored"""
    payment = await make_service().pay(command(2, "10000"))

    assert payment.applied_fee_rate == Decimal("0.0300")
    assert payment.fee_amount == Decimal("400.00")


async def test_pay_routes_by_partner_parity():
    """Test odd partner goes to mock, even to simulator"""
    simulator = SimulatedApprovalGateway()
    mock = MockApprovalGateway()

    assert select_gateway([simulator, mock], 1) is mock
    assert select_gateway([simulator, mock], 2) is simulator


async def test_pay_rejects_non_positive_amount():
    """Test zero amount is rejected before any lookup"""
    with pytest.raises(InvalidPaymentError):
        await make_service().pay(command(1, "0"))


async def test_pay_unknown_partner():
    """Test missing partner"""
    with pytest.raises(PartnerNotFoundError, match="Partner not found: 999"):
        await make_service().pay(command(999, "10000"))


async def test_pay_inactive_partner_never_calls_gateway():
    """Test inactive partner is rejected before approval"""
    gateway = failing_gateway(FailureKind.PROVIDER)

    with pytest.raises(InactivePartnerError, match="Partner is inactive: 3"):
        await make_service(gateways=[gateway]).pay(command(3, "10000"))

    gateway.approve.assert_not_awaited()


async def test_pay_without_supporting_gateway():
    """Test no registered gateway serves the partner"""
    with pytest.raises(GatewayConfigurationError):
        await make_service(gateways=[SimulatedApprovalGateway()]).pay(command(1, "10000"))


async def test_pay_without_policy_keeps_approval_code():
    """Test approved charge with no effective policy is reported, not saved"""
    payments = InMemoryPayments()

    with pytest.raises(PolicyNotFoundError, match="Policy not found: 5") as exc_info:
        await make_service(payments=payments).pay(command(5, "10000"))

    assert exc_info.value.approval_code is not None
    assert payments.saved == {}


async def test_pay_declined_by_provider():
    """Test decline card at 51,000 surfaces the provider error"""
    payments = InMemoryPayments()

    with pytest.raises(ApprovalRejectedError) as exc_info:
        await make_service(payments=payments).pay(command(2, "51000", card=("2222", "2222")))

    assert exc_info.value.code == 1001
    assert exc_info.value.error_code == "STOLEN_OR_LOST"
    assert payments.saved == {}


async def test_pay_auth_failure():
    """Test AUTH failure maps to authentication error"""
    with pytest.raises(AuthenticationFailedError):
        await make_service(gateways=[failing_gateway(FailureKind.AUTH)]).pay(command(2, "10000"))


async def test_pay_provider_failure():
    """Test PROVIDER failure maps to unavailable"""
    gateway = failing_gateway(FailureKind.PROVIDER, "All approval gateways failed: remote=x, simulator=y")

    with pytest.raises(ProviderUnavailableError, match="All approval gateways failed"):
        await make_service(gateways=[gateway]).pay(command(2, "10000"))


async def test_pay_records_approving_gateway():
    """Test the ledger entry names the gateway and is not simulated"""
    payment = await make_service().pay(command(2, "10000"))

    assert payment.approved_by == "simulator"
    assert payment.simulated is False


async def test_pay_keeps_simulated_flag_and_provider_last4():
    """Test a locally generated approval is recorded as simulated"""
    gateway = MagicMock()
    gateway.name = "remote"
    gateway.supports.return_value = True
    gateway.approve = AsyncMock(
        return_value=ApprovalResult(
            approval_code="00000042",
            approved_at=datetime(2024, 1, 1),
            masked_card_last4="4242",
            gateway="remote",
            simulated=True,
        )
    )

    payment = await make_service(gateways=[gateway]).pay(
        PaymentCommand(partner_id=2, amount=Decimal("10000"))
    )

    assert payment.simulated is True
    assert payment.approved_by == "remote"
    assert payment.approval_code == "00000042"
    assert payment.card_last4 == "4242"
