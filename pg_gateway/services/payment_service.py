"""Payment approval orchestration"""

import logging
from typing import Sequence

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
from pg_gateway.domain.fees import calculate_fee
from pg_gateway.domain.models import (
    ApprovalFailure,
    ApprovalRequest,
    ApprovalResult,
    FailureKind,
    Payment,
    PaymentCommand,
    PaymentStatus,
)
from pg_gateway.domain.ports import FeePolicyReader, PartnerReader, PaymentStore
from pg_gateway.infrastructure.clients.base import ApprovalGateway
from pg_gateway.utils.date_utils import utc_now

logger = logging.getLogger(__name__)


def select_gateway(gateways: Sequence[ApprovalGateway], partner_id: int) -> ApprovalGateway:
    """First gateway, in registration order, that supports the partner"""
    for gateway in gateways:
        if gateway.supports(partner_id):
            return gateway
    raise GatewayConfigurationError(partner_id)


def raise_for_failure(failure: ApprovalFailure) -> None:
    """Translate a gateway failure into the domain error the caller sees"""
    if failure.kind == FailureKind.AUTH:
        raise AuthenticationFailedError(f"Approval authentication failed: {failure.message}")
    if failure.kind == FailureKind.VALIDATION:
        raise ApprovalRejectedError(failure.message, failure.error)
    raise ProviderUnavailableError(failure.message)


class PaymentService:
    """
    Approve, price and record one card payment.

    Steps run in a fixed order and any failure is terminal:
    1. Partner lookup and active check
    2. Gateway selection
    3. Approval (the gateway's own fallback is the only retry)
    4. Effective fee policy lookup
    5. Fee calculation and persistence

    Partner and gateway checks precede the approval so a charge is never
    authorized for a request that was doomed anyway. The fee policy needs the
    confirmed partner and is looked up only after approval; its absence is
    reported as PolicyNotFoundError with the approval code attached.
    """

    def __init__(
        self,
        partners: PartnerReader,
        fee_policies: FeePolicyReader,
        payments: PaymentStore,
        gateways: Sequence[ApprovalGateway],
    ):
        self.partners = partners
        self.fee_policies = fee_policies
        self.payments = payments
        self.gateways = list(gateways)

    async def pay(self, command: PaymentCommand) -> Payment:
        if command.amount <= 0:
            raise InvalidPaymentError(f"Amount must be positive: {command.amount}")

        # 1. Partner
        partner = self.partners.get(command.partner_id)
        if partner is None:
            raise PartnerNotFoundError(command.partner_id)
        if not partner.active:
            raise InactivePartnerError(partner.id)

        # 2. Gateway
        gateway = select_gateway(self.gateways, partner.id)

        # 3. Approval
        outcome = await gateway.approve(
            ApprovalRequest(
                partner_id=partner.id,
                amount=command.amount,
                card_bin=command.card_bin,
                card_last4=command.card_last4,
                product_name=command.product_name,
            )
        )
        if isinstance(outcome, ApprovalFailure):
            logger.warning(
                f"Approval failed: {outcome.message}",
                extra={"partner_id": partner.id, "gateway": gateway.name, "failure_kind": outcome.kind.value},
            )
            raise_for_failure(outcome)
        approval: ApprovalResult = outcome
        if approval.simulated:
            logger.warning(
                "Payment approved by a locally simulated authorization",
                extra={"partner_id": partner.id, "gateway": approval.gateway, "approval_code": approval.approval_code},
            )

        # 4. Fee policy
        now = utc_now()
        policy = self.fee_policies.find_effective_policy(partner.id, now)
        if policy is None:
            logger.error(
                "Approved payment has no effective fee policy",
                extra={"partner_id": partner.id, "approval_code": approval.approval_code},
            )
            raise PolicyNotFoundError(partner.id, approval.approval_code)

        # 5. Fee and persistence
        fee, net = calculate_fee(command.amount, policy.percentage, policy.fixed_fee)
        payment = Payment(
            partner_id=partner.id,
            amount=command.amount,
            applied_fee_rate=policy.percentage,
            fee_amount=fee,
            net_amount=net,
            card_bin=command.card_bin,
            card_last4=command.card_last4 or approval.masked_card_last4,
            approval_code=approval.approval_code,
            approved_at=approval.approved_at,
            status=PaymentStatus.APPROVED,
            created_at=now,
            updated_at=now,
            approved_by=approval.gateway,
            simulated=approval.simulated,
        )
        return self.payments.save(payment)
