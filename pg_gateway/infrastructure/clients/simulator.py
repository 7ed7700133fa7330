"""Local simulation of the test approval provider.

Deterministic stand-in for the remote provider, following its documented
test scenarios:

1. Success
   - card 1111-1111-1111-1111, any amount
   - card 2222-2222-2222-2222, amount <= 50,000
2. Decline (422 equivalent), card 2222-2222-2222-2222 with amount > 50,000
   - 51,000: 1001 STOLEN_OR_LOST
   - 52,000: 1003 EXPIRED_OR_BLOCKED
   - 53,000: 1004 TAMPERED_CARD
   - 54,000: 1005 TAMPERED_CARD (card not allowed)
   - any other amount: 1002 INSUFFICIENT_LIMIT
3. Authentication failure (401 equivalent, no body)
   - partner -1: API-KEY header missing
   - partner -2: API-KEY malformed
   - partner -3: API-KEY not registered
4. Request validation
   - unknown card, or BIN/last-4 mismatch
   - non-integral amount
"""

import logging
import time
import uuid
from decimal import Decimal
from typing import Dict, Optional, Tuple

from pg_gateway.domain.models import (
    ApprovalFailure,
    ApprovalRequest,
    ApprovalResult,
    FailureKind,
    ProviderError,
)
from pg_gateway.infrastructure.clients.base import (
    ApprovalGateway,
    ApprovalOutcome,
    approval_time,
    generate_approval_code,
    is_even_partner,
)
from pg_gateway.infrastructure.observability.metrics import record_approval

logger = logging.getLogger(__name__)

APPROVE_TEST_CARD = ("1111", "1111")
DECLINE_TEST_CARD = ("2222", "2222")
SUCCESS_BOUNDARY_AMOUNT = Decimal("50000")

DECLINES_BY_AMOUNT: Dict[Decimal, Tuple[int, str, str]] = {
    Decimal("51000"): (1001, "STOLEN_OR_LOST", "Card reported stolen or lost."),
    Decimal("52000"): (1003, "EXPIRED_OR_BLOCKED", "Card is expired or blocked."),
    Decimal("53000"): (1004, "TAMPERED_CARD", "Card is forged or tampered."),
    Decimal("54000"): (1005, "TAMPERED_CARD", "Card is forged or tampered. (card not allowed)"),
}
INSUFFICIENT_LIMIT = (1002, "INSUFFICIENT_LIMIT", "Card limit exceeded.")

AUTH_FAILURES: Dict[int, str] = {
    -1: "API-KEY header missing",
    -2: "API-KEY malformed",
    -3: "API-KEY not registered",
}


def decline_for_amount(amount: Decimal) -> Optional[ProviderError]:
    """Decline mapping for the decline test card; None means approve"""
    if amount <= SUCCESS_BOUNDARY_AMOUNT:
        return None

    code, error_code, message = DECLINES_BY_AMOUNT.get(amount, INSUFFICIENT_LIMIT)
    return ProviderError(
        code=code,
        error_code=error_code,
        message=message,
        reference_id=str(uuid.uuid4()),
    )


def evaluate_test_card(
    card_bin: Optional[str],
    card_last4: Optional[str],
    amount: Decimal,
) -> Optional[ApprovalFailure]:
    """
    Apply the provider's test-card rules.

    Returns:
        None when the charge is approved, otherwise a VALIDATION failure
        (with a structured error body for amount-based declines)
    """
    card = (card_bin, card_last4)
    if card not in (APPROVE_TEST_CARD, DECLINE_TEST_CARD):
        return ApprovalFailure(kind=FailureKind.VALIDATION, message="Invalid card number.")

    if amount != amount.to_integral_value():
        return ApprovalFailure(kind=FailureKind.VALIDATION, message="Amount must be a whole number.")

    if card == DECLINE_TEST_CARD:
        error = decline_for_amount(amount)
        if error is not None:
            return ApprovalFailure(kind=FailureKind.VALIDATION, message=error.message, error=error)

    return None


class SimulatedApprovalGateway(ApprovalGateway):
    """Fully local approval provider for tests and offline operation"""

    name = "simulator"

    def supports(self, partner_id: int) -> bool:
        return is_even_partner(partner_id)

    async def approve(self, request: ApprovalRequest) -> ApprovalOutcome:
        started = time.perf_counter()
        outcome = self._decide(request)
        outcome_label = "approved" if isinstance(outcome, ApprovalResult) else outcome.kind.value
        record_approval(self.name, outcome_label, time.perf_counter() - started)
        return outcome

    def _decide(self, request: ApprovalRequest) -> ApprovalOutcome:
        log_context = {"partner_id": request.partner_id, "amount": str(request.amount), "gateway": self.name}

        auth_reason = AUTH_FAILURES.get(request.partner_id)
        if auth_reason is not None:
            logger.warning(f"Simulated authentication failure: {auth_reason}", extra=log_context)
            return ApprovalFailure(kind=FailureKind.AUTH, message=auth_reason, gateway=self.name)

        failure = evaluate_test_card(request.card_bin, request.card_last4, request.amount)
        if failure is not None:
            logger.warning(
                f"Simulated decline: {failure.message}",
                extra={**log_context, "error_code": failure.error.error_code if failure.error else None},
            )
            return ApprovalFailure(
                kind=failure.kind,
                message=failure.message,
                error=failure.error,
                gateway=self.name,
            )

        result = ApprovalResult(
            approval_code=generate_approval_code(),
            approved_at=approval_time(),
            masked_card_last4=request.card_last4,
            gateway=self.name,
        )
        logger.info("Simulated approval", extra={**log_context, "approval_code": result.approval_code})
        return result
