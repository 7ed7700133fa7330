"""Fallback approval gateway: remote provider first, local simulator second"""

import logging

from pg_gateway.domain.models import ApprovalFailure, ApprovalRequest, FailureKind
from pg_gateway.infrastructure.clients.base import ApprovalGateway, ApprovalOutcome
from pg_gateway.infrastructure.observability.metrics import fallback_counter

logger = logging.getLogger(__name__)


class FallbackApprovalGateway(ApprovalGateway):
    """
    Chain a primary gateway with a simulator.

    The primary always gets the first and only exclusive attempt; the
    simulator is called once, and only after the primary has fully failed,
    so a real charge is never submitted through two providers at once. When
    both fail the caller gets one aggregate PROVIDER failure.
    """

    name = "fallback"

    def __init__(self, primary: ApprovalGateway, simulator: ApprovalGateway):
        self.primary = primary
        self.simulator = simulator

    def supports(self, partner_id: int) -> bool:
        return self.primary.supports(partner_id) or self.simulator.supports(partner_id)

    async def approve(self, request: ApprovalRequest) -> ApprovalOutcome:
        log_context = {"partner_id": request.partner_id, "amount": str(request.amount)}

        try:
            outcome = await self.primary.approve(request)
        except Exception as e:
            logger.exception(f"Primary gateway {self.primary.name} raised", extra=log_context)
            outcome = ApprovalFailure(
                kind=FailureKind.PROVIDER,
                message=f"{self.primary.name} raised {e!r}",
                gateway=self.primary.name,
            )

        if not isinstance(outcome, ApprovalFailure):
            return outcome

        primary_failure = outcome
        fallback_counter.inc()
        logger.warning(
            f"Primary gateway failed, falling back to {self.simulator.name}: {primary_failure.message}",
            extra={**log_context, "failure_kind": primary_failure.kind.value},
        )

        outcome = await self.simulator.approve(request)
        if not isinstance(outcome, ApprovalFailure):
            logger.info("Fallback approval succeeded", extra={**log_context, "approval_code": outcome.approval_code})
            return outcome

        logger.error(f"Fallback gateway failed too: {outcome.message}", extra=log_context)
        return ApprovalFailure(
            kind=FailureKind.PROVIDER,
            message=(
                f"All approval gateways failed: "
                f"{self.primary.name}={primary_failure.message}, {self.simulator.name}={outcome.message}"
            ),
            gateway=self.name,
            causes=(primary_failure, outcome),
        )
