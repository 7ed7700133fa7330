"""Always-approving gateway for partners the test provider does not serve"""

import logging
import time

from pg_gateway.domain.models import ApprovalRequest, ApprovalResult
from pg_gateway.infrastructure.clients.base import (
    ApprovalGateway,
    ApprovalOutcome,
    approval_time,
    generate_approval_code,
    is_even_partner,
)
from pg_gateway.infrastructure.observability.metrics import record_approval

logger = logging.getLogger(__name__)


class MockApprovalGateway(ApprovalGateway):
    """Approves every request; serves odd partner ids"""

    name = "mock"

    def supports(self, partner_id: int) -> bool:
        return not is_even_partner(partner_id)

    async def approve(self, request: ApprovalRequest) -> ApprovalOutcome:
        started = time.perf_counter()
        result = ApprovalResult(
            approval_code=generate_approval_code(),
            approved_at=approval_time(),
            masked_card_last4=request.card_last4,
            gateway=self.name,
        )
        record_approval(self.name, "approved", time.perf_counter() - started)
        logger.info(
            "Mock approval",
            extra={"partner_id": request.partner_id, "approval_code": result.approval_code},
        )
        return result
