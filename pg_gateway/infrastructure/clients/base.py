"""Approval gateway interface.

Every card-approval provider (remote API, local simulator, fallback chain)
implements this interface. Provider outcomes are returned as values: an
ApprovalResult on success, an ApprovalFailure otherwise.
"""

import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Union

from pg_gateway.domain.models import ApprovalFailure, ApprovalRequest, ApprovalResult

ApprovalOutcome = Union[ApprovalResult, ApprovalFailure]


class ApprovalGateway(ABC):
    """Abstract base class for approval gateways."""

    name: str = "gateway"

    @abstractmethod
    def supports(self, partner_id: int) -> bool:
        """Whether this gateway may authorize charges for the partner."""
        ...

    @abstractmethod
    async def approve(self, request: ApprovalRequest) -> ApprovalOutcome:
        """
        Authorize a card charge.

        Never raises for provider outcomes: authentication, validation and
        provider errors come back as an ApprovalFailure.
        """
        ...


def is_even_partner(partner_id: int) -> bool:
    """Test provider convention: it serves even partner ids only"""
    return partner_id % 2 == 0


def generate_approval_code() -> str:
    """8-digit approval code derived from the current epoch milliseconds"""
    return str(time.time_ns() // 1_000_000)[-8:].zfill(8)


def approval_time() -> datetime:
    """Naive UTC approval timestamp"""
    return datetime.now(timezone.utc).replace(tzinfo=None)
