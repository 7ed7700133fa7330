"""Dependency injection for FastAPI endpoints"""

from typing import List

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from pg_gateway.config import settings
from pg_gateway.infrastructure.clients.approval import RemoteApprovalGateway
from pg_gateway.infrastructure.clients.base import ApprovalGateway
from pg_gateway.infrastructure.clients.fallback import FallbackApprovalGateway
from pg_gateway.infrastructure.clients.mock import MockApprovalGateway
from pg_gateway.infrastructure.clients.simulator import SimulatedApprovalGateway
from pg_gateway.infrastructure.database.repositories import (
    FeePolicyRepository,
    PartnerRepository,
    PaymentRepository,
)
from pg_gateway.infrastructure.database.session import get_db
from pg_gateway.services.payment_service import PaymentService
from pg_gateway.services.query_service import PaymentQueryService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_approval_gateways() -> List[ApprovalGateway]:
    """Approval gateways in selection order"""
    remote = RemoteApprovalGateway()
    gateways: List[ApprovalGateway] = [
        FallbackApprovalGateway(remote, SimulatedApprovalGateway()) if settings.approval_fallback_enabled else remote
    ]
    if settings.approval_mock_enabled:
        gateways.append(MockApprovalGateway())
    return gateways


def get_payment_service(
    db: Session = Depends(get_db),
    gateways: List[ApprovalGateway] = Depends(get_approval_gateways),
) -> PaymentService:
    """Provide payment orchestrator bound to the request session"""
    return PaymentService(
        partners=PartnerRepository(db),
        fee_policies=FeePolicyRepository(db),
        payments=PaymentRepository(db),
        gateways=gateways,
    )


def get_query_service(db: Session = Depends(get_db)) -> PaymentQueryService:
    """Provide payment history query service"""
    return PaymentQueryService(PaymentRepository(db))
