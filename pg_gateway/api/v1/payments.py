"""POST /v1/payments and GET /v1/payments - card approval and payment history"""

import logging
import time
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from pg_gateway.api.dependencies import get_payment_service, get_query_service, get_request_id
from pg_gateway.api.v1.schemas import PaymentListResponse, PaymentRequest, PaymentResponse, SummarySchema
from pg_gateway.config import settings
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
from pg_gateway.domain.models import PaymentCommand, PaymentStatus, QueryFilter
from pg_gateway.infrastructure.database.session import get_db
from pg_gateway.infrastructure.observability.logging import log_payment
from pg_gateway.infrastructure.observability.metrics import record_payment
from pg_gateway.services.payment_service import PaymentService
from pg_gateway.services.query_service import PaymentQueryService
from pg_gateway.utils.date_utils import from_instant

router = APIRouter()


@router.post("/payments", response_model=PaymentResponse)
async def create_payment(
    request_body: PaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: PaymentService = Depends(get_payment_service),
):
    """
    Approve a card payment for a partner and record it.

    Flow:
    1. Validate partner (exists, active) and pick an approval gateway
    2. Request approval (remote provider, falling back to the simulator)
    3. Apply the partner's effective fee policy
    4. Persist the ledger entry and commit
    """
    start_time = time.time()
    request_id = get_request_id(request)
    log_context = {"request_id": request_id, "partner_id": request_body.partner_id}

    try:
        payment = await service.pay(
            PaymentCommand(
                partner_id=request_body.partner_id,
                amount=request_body.amount,
                card_bin=request_body.card_bin,
                card_last4=request_body.card_last4,
                product_name=request_body.product_name,
            )
        )
        db.commit()

    except InvalidPaymentError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    except PartnerNotFoundError as e:
        db.rollback()
        record_payment("not_found")
        raise HTTPException(status_code=404, detail=str(e))

    except InactivePartnerError as e:
        db.rollback()
        record_payment("inactive")
        logging.warning(f"Inactive partner: {e}", extra=log_context)
        raise HTTPException(status_code=403, detail=str(e))

    except GatewayConfigurationError as e:
        db.rollback()
        record_payment("no_gateway")
        logging.error(f"Gateway configuration error: {e}", extra=log_context)
        raise HTTPException(status_code=500, detail=str(e))

    except ApprovalRejectedError as e:
        db.rollback()
        record_payment("rejected")
        raise HTTPException(
            status_code=422,
            detail={"code": e.code, "error_code": e.error_code, "message": str(e)},
        )

    except AuthenticationFailedError as e:
        db.rollback()
        record_payment("auth_failed")
        logging.error(f"Approval authentication failed: {e}", extra=log_context)
        raise HTTPException(status_code=502, detail="Approval provider authentication failed")

    except ProviderUnavailableError as e:
        db.rollback()
        record_payment("unavailable")
        logging.error(f"Approval provider unavailable: {e}", extra=log_context)
        raise HTTPException(status_code=503, detail=str(e))

    except PolicyNotFoundError as e:
        db.rollback()
        record_payment("no_policy")
        logging.error(f"Approved but unbilled: {e}", extra={**log_context, "approval_code": e.approval_code})
        raise HTTPException(status_code=409, detail={"message": str(e), "approval_code": e.approval_code})

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra=log_context)
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_payment("approved")
    log_payment(
        request_id,
        payment.partner_id,
        payment.id,
        payment.amount,
        payment.fee_amount,
        payment.approval_code,
        duration_ms,
    )
    return PaymentResponse.from_domain(payment)


@router.get("/payments", response_model=PaymentListResponse)
def list_payments(
    partner_id: Optional[int] = Query(None, description="Partner identifier"),
    status: Optional[PaymentStatus] = Query(None, description="Payment status"),
    from_at: Optional[datetime] = Query(None, alias="from", description="Created at or after (inclusive)"),
    to_at: Optional[datetime] = Query(None, alias="to", description="Created before (exclusive)"),
    cursor: Optional[str] = Query(None, description="Opaque cursor from a previous page"),
    limit: int = Query(settings.default_page_limit, ge=1, le=settings.max_page_limit),
    service: PaymentQueryService = Depends(get_query_service),
):
    """
    Retrieve payment history, newest first, with totals for the whole filter.

    Returns:
        Page of payments, summary (count, total amount, total net amount),
        next cursor and has_next flag
    """
    result = service.query(
        QueryFilter(
            partner_id=partner_id,
            status=status,
            from_at=from_instant(from_at),
            to_at=from_instant(to_at),
            cursor=cursor,
            limit=limit,
        )
    )

    return PaymentListResponse(
        items=[PaymentResponse.from_domain(p) for p in result.items],
        summary=SummarySchema.from_domain(result.summary),
        next_cursor=result.next_cursor,
        has_next=result.has_next,
    )
