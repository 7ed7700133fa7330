"""Remote approval provider HTTP client"""

import json
import logging
import time
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from pg_gateway.config import settings
from pg_gateway.domain.models import (
    ApprovalFailure,
    ApprovalRequest,
    ApprovalResult,
    FailureKind,
    PaymentStatus,
    ProviderError,
)
from pg_gateway.infrastructure.clients.base import (
    ApprovalGateway,
    ApprovalOutcome,
    approval_time,
    generate_approval_code,
    is_even_partner,
)
from pg_gateway.infrastructure.crypto.cipher import PayloadCipher
from pg_gateway.infrastructure.observability.metrics import mock_substitution_counter, record_approval
from pg_gateway.utils.date_utils import from_instant

logger = logging.getLogger(__name__)

APPROVE_PATH = "/api/v1/pay/credit-card"

# Fixed cardholder fields expected by the test provider
DEFAULT_BIRTH_DATE = "19900101"
DEFAULT_EXPIRY = "1227"
DEFAULT_PASSWORD = "12"


def build_card_number(card_bin: Optional[str], card_last4: Optional[str]) -> str:
    """Test-provider card number layout: BIN-LAST4-BIN-LAST4"""
    if not card_bin or not card_last4:
        return ""
    return f"{card_bin}-{card_last4}-{card_bin}-{card_last4}"


def build_approval_payload(request: ApprovalRequest) -> Dict[str, Any]:
    """Plaintext request body, encrypted before it leaves the process"""
    amount = request.amount
    return {
        "cardNumber": build_card_number(request.card_bin, request.card_last4),
        "birthDate": DEFAULT_BIRTH_DATE,
        "expiry": DEFAULT_EXPIRY,
        "password": DEFAULT_PASSWORD,
        "amount": int(amount) if amount == amount.to_integral_value() else str(amount),
    }


def parse_approved_at(value: Any) -> datetime:
    """Provider timestamp -> naive UTC; unparseable values fall back to now"""
    try:
        return from_instant(datetime.fromisoformat(value))
    except (TypeError, ValueError):
        logger.warning("Unparseable approvedAt from provider, using current time", extra={"approved_at": value})
        return approval_time()


class RemoteApprovalGateway(ApprovalGateway):
    """Client for the external card approval API"""

    name = "remote"

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        iv: str | None = None,
        cipher: PayloadCipher | None = None,
        timeout: float | None = None,
        mock_on_transport_error: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.approval_api_base
        self.api_key = api_key if api_key is not None else settings.approval_api_key
        self.iv = iv if iv is not None else settings.approval_api_iv
        self.cipher = cipher or PayloadCipher()
        self.timeout = timeout or settings.http_timeout_seconds
        self.mock_on_transport_error = (
            settings.approval_mock_on_transport_error if mock_on_transport_error is None else mock_on_transport_error
        )
        self.transport = transport

    def supports(self, partner_id: int) -> bool:
        return is_even_partner(partner_id)

    async def approve(self, request: ApprovalRequest) -> ApprovalOutcome:
        """
        Send an encrypted approval request to the provider.

        Outcome mapping:
        - 2xx with a valid body: ApprovalResult
        - 401: AUTH failure
        - 422: VALIDATION failure carrying the provider's error body
        - other statuses or malformed bodies: PROVIDER failure
        - timeouts and network errors: local mock approval (simulated=True)
          when mock_on_transport_error is set, PROVIDER failure otherwise
        - any other httpx error: PROVIDER failure
        """
        started = time.perf_counter()
        logger.info(
            "Remote approval requested",
            extra={"partner_id": request.partner_id, "amount": str(request.amount), "gateway": self.name},
        )

        plaintext = json.dumps(build_approval_payload(request))
        envelope = {"enc": self.cipher.encrypt(plaintext, self.api_key, self.iv)}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    f"{self.base_url}{APPROVE_PATH}",
                    json=envelope,
                    headers={"API-KEY": self.api_key},
                )
        except httpx.TransportError as e:
            outcome = self._on_transport_error(request, e)
        except httpx.HTTPError as e:
            # Undecodable bodies, stream and URL errors are never mocked
            logger.error(f"Approval provider error: {e!r}", extra={"partner_id": request.partner_id})
            outcome = self._failure(FailureKind.PROVIDER, f"Approval provider error: {e!r}")
        else:
            outcome = self._map_response(response)

        outcome_label = "approved" if isinstance(outcome, ApprovalResult) else outcome.kind.value
        record_approval(self.name, outcome_label, time.perf_counter() - started)
        return outcome

    def _on_transport_error(self, request: ApprovalRequest, error: httpx.TransportError) -> ApprovalOutcome:
        if not self.mock_on_transport_error:
            logger.error(f"Approval provider unreachable: {error!r}", extra={"partner_id": request.partner_id})
            return self._failure(FailureKind.PROVIDER, f"Approval provider unreachable: {error!r}")

        mock_substitution_counter.inc()
        result = ApprovalResult(
            approval_code=generate_approval_code(),
            approved_at=approval_time(),
            masked_card_last4=request.card_last4,
            gateway=self.name,
            simulated=True,
        )
        logger.warning(
            f"Approval provider unreachable, substituting mock approval: {error!r}",
            extra={"partner_id": request.partner_id, "approval_code": result.approval_code},
        )
        return result

    def _map_response(self, response: httpx.Response) -> ApprovalOutcome:
        status_code = response.status_code

        if status_code == 401:
            logger.error("Approval provider rejected API key (401)")
            return self._failure(FailureKind.AUTH, "Approval provider authentication failed (401)")

        if status_code == 422:
            error = self._parse_error(response)
            message = error.message if error else "Approval rejected by provider (422)"
            logger.error(
                f"Approval rejected: {message}",
                extra={"error_code": error.error_code if error else None},
            )
            return self._failure(FailureKind.VALIDATION, message, error)

        if not response.is_success:
            logger.error(f"Approval provider error: {status_code}")
            return self._failure(FailureKind.PROVIDER, f"Approval provider error: {status_code}")

        try:
            data = response.json()
            status = data.get("status", PaymentStatus.APPROVED.value)
            if status != PaymentStatus.APPROVED.value:
                return self._failure(FailureKind.PROVIDER, f"Unexpected approval status: {status}")

            result = ApprovalResult(
                approval_code=str(data["approvalCode"]),
                approved_at=parse_approved_at(data.get("approvedAt")),
                masked_card_last4=data.get("maskedCardLast4"),
                gateway=self.name,
            )
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            return self._failure(FailureKind.PROVIDER, f"Invalid approval response from provider: {e!r}")

        logger.info("Remote approval succeeded", extra={"approval_code": result.approval_code})
        return result

    @staticmethod
    def _parse_error(response: httpx.Response) -> Optional[ProviderError]:
        try:
            body = response.json()
            return ProviderError(
                code=int(body["code"]),
                error_code=str(body["errorCode"]),
                message=str(body["message"]),
                reference_id=str(body.get("referenceId", "")),
            )
        except (KeyError, ValueError, TypeError, AttributeError):
            logger.error("Could not parse provider error body", extra={"body": response.text[:200]})
            return None

    def _failure(
        self,
        kind: FailureKind,
        message: str,
        error: Optional[ProviderError] = None,
    ) -> ApprovalFailure:
        return ApprovalFailure(kind=kind, message=message, error=error, gateway=self.name)
