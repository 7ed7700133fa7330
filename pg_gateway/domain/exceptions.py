"""Domain-specific exceptions"""

from typing import Optional

from pg_gateway.domain.models import ProviderError


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidPaymentError(DomainException):
    """Payment request violates a basic invariant (e.g. non-positive amount)"""

    pass


class NotFoundError(DomainException):
    """Referenced entity does not exist"""

    pass


class PartnerNotFoundError(NotFoundError):
    """No partner with the requested id"""

    def __init__(self, partner_id: int):
        super().__init__(f"Partner not found: {partner_id}")
        self.partner_id = partner_id


class PolicyNotFoundError(NotFoundError):
    """No fee policy is effective for the partner.

    Raised after a successful approval, so the approval code is kept for
    reconciling an approved but unbilled charge.
    """

    def __init__(self, partner_id: int, approval_code: Optional[str] = None):
        super().__init__(f"Policy not found: {partner_id}")
        self.partner_id = partner_id
        self.approval_code = approval_code


class InactivePartnerError(DomainException):
    """Partner exists but may not be charged"""

    def __init__(self, partner_id: int):
        super().__init__(f"Partner is inactive: {partner_id}")
        self.partner_id = partner_id


class GatewayConfigurationError(DomainException):
    """No registered approval gateway supports the partner"""

    def __init__(self, partner_id: int):
        super().__init__(f"No approval gateway for partner {partner_id}")
        self.partner_id = partner_id


class AuthenticationFailedError(DomainException):
    """Approval provider rejected our credentials"""

    pass


class ApprovalRejectedError(DomainException):
    """Approval provider declined the charge"""

    def __init__(self, message: str, error: Optional[ProviderError] = None):
        super().__init__(message)
        self.error = error

    @property
    def code(self) -> Optional[int]:
        return self.error.code if self.error else None

    @property
    def error_code(self) -> Optional[str]:
        return self.error.error_code if self.error else None


class ProviderUnavailableError(DomainException):
    """Every approval path failed"""

    pass
