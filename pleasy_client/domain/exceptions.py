"""Domain-specific exceptions"""

from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class BankAPIError(DomainException):
    """Banking backend returned an error or is unavailable"""

    # Status codes meaning "this verb is not served here", not a business rule
    VERB_UNSUPPORTED_CODES = frozenset({405, 408})

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_definitive_rejection(self) -> bool:
        """True for 4xx business-rule rejections that retrying cannot fix"""
        if self.status_code is None:
            return False
        return 400 <= self.status_code < 500 and self.status_code not in self.VERB_UNSUPPORTED_CODES


class TransferValidationError(DomainException):
    """Transfer request rejected before reaching the backend"""

    pass


class SettlementError(DomainException):
    """Failure of a settlement workflow, tagged with where it happened"""

    reason = "SETTLEMENT_FAILED"

    def __init__(self, message: str, phase: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.phase = phase
        self.cause = cause


class NoCounterpartAvailable(SettlementError):
    """No other active account can receive or fund the residual balance"""

    reason = "NO_COUNTERPART_AVAILABLE"


class NegativeResidualBalance(SettlementError):
    """Overdrawn non-loan account; a transfer cannot bring it to zero"""

    reason = "NEGATIVE_BALANCE"


class ClearingFailed(SettlementError):
    """Clearing transfer was rejected or never confirmed; account untouched"""

    reason = "CLEARING_FAILED"


class CloseFailed(SettlementError):
    """Both close attempts failed after the clearing transfer committed"""

    reason = "CLOSE_FAILED"


class SettlementCancelled(SettlementError):
    """Workflow cancelled by the caller before any funds moved"""

    reason = "CANCELLED"


class SettlementInProgressError(DomainException):
    """Another settlement workflow is already running for this account"""

    pass


class SettlementStateError(DomainException):
    """Operation not allowed in the workflow's current phase"""

    pass
