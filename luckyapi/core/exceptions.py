from enum import Enum
from fastapi import HTTPException, status
from typing import Optional, Dict, Any


class ErrorKind(str, Enum):
    """호출자가 재시도/노출 여부를 판단하는 안정적인 에러 분류"""

    VALIDATION = "VALIDATION"
    UNAVAILABLE = "UNAVAILABLE"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    CONFLICT = "CONFLICT"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    AUTHENTICATION = "AUTHENTICATION"
    INTERNAL = "INTERNAL"


class BaseAPIException(HTTPException):
    """Base exception for API errors"""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        status_code: int,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.message = message
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={
                "success": False,
                "error": {
                    "code": error_code,
                    "kind": self.kind.value,
                    "message": message,
                    "details": self.details
                }
            }
        )

    def __str__(self) -> str:  # Ensure str(e) returns the human message
        return self.message


class AuthenticationError(BaseAPIException):
    """Authentication related errors"""
    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str = "Authentication failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="AUTH_001",
            message=message,
            details=details
        )


class ValidationError(BaseAPIException):
    """Validation errors"""
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str = "Validation failed", details: Optional[Dict] = None):
        super().__init__(
            status_code=422,
            error_code="VALIDATION_001",
            message=message,
            details=details
        )


class NotFoundError(BaseAPIException):
    """Resource not found errors"""
    kind = ErrorKind.UNAVAILABLE

    def __init__(self, message: str = "Resource not found", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="NOT_FOUND_001",
            message=message,
            details=details
        )


class UnavailableError(BaseAPIException):
    """Treasure/stock/group unavailable errors"""
    kind = ErrorKind.UNAVAILABLE

    def __init__(
        self,
        message: str = "Resource unavailable",
        details: Optional[Dict] = None,
        error_code: str = "UNAVAILABLE_001",
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ):
        super().__init__(
            status_code=status_code,
            error_code=error_code,
            message=message,
            details=details
        )


class TreasureUnavailableError(UnavailableError):
    def __init__(self, message: str = "treasure not available for purchase", details: Optional[Dict] = None):
        super().__init__(message=message, details=details, error_code="TREASURE_001")


class InsufficientStockError(UnavailableError):
    def __init__(self, message: str = "insufficient treasure stock", details: Optional[Dict] = None):
        super().__init__(message=message, details=details, error_code="STOCK_001")


class GroupNotFoundError(UnavailableError):
    def __init__(self, message: str = "Group not found", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            details=details,
            error_code="GROUP_001",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class GroupInactiveError(UnavailableError):
    def __init__(self, message: str = "Group is inactive", details: Optional[Dict] = None):
        super().__init__(message=message, details=details, error_code="GROUP_002")


class QuotaExceededError(BaseAPIException):
    """Per-user purchase cap and group capacity errors"""
    kind = ErrorKind.QUOTA_EXCEEDED

    def __init__(
        self,
        message: str = "Quota exceeded",
        details: Optional[Dict] = None,
        error_code: str = "QUOTA_001",
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ):
        super().__init__(
            status_code=status_code,
            error_code=error_code,
            message=message,
            details=details
        )


class GroupFullError(QuotaExceededError):
    def __init__(self, message: str = "Group is full", details: Optional[Dict] = None):
        super().__init__(
            message=message,
            details=details,
            error_code="GROUP_003",
            status_code=status.HTTP_409_CONFLICT,
        )


class ConflictError(BaseAPIException):
    """Resource conflict errors"""
    kind = ErrorKind.CONFLICT

    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict] = None,
        error_code: str = "CONFLICT_001",
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error_code=error_code,
            message=message,
            details=details
        )


class MembershipConflictError(ConflictError):
    def __init__(self, message: str = "Concurrent join detected for this group", details: Optional[Dict] = None):
        super().__init__(message=message, details=details, error_code="GROUP_005")


class NotAMemberError(BaseAPIException):
    kind = ErrorKind.NOT_A_MEMBER

    def __init__(self, message: str = "Not a member of this group", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error_code="GROUP_004",
            message=message,
            details=details
        )


class InternalServerError(BaseAPIException):
    """Internal server errors"""
    kind = ErrorKind.INTERNAL

    def __init__(self, message: str = "Internal server error", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_code="INTERNAL_001",
            message=message,
            details=details
        )


class InsufficientBalanceError(BaseAPIException):
    """Insufficient balance errors"""
    kind = ErrorKind.INSUFFICIENT_BALANCE

    def __init__(self, message: str = "Insufficient balance", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="BALANCE_001",
            message=message,
            details=details
        )


class InvalidAmountError(BaseAPIException):
    kind = ErrorKind.INVALID_AMOUNT

    def __init__(self, message: str = "amount must be positive", details: Optional[Dict] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="AMOUNT_001",
            message=message,
            details=details
        )
