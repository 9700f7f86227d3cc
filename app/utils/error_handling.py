"""
Error Handling Module for TrackMyStartup

This module provides centralized error handling with:
- Custom exception hierarchy
- Standardized error responses
- Error logging
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Optional, Union
from uuid import UUID
import logging

from fastapi import FastAPI, Request, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    DataError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configure logging
logger = logging.getLogger("trackmystartup.errors")


class ErrorCode(str, Enum):
    """Standardized error codes for the application"""

    # Validation Errors (4xx)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_DATE = "INVALID_DATE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INVALID_FILE = "INVALID_FILE"

    # Authentication/Authorization Errors (401/403)
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    TOKEN_INVALID = "TOKEN_INVALID"
    INVALID_RESET_LINK = "INVALID_RESET_LINK"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"
    LOGIN_TIMEOUT = "LOGIN_TIMEOUT"

    # Resource Errors (404/409)
    NOT_FOUND = "NOT_FOUND"
    STARTUP_NOT_FOUND = "STARTUP_NOT_FOUND"
    EMPLOYEE_NOT_FOUND = "EMPLOYEE_NOT_FOUND"
    FINANCIAL_RECORD_NOT_FOUND = "FINANCIAL_RECORD_NOT_FOUND"
    INVESTMENT_NOT_FOUND = "INVESTMENT_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"

    # Business Logic Errors (422)
    BUSINESS_RULE_VIOLATION = "BUSINESS_RULE_VIOLATION"
    ESOP_NOT_RESERVED = "ESOP_NOT_RESERVED"
    ESOP_OVER_ALLOCATED = "ESOP_OVER_ALLOCATED"
    RESERVED_SHARES_EXCEEDED = "RESERVED_SHARES_EXCEEDED"

    # Database Errors (500)
    DATABASE_ERROR = "DATABASE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    DATA_INTEGRITY_ERROR = "DATA_INTEGRITY_ERROR"

    # Internal Errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base exception for all application exceptions"""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        field: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.field = field
        self.original_error = original_error
        self.timestamp = datetime.utcnow()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        result = {
            "code": self.code.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat() + "Z",
        }
        if self.field:
            result["field"] = self.field
        if self.details:
            result["details"] = self.details
        return result


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(AppException):
    """Base validation exception"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details,
            field=field,
        )


class InvalidDateException(ValidationException):
    """A date outside its allowed window"""

    def __init__(self, message: str, field: str = "date"):
        super().__init__(
            message=message,
            field=field,
            code=ErrorCode.INVALID_DATE,
        )


class InvalidAmountException(ValidationException):
    """Invalid monetary amount or share count"""

    def __init__(self, amount: Any, field: str = "amount", message: Optional[str] = None):
        super().__init__(
            message=message or f"Invalid {field}: {amount}. Must be a non-negative number.",
            field=field,
            code=ErrorCode.INVALID_AMOUNT,
            details={"provided_amount": str(amount)},
        )


class InvalidFileException(ValidationException):
    """Rejected upload"""

    def __init__(self, message: str):
        super().__init__(message=message, field="file", code=ErrorCode.INVALID_FILE)


# ============================================================================
# Authentication/Authorization Exceptions
# ============================================================================

class AuthenticationException(AppException):
    """Base authentication exception"""

    def __init__(
        self,
        message: str = "Authentication required",
        code: ErrorCode = ErrorCode.UNAUTHORIZED,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details,
        )


class TokenInvalidException(AuthenticationException):
    """Token is invalid"""

    def __init__(self, message: str = "Invalid access token"):
        super().__init__(
            message=message,
            code=ErrorCode.TOKEN_INVALID,
        )


class AccountNotFoundException(AuthenticationException):
    """Sign-in attempted for an email with no account"""

    def __init__(self, email: str):
        super().__init__(
            message="This account does not exist. Please register first.",
            code=ErrorCode.ACCOUNT_NOT_FOUND,
            details={"email": email, "redirect": "register"},
        )


class InvalidResetLinkException(AuthenticationException):
    """Password reset link could not be resolved"""

    def __init__(
        self,
        message: str = "Invalid or expired reset link. Please request a new password reset.",
    ):
        super().__init__(message=message, code=ErrorCode.INVALID_RESET_LINK)


class LoginTimeoutException(AppException):
    """Sign-in did not complete in time"""

    def __init__(self, timeout_seconds: float):
        super().__init__(
            code=ErrorCode.LOGIN_TIMEOUT,
            message="Login timed out. Please try again.",
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            details={"timeout_seconds": timeout_seconds, "action": "reload"},
        )


class AuthorizationException(AppException):
    """Authorization denied exception"""

    def __init__(
        self,
        message: str = "Permission denied",
        startup_id: Optional[Union[str, UUID]] = None,
    ):
        super().__init__(
            code=ErrorCode.FORBIDDEN,
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
            details={"startup_id": str(startup_id)} if startup_id else None,
        )


# ============================================================================
# Resource Exceptions
# ============================================================================

class NotFoundException(AppException):
    """Resource not found exception"""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[Union[str, UUID]] = None,
        message: Optional[str] = None,
        code: ErrorCode = ErrorCode.NOT_FOUND,
    ):
        if message is None:
            if resource_id:
                message = f"{resource_type} with ID '{resource_id}' not found"
            else:
                message = f"{resource_type} not found"
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource_type": resource_type, "resource_id": str(resource_id) if resource_id else None},
        )


class StartupNotFoundException(NotFoundException):
    """Startup not found"""

    def __init__(self, startup_id: Optional[Union[str, UUID]] = None):
        super().__init__(resource_type="Startup", resource_id=startup_id, code=ErrorCode.STARTUP_NOT_FOUND)


class EmployeeNotFoundException(NotFoundException):
    """Employee not found"""

    def __init__(self, employee_id: Union[str, UUID]):
        super().__init__(resource_type="Employee", resource_id=employee_id, code=ErrorCode.EMPLOYEE_NOT_FOUND)


class FinancialRecordNotFoundException(NotFoundException):
    """Financial record not found"""

    def __init__(self, record_id: Union[str, UUID]):
        super().__init__(
            resource_type="Financial record",
            resource_id=record_id,
            code=ErrorCode.FINANCIAL_RECORD_NOT_FOUND,
        )


class InvestmentNotFoundException(NotFoundException):
    """Investment record not found"""

    def __init__(self, record_id: Union[str, UUID]):
        super().__init__(
            resource_type="Investment record",
            resource_id=record_id,
            code=ErrorCode.INVESTMENT_NOT_FOUND,
        )


class ConflictException(AppException):
    """Resource conflict exception"""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if resource_type:
            _details["resource_type"] = resource_type
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=_details,
        )


# ============================================================================
# Business Logic Exceptions
# ============================================================================

class BusinessRuleException(AppException):
    """Business rule violation exception"""

    def __init__(
        self,
        message: str,
        rule: Optional[str] = None,
        code: ErrorCode = ErrorCode.BUSINESS_RULE_VIOLATION,
        details: Optional[Dict[str, Any]] = None,
    ):
        _details = details or {}
        if rule:
            _details["violated_rule"] = rule
        super().__init__(
            code=code,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=_details,
        )


class EsopNotReservedException(BusinessRuleException):
    """ESOP allocation attempted with no reserved pool"""

    def __init__(self, proposed: Decimal):
        super().__init__(
            message=(
                "Cannot allocate ESOPs when no shares are reserved for ESOP. "
                "Please set ESOP reserved shares first."
            ),
            rule="ESOP_POOL_REQUIRED",
            code=ErrorCode.ESOP_NOT_RESERVED,
            details={"proposed_allocation": str(proposed)},
        )


class EsopAllocationException(BusinessRuleException):
    """Allocation would exceed the reserved ESOP value"""

    def __init__(self, current: Decimal, proposed: Decimal, reserved_value: Decimal):
        super().__init__(
            message=(
                "Total ESOP allocation would exceed the reserved ESOPs value. "
                f"Current: {current:,.2f}, Adding: {proposed:,.2f}, Reserved: {reserved_value:,.2f}. "
                "Reduce the allocation or increase reserved ESOPs."
            ),
            rule="ESOP_WITHIN_RESERVE",
            code=ErrorCode.ESOP_OVER_ALLOCATED,
            details={
                "current_allocated": str(current),
                "proposed_allocation": str(proposed),
                "reserved_value": str(reserved_value),
                "overage": str(current + proposed - reserved_value),
            },
        )


class ReservedSharesExceededException(BusinessRuleException):
    """Reserved ESOP shares larger than the company's share count"""

    def __init__(self, reserved: int, total: int):
        super().__init__(
            message="ESOP reserved shares cannot exceed total company shares",
            rule="ESOP_POOL_WITHIN_SHARES",
            code=ErrorCode.RESERVED_SHARES_EXCEEDED,
            details={"esop_reserved_shares": reserved, "total_shares": total},
        )


# ============================================================================
# Exception Handlers
# ============================================================================

def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None,
    field: Optional[str] = None,
) -> JSONResponse:
    """Create a standardized error response"""
    content = {
        "detail": {
            "code": code.value,
            "message": message,
            "timestamp": datetime.utcnow().isoformat() + "Z",
        }
    }
    if field:
        content["detail"]["field"] = field
    if details:
        content["detail"]["details"] = details

    return JSONResponse(status_code=status_code, content=content)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handle AppException"""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"AppException: {exc.code.value} - {exc.message}",
        extra={
            "code": exc.code.value,
            "path": request.url.path,
            "method": request.method,
            "details": exc.details,
        },
        exc_info=exc.original_error,
    )

    return create_error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        field=exc.field,
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPException"""
    code_map = {
        400: ErrorCode.INVALID_INPUT,
        401: ErrorCode.UNAUTHORIZED,
        403: ErrorCode.FORBIDDEN,
        404: ErrorCode.NOT_FOUND,
        409: ErrorCode.RESOURCE_CONFLICT,
        413: ErrorCode.INVALID_FILE,
        422: ErrorCode.VALIDATION_ERROR,
        500: ErrorCode.INTERNAL_ERROR,
    }

    error_code = code_map.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    logger.warning(
        f"HTTPException: {exc.status_code} - {message}",
        extra={"path": request.url.path, "method": request.method},
    )

    response = create_error_response(
        code=error_code,
        message=message,
        status_code=exc.status_code,
    )
    headers = getattr(exc, "headers", None)
    if headers:
        response.headers.update(headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle Pydantic validation errors"""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    logger.warning(
        f"ValidationError: {len(errors)} validation errors",
        extra={"path": request.url.path, "method": request.method, "errors": errors},
    )

    return create_error_response(
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors},
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Handle value errors (business logic errors)."""
    logger.warning(f"ValueError: {exc}", extra={"path": request.url.path})
    return create_error_response(
        code=ErrorCode.INVALID_INPUT,
        message=str(exc),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy errors"""
    error_message = "A database error occurred"
    error_code = ErrorCode.DATABASE_ERROR
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, IntegrityError):
        error_message = "Data integrity constraint violated"
        error_code = ErrorCode.DATA_INTEGRITY_ERROR
        error_str = str(exc.orig).lower() if exc.orig else ""
        if "unique" in error_str or "duplicate" in error_str:
            error_message = "A record with this value already exists"
            error_code = ErrorCode.DUPLICATE_ENTRY
            status_code = status.HTTP_409_CONFLICT
        elif "foreign key" in error_str:
            error_message = "Referenced record does not exist"
            status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(exc, OperationalError):
        error_message = "Database operation failed"
        error_code = ErrorCode.CONNECTION_ERROR
    elif isinstance(exc, DataError):
        error_message = "Invalid data format for database"
        status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    logger.error(
        f"SQLAlchemyError: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    return create_error_response(
        code=error_code,
        message=error_message,
        status_code=status_code,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions"""
    logger.critical(
        f"UnhandledException: {type(exc).__name__} - {str(exc)}",
        extra={"path": request.url.path, "method": request.method},
        exc_info=True,
    )

    return create_error_response(
        code=ErrorCode.INTERNAL_ERROR,
        message="An unexpected error occurred. Please try again later.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


# ============================================================================
# Error Tracking Middleware
# ============================================================================

class ErrorTrackingMiddleware:
    """Middleware for tracking and logging all errors"""

    def __init__(self, app: FastAPI):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        try:
            await self.app(scope, receive, send)
        except Exception as exc:
            logger.error(
                f"Request failed: {scope.get('path', 'unknown')}",
                extra={
                    "path": scope.get("path"),
                    "method": scope.get("method"),
                    "exception_type": type(exc).__name__,
                },
                exc_info=True,
            )
            raise


# ============================================================================
# Utility Functions
# ============================================================================

def validate_amount(amount: Any, field: str = "amount", allow_zero: bool = True) -> Decimal:
    """Validate a non-negative monetary amount and return it as Decimal"""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountException(amount, field)
    if not value.is_finite() or value < 0 or (not allow_zero and value == 0):
        raise InvalidAmountException(
            amount,
            field,
            message=None if allow_zero else f"Invalid {field}: {amount}. Must be greater than zero.",
        )
    return value


__all__ = [
    # Base
    "AppException",
    "ErrorCode",

    # Validation
    "ValidationException",
    "InvalidDateException",
    "InvalidAmountException",
    "InvalidFileException",

    # Auth
    "AuthenticationException",
    "TokenInvalidException",
    "AccountNotFoundException",
    "InvalidResetLinkException",
    "LoginTimeoutException",
    "AuthorizationException",

    # Resource
    "NotFoundException",
    "StartupNotFoundException",
    "EmployeeNotFoundException",
    "FinancialRecordNotFoundException",
    "InvestmentNotFoundException",
    "ConflictException",

    # Business Logic
    "BusinessRuleException",
    "EsopNotReservedException",
    "EsopAllocationException",
    "ReservedSharesExceededException",

    # Handlers
    "setup_exception_handlers",
    "create_error_response",
    "ErrorTrackingMiddleware",

    # Utilities
    "validate_amount",
]
