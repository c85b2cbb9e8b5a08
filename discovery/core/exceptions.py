"""
Errors raised by the discovery service.

Each one carries the HTTP status and error code it is rendered with.
"""
from typing import Any, Dict, Optional


class AppException(Exception):
    """Root of the service error hierarchy."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Render as the JSON error envelope returned to clients."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
            }
        }


class NotFoundError(AppException):
    """Requested item (or its analytics) does not exist."""

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(
            message=f"{resource} not found: {identifier}",
            status_code=404,
            error_code="NOT_FOUND",
            details={"resource": resource, "identifier": identifier},
        )


class DiscoveryUnavailableError(AppException):
    """
    Content repository could not supply the data a discovery request needs.

    The underlying failure is kept on ``cause`` (and chained as ``__cause__``
    by raising with ``from``). Callers must treat the whole request as
    unavailable - no partial results are ever returned alongside it.
    """

    def __init__(self, operation: str, cause: Optional[BaseException] = None) -> None:
        reason = f"{type(cause).__name__}: {cause}" if cause is not None else "Unknown"
        super().__init__(
            message=f"Content discovery unavailable during {operation}",
            status_code=503,
            error_code="DISCOVERY_UNAVAILABLE",
            details={"operation": operation, "cause": reason},
        )
        self.operation = operation
        self.cause = cause


class CircuitBreakerOpenError(AppException):
    """Calls to a guarded dependency are short-circuited while it recovers."""

    def __init__(self, service_name: str) -> None:
        super().__init__(
            message=f"Circuit breaker open for: {service_name}",
            status_code=503,
            error_code="CIRCUIT_BREAKER_OPEN",
            details={"service": service_name},
        )
