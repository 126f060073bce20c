from typing import Any, Dict, Optional


#       BASE EXCEPTIONS
# ------------------------------


class PrimeHubError(Exception):
    """
    Base exception for all Prime Hub errors.
    """

    def __init__(
        self,
        message: str,
        code: str = "PRIME_HUB_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


#       CALLER EXCEPTIONS
# ------------------------------


class AuthenticationError(PrimeHubError):
    """Raised when the bearer token is missing or invalid."""

    def __init__(self, message: str = "Authentication failed", **kwargs):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401,
            **kwargs,
        )


class TenantScopeError(PrimeHubError):
    """Raised when a caller asks for data outside its own school."""

    def __init__(self, message: str = "Requested tenant is out of scope", **kwargs):
        super().__init__(
            message=message,
            code="TENANT_SCOPE_VIOLATION",
            status_code=403,
            **kwargs,
        )


class ProfileNotFoundError(PrimeHubError):
    """Raised when an authenticated user has no profile row."""

    def __init__(self, message: str = "User profile not found", **kwargs):
        super().__init__(
            message=message,
            code="PROFILE_NOT_FOUND",
            status_code=404,
            **kwargs,
        )


class HelpdeskUserNotFoundError(PrimeHubError):
    """Raised when the caller has no Zendesk account to author a comment."""

    def __init__(
        self,
        message: str = (
            "Usuário não encontrado no Zendesk. Entre em contato com o "
            "administrador para criar seu acesso."
        ),
        **kwargs,
    ):
        super().__init__(
            message=message,
            code="HELPDESK_USER_NOT_FOUND",
            status_code=403,
            **kwargs,
        )


#       REQUEST EXCEPTIONS
# ------------------------------


class MissingParameterError(PrimeHubError):
    """Raised when a required request field is absent or empty."""

    def __init__(self, message: str = "Missing required parameter", **kwargs):
        super().__init__(
            message=message,
            code="MISSING_PARAMETER",
            status_code=400,
            **kwargs,
        )


class InvalidParameterError(PrimeHubError):
    """Raised when a request field has a value outside its allowed set."""

    def __init__(self, message: str = "Invalid parameter", **kwargs):
        super().__init__(
            message=message,
            code="INVALID_PARAMETER",
            status_code=400,
            **kwargs,
        )


class UnknownDashboardCategoryError(PrimeHubError):
    """Raised when a dashboard category is not one of the known ones."""

    def __init__(self, message: str = "Invalid dashboard type", **kwargs):
        super().__init__(
            message=message,
            code="UNKNOWN_DASHBOARD_CATEGORY",
            status_code=400,
            **kwargs,
        )


class InvalidActionError(PrimeHubError):
    """Raised when the ticket gateway receives an unsupported action."""

    def __init__(self, message: str = "Invalid action", **kwargs):
        super().__init__(
            message=message,
            code="INVALID_ACTION",
            status_code=400,
            **kwargs,
        )


#       OPERATOR EXCEPTIONS
# -------------------------------------


class ConfigurationError(PrimeHubError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str = "Invalid configuration", **kwargs):
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            status_code=500,
            **kwargs,
        )


class UpstreamError(PrimeHubError):
    """Raised when an external service answers with a non-2xx or is unreachable."""

    def __init__(
        self,
        message: str = "Upstream service error",
        upstream_status: Optional[int] = None,
        upstream_body: Any = None,
        **kwargs,
    ):
        details = kwargs.pop("details", None) or {}
        details.setdefault("upstream_status", upstream_status)
        if upstream_body is not None:
            details.setdefault("upstream_body", upstream_body)
        self.upstream_status = upstream_status
        super().__init__(
            message=message,
            code="UPSTREAM_ERROR",
            status_code=500,
            details=details,
            **kwargs,
        )


class DatabaseError(PrimeHubError):
    """Raised when a database query or connection fails."""

    def __init__(self, message: str = "Database query failed", **kwargs):
        super().__init__(
            message=message,
            code="DATABASE_ERROR",
            status_code=500,
            **kwargs,
        )
