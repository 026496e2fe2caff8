"""
SwapGuard Exception Hierarchy

All exceptions inherit from SwapGuardError for easy catching.

The four swap-path errors (AccountingError, AuthorizationError,
GovernanceAuthError, DonationRejected) are terminal for the call that
raised them. None of them is retried inside the gateway.
"""


class SwapGuardError(Exception):
    """Base exception for all SwapGuard errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class AccountingError(SwapGuardError):
    """Raised when a swap cannot be balanced (overflow, invalid descriptor, empty reserve)"""
    pass


class AuthorizationError(SwapGuardError):
    """Raised when a swap is not endorsed by the configured authority"""
    pass


class LiquidityNotAuthorized(AuthorizationError):
    """Raised when a non-approved identity tries to provision the reserve"""
    pass


class GovernanceAuthError(SwapGuardError):
    """Raised when a non-owner calls a governance mutator"""
    pass


class DonationRejected(SwapGuardError):
    """Raised for every donation attempt. Donations are never accepted."""
    pass


class ConfigError(SwapGuardError):
    """Raised when a deployment config is missing or malformed"""
    pass


class AuditLogError(SwapGuardError):
    """Raised when the audit log cannot be written or fails integrity checks"""
    pass
