# aclinit/core/errors.py
"""
Error types raised by the ACL init job.

Every terminal error derives from ACLInitError so the entry point can turn it
into a non-zero exit code. NoLeaderError is only ever used inside the retry
loop and never reaches the caller.
"""
from typing import Optional


class ACLInitError(Exception):
    """
    Terminal error of the ACL init run.

    Attributes:
        step: Description of the step that failed (for operator diagnosis)
    """

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.step = step

    def __str__(self) -> str:
        message = super().__str__()
        if self.step:
            return f"{self.step}: {message}"
        return message


class RootCredentialLostError(ACLInitError):
    """ACLs are bootstrapped but no bootstrap token was ever persisted. Requires a manual ACL reset."""


class ServerUnreachableError(ACLInitError):
    """The bootstrap target actively refused the connection; the run must be restarted."""


class PolicyRenderError(ACLInitError):
    """Rule template inputs are invalid. Deterministic, so never retried."""


class TokenFileError(ACLInitError):
    """The configured bootstrap token file could not be read."""


class DiscoveryError(ACLInitError):
    """No Consul server addresses could be discovered."""


class NoLeaderError(Exception):
    """Raised in place of a Consul error when no leader is elected yet."""

    def __init__(self, cause: Exception):
        super().__init__(f"no leader elected: {cause}")
        self.cause = cause
