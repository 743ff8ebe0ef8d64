"""
Error classification for Consul calls

Turns a raised exception into an explicit AttemptResult for the retry loop.
Matching is done on the error text, the same way the Consul Go client
reports failures ("Unexpected response code: <status> (<body>)").
"""
import httpx
from ..core.errors import NoLeaderError, RootCredentialLostError, ServerUnreachableError
from ..core.retry import AttemptResult

FORBIDDEN_MARKER = "Unexpected response code: 403"
SERVER_ERROR_MARKER = "Unexpected response code: 500"
LEGACY_MODE_MARKER = "The ACL system is currently in legacy mode."
CONNECTION_REFUSED_MARKER = "connection refused"

ROOT_CREDENTIAL_LOST_MESSAGE = (
    "ACLs already bootstrapped but the ACL token was not written to a persistent store."
    " We can't proceed because the bootstrap token is lost."
    " You must reset ACLs."
)


def is_no_leader_error(err: BaseException) -> bool:
    """True if err comes from calling the bootstrap API before a leader is elected."""
    text = str(err)
    return SERVER_ERROR_MARKER in text and LEGACY_MODE_MARKER in text


def is_policy_exists_error(err: BaseException, policy_name: str) -> bool:
    """True if a policy create failed only because a policy with that name exists."""
    text = str(err)
    return (
        SERVER_ERROR_MARKER in text
        and f'Invalid Policy: A Policy with Name "{policy_name}" already exists' in text
    )


def is_connection_refused(err: BaseException) -> bool:
    """
    True if the connection was actively refused (not merely timed out).
    httpx may wrap the OS error, so the whole cause chain is inspected.
    """
    seen = set()
    current = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ConnectionRefusedError):
            return True
        if CONNECTION_REFUSED_MARKER in str(current).lower():
            return True
        current = current.__cause__ or current.__context__
    return False


def classify_bootstrap_error(err: Exception) -> AttemptResult:
    """
    Classify a failed PUT /v1/acl/bootstrap.

    - 403: already bootstrapped and no stored token -> fatal, token is lost
    - connection refused: target address is wrong right now -> fatal, restart the run
    - 500 + legacy mode: no leader yet -> retry with context
    - anything else -> retry
    """
    if FORBIDDEN_MARKER in str(err):
        return AttemptResult.fatal(RootCredentialLostError(ROOT_CREDENTIAL_LOST_MESSAGE))

    if isinstance(err, httpx.TransportError) and is_connection_refused(err):
        return AttemptResult.fatal(ServerUnreachableError("Cannot reach consul server, restarting"))

    if is_no_leader_error(err):
        # Return a more descriptive error in the case of no leader being elected
        return AttemptResult.retry(NoLeaderError(err))

    return AttemptResult.retry(err)
