"""
Exception types for etcdkit.

Provides typed exceptions for:
- Configuration mistakes (raised before any network call)
- Connectivity failures during the authentication handshake
- Credential rejection by the cluster
- Use of a client after it was closed
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    import grpc


class EtcdKitError(Exception):
    """Base exception for all etcdkit errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(EtcdKitError):
    """
    Raised when the client is configured inconsistently.

    This includes:
    - No endpoints and no custom resolver
    - Only one of user/password supplied
    - Empty user or password
    - Malformed endpoint addresses

    Always raised synchronously at construction time and never retried.
    """
    pass


class MissingEndpointsError(ConfigurationError):
    """Raised when neither endpoints nor a custom resolver were supplied."""
    pass


class EmptyCredentialError(ConfigurationError):
    """Raised when the user name or password is an empty byte sequence."""
    pass


# =============================================================================
# Handshake Errors
# =============================================================================


class HandshakeError(EtcdKitError):
    """
    Base for failures of the authentication handshake.

    Carries the gRPC status code and details when the failure came from
    an RPC, so callers can log or branch on them.
    """

    def __init__(
        self,
        message: str,
        code: Optional["grpc.StatusCode"] = None,
        details: Optional[str] = None,
    ):
        self.code = code
        self.details = details
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({str(self)!r}, code={self.code!r}, "
            f"details={self.details!r})"
        )


class ConnectFailureError(HandshakeError):
    """
    Raised when the authentication call could not complete.

    Typical causes: unreachable cluster, wrong address, deadline exceeded,
    cancelled call. Retry by building a new client once connectivity is fixed.
    """
    pass


class AuthRejectedError(HandshakeError):
    """
    Raised when the cluster completed the call but rejected the credentials.

    Example:
        try:
            client = Client(ClientConfig(endpoints=[...], user="root", password=pw))
        except AuthRejectedError:
            pw = prompt_password()
        except ConnectFailureError:
            schedule_retry()
    """
    pass


# =============================================================================
# Lifecycle Errors
# =============================================================================


class ClientClosedError(EtcdKitError):
    """Raised when a closed client, or one of its sub-clients, is used."""
    pass
