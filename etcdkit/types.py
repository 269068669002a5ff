"""
Type definitions for etcdkit.

Defines the dataclasses shared between the connection bootstrap and the
sub-clients:
- Credentials: the optional user/password pair
- ClientState: the channel, token and executor every sub-client reads
"""

from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Optional, Tuple, Union, TYPE_CHECKING

from etcdkit.errors import ConfigurationError

if TYPE_CHECKING:
    import grpc


# gRPC metadata key etcd reads the bearer token from
TOKEN_METADATA_KEY = "token"


def _to_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


@dataclass(frozen=True)
class Credentials:
    """
    User name and password for the authentication handshake.

    Both are raw byte sequences. Emptiness is checked by the handshake,
    pairing is checked by from_pair().
    """
    user: bytes
    password: bytes

    @classmethod
    def from_pair(
        cls,
        user: Optional[Union[str, bytes]],
        password: Optional[Union[str, bytes]],
    ) -> Optional["Credentials"]:
        """
        Build credentials from an optional user/password pair.

        Args:
            user: User name (str is encoded as UTF-8)
            password: Password (str is encoded as UTF-8)

        Returns:
            Credentials, or None when both are absent

        Raises:
            ConfigurationError: If exactly one of the two is supplied
        """
        if user is None and password is None:
            return None
        if user is None or password is None:
            missing = "user" if user is None else "password"
            raise ConfigurationError(
                f"user and password must be supplied together, {missing} is missing"
            )
        return cls(user=_to_bytes(user), password=_to_bytes(password))

    def __repr__(self) -> str:
        return f"Credentials(user={self.user!r}, password=<redacted>)"


@dataclass(frozen=True)
class ClientState:
    """
    Resources shared by every sub-client of one Client.

    Passed by reference. Sub-clients read these but never close them;
    only Client.close() does.

    Attributes:
        channel: The gRPC channel to the cluster
        token: Bearer token from the handshake, None without credentials
        executor: Worker pool for background work (e.g. lease keep-alive)
    """
    channel: "grpc.Channel"
    token: Optional[str]
    executor: Executor

    @property
    def metadata(self) -> Tuple[Tuple[str, str], ...]:
        """Call metadata carrying the token, empty when unauthenticated."""
        if self.token is None:
            return ()
        return ((TOKEN_METADATA_KEY, self.token),)

    def __repr__(self) -> str:
        token = "<redacted>" if self.token is not None else None
        return (
            f"ClientState(channel={self.channel!r}, token={token}, "
            f"executor={self.executor!r})"
        )
