"""
Endpoint resolution for etcdkit.

Turns a static endpoint list, or a caller-supplied resolver, into a
ConnectionDescriptor: the gRPC target string a channel is built from.

Handles:
- Endpoint parsing (http://, https://, bare host:port, bracketed IPv6)
- Default static-list resolution with round-robin friendly targets
- Custom resolvers for service discovery (dns:///, xds:///, ...)

No network I/O happens here.
"""

from __future__ import annotations

import ipaddress
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union
from urllib.parse import urlsplit

from etcdkit.errors import ConfigurationError, MissingEndpointsError

logger = logging.getLogger(__name__)

DEFAULT_PORT = 2379

_SECURE_SCHEMES = ("https",)
_KNOWN_SCHEMES = ("http", "https")


@dataclass(frozen=True)
class Endpoint:
    """A single cluster member address."""
    scheme: str
    host: str
    port: int

    @property
    def secure(self) -> bool:
        return self.scheme in _SECURE_SCHEMES

    @property
    def ip_version(self) -> Optional[int]:
        """4 or 6 when the host is an IP literal, None for hostnames."""
        try:
            return ipaddress.ip_address(self.host).version
        except ValueError:
            return None

    @property
    def address(self) -> str:
        if self.ip_version == 6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    def __str__(self) -> str:
        return f"{self.scheme}://{self.address}"


@dataclass(frozen=True)
class ConnectionDescriptor:
    """
    Everything needed to build a channel to the cluster.

    Attributes:
        target: gRPC target string (e.g. "ipv4:10.0.0.1:2379,10.0.0.2:2379")
        secure: Build a TLS channel when True
        authority: Optional :authority override (TLS server name)
    """
    target: str
    secure: bool = False
    authority: Optional[str] = None


def parse_endpoint(value: Union[str, Endpoint]) -> Endpoint:
    """
    Parse an endpoint address.

    Args:
        value: "http://host:port", "https://host:port" or "host:port"

    Returns:
        Parsed Endpoint (port defaults to 2379)

    Raises:
        ConfigurationError: If the address is malformed
    """
    if isinstance(value, Endpoint):
        return value

    text = value.strip()
    if not text:
        raise ConfigurationError("endpoint address can not be empty")

    if "://" not in text:
        text = f"http://{text}"

    netloc = text.split("://", 1)[1].split("/", 1)[0]
    if netloc.count(":") > 1 and not netloc.startswith("["):
        raise ConfigurationError(
            f"invalid endpoint {value!r}: IPv6 addresses must be bracketed, "
            "use [addr]:port"
        )

    try:
        parts = urlsplit(text)
        port = parts.port
    except ValueError as e:
        raise ConfigurationError(f"invalid endpoint {value!r}: {e}") from e

    scheme = parts.scheme.lower()
    if scheme not in _KNOWN_SCHEMES:
        raise ConfigurationError(
            f"invalid endpoint {value!r}: unsupported scheme {parts.scheme!r}"
        )
    if not parts.hostname:
        raise ConfigurationError(f"invalid endpoint {value!r}: missing host")
    if parts.path not in ("", "/"):
        raise ConfigurationError(f"invalid endpoint {value!r}: unexpected path")

    return Endpoint(
        scheme=scheme,
        host=parts.hostname,
        port=port if port is not None else DEFAULT_PORT,
    )


class EndpointResolver(ABC):
    """
    Strategy producing the channel target for a cluster.

    Subclass this to plug in custom discovery. The descriptor returned by
    resolve() is used verbatim.

    Example:
        class ServiceResolver(EndpointResolver):
            def resolve(self) -> ConnectionDescriptor:
                return ConnectionDescriptor("dns:///etcd.default.svc:2379")
    """

    @abstractmethod
    def resolve(self) -> ConnectionDescriptor:
        """Return the descriptor of the cluster connection."""


class StaticEndpointResolver(EndpointResolver):
    """
    Default resolver for a fixed, ordered endpoint list.

    IP literals of one family become a multi-address target, so the channel
    balances over all of them. A list containing hostnames, or mixing IPv4
    and IPv6 literals, can only be expressed as a single dns:/// target; the
    first endpoint is used.
    """

    def __init__(self, endpoints: Sequence[Union[str, Endpoint]]):
        if not endpoints:
            raise MissingEndpointsError("endpoints can not be empty")
        self._endpoints: Tuple[Endpoint, ...] = tuple(
            parse_endpoint(e) for e in endpoints
        )

        schemes = {e.secure for e in self._endpoints}
        if len(schemes) > 1:
            raise ConfigurationError(
                "endpoints mix secure and insecure schemes: "
                + ", ".join(str(e) for e in self._endpoints)
            )

    @property
    def endpoints(self) -> Tuple[Endpoint, ...]:
        return self._endpoints

    def resolve(self) -> ConnectionDescriptor:
        endpoints = self._endpoints
        secure = endpoints[0].secure

        if len(endpoints) == 1:
            target = endpoints[0].address
        else:
            versions = {e.ip_version for e in endpoints}
            if versions == {4}:
                target = "ipv4:" + ",".join(e.address for e in endpoints)
            elif versions == {6}:
                target = "ipv6:" + ",".join(e.address for e in endpoints)
            else:
                target = f"dns:///{endpoints[0].address}"
                logger.warning(
                    "Static resolver balances only over IP literals of a single "
                    "family (got hostnames or mixed IPv4/IPv6); "
                    f"using {endpoints[0]} and ignoring "
                    + ", ".join(str(e) for e in endpoints[1:])
                )

        logger.debug(f"Resolved {len(endpoints)} endpoint(s) to target {target}")
        return ConnectionDescriptor(target=target, secure=secure)

    def __repr__(self) -> str:
        return f"StaticEndpointResolver({[str(e) for e in self._endpoints]!r})"


def resolve_endpoints(
    endpoints: Optional[Sequence[Union[str, Endpoint]]] = None,
    resolver: Optional[EndpointResolver] = None,
) -> ConnectionDescriptor:
    """
    Pick the resolution strategy and resolve it.

    A custom resolver, when given, takes precedence over the endpoint list.

    Args:
        endpoints: Static endpoint addresses
        resolver: Custom resolution strategy

    Returns:
        ConnectionDescriptor for the channel

    Raises:
        MissingEndpointsError: If neither endpoints nor resolver is given
        ConfigurationError: If the endpoints are malformed
    """
    if resolver is None:
        if not endpoints:
            raise MissingEndpointsError(
                "either endpoints or a custom resolver must be supplied"
            )
        resolver = StaticEndpointResolver(endpoints)
    elif endpoints:
        logger.debug("Custom resolver supplied, static endpoints are ignored")

    return resolver.resolve()
