"""
Core connection management for etcdkit.

This module handles:
- Endpoint resolution (static lists and custom resolvers)
- gRPC channel construction
- The authentication handshake
"""

from etcdkit._core.version import (
    CLIENT_VERSION,
    ETCD_API_VERSION,
)
from etcdkit._core.resolver import (
    ConnectionDescriptor,
    Endpoint,
    EndpointResolver,
    StaticEndpointResolver,
    parse_endpoint,
    resolve_endpoints,
)
from etcdkit._core.handshake import authenticate
from etcdkit._core.channel import (
    ChannelAndToken,
    TransportOptions,
    build_channel,
    open_connection,
)

__all__ = [
    # Version
    "CLIENT_VERSION",
    "ETCD_API_VERSION",
    # Resolution
    "ConnectionDescriptor",
    "Endpoint",
    "EndpointResolver",
    "StaticEndpointResolver",
    "parse_endpoint",
    "resolve_endpoints",
    # Handshake
    "authenticate",
    # Channel
    "ChannelAndToken",
    "TransportOptions",
    "build_channel",
    "open_connection",
]
