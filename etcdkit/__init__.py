"""
etcdkit: connection bootstrap and lifecycle core for etcd v3 clients.

This package provides:
- Endpoint resolution from static lists or custom resolvers
- One shared gRPC channel per client
- The username/password authentication handshake
- Lazily created KV, Auth, Cluster, Lease, Maintenance and Watch sub-clients
  sharing the channel, token and a background executor
- Ordered teardown (lease -> executor -> channel)

Installation:
    pip install etcdkit

Quickstart:
    from etcdkit import Client, ClientConfig

    with Client(ClientConfig(endpoints=["http://127.0.0.1:2379"])) as client:
        kv = client.kv

Quickstart (authenticated):
    from etcdkit import Client, AuthRejectedError, ConnectFailureError

    try:
        client = (
            Client.builder()
            .endpoints("https://10.0.0.1:2379", "https://10.0.0.2:2379")
            .user("root")
            .password("secret")
            .build()
        )
    except AuthRejectedError:
        ...  # wrong user name or password
    except ConnectFailureError:
        ...  # cluster unreachable
"""

from etcdkit.types import (
    ClientState,
    Credentials,
)
from etcdkit.errors import (
    EtcdKitError,
    ConfigurationError,
    MissingEndpointsError,
    EmptyCredentialError,
    HandshakeError,
    ConnectFailureError,
    AuthRejectedError,
    ClientClosedError,
)
from etcdkit.client import (
    Client,
    ClientBuilder,
    ClientConfig,
)
from etcdkit.subclients import (
    SubClient,
    KVClient,
    AuthClient,
    ClusterClient,
    LeaseClient,
    MaintenanceClient,
    WatchClient,
)
from etcdkit._core.resolver import (
    ConnectionDescriptor,
    Endpoint,
    EndpointResolver,
    StaticEndpointResolver,
)
from etcdkit._core.channel import ChannelFactory, TransportOptions
from etcdkit._core.version import CLIENT_VERSION

__version__ = CLIENT_VERSION

__all__ = [
    # Version
    "__version__",
    "CLIENT_VERSION",
    # Types
    "ClientState",
    "Credentials",
    # Errors
    "EtcdKitError",
    "ConfigurationError",
    "MissingEndpointsError",
    "EmptyCredentialError",
    "HandshakeError",
    "ConnectFailureError",
    "AuthRejectedError",
    "ClientClosedError",
    # Client
    "Client",
    "ClientBuilder",
    "ClientConfig",
    # Sub-clients
    "SubClient",
    "KVClient",
    "AuthClient",
    "ClusterClient",
    "LeaseClient",
    "MaintenanceClient",
    "WatchClient",
    # Resolution
    "ConnectionDescriptor",
    "Endpoint",
    "EndpointResolver",
    "StaticEndpointResolver",
    "TransportOptions",
    "ChannelFactory",
]
