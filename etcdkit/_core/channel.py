"""
Channel construction for the etcd cluster.

Builds one gRPC channel from a ConnectionDescriptor and, when credentials
are configured, runs the authentication handshake over it.

Usage:
    descriptor = resolve_endpoints(["http://10.0.0.1:2379"])
    connection = open_connection(descriptor, credentials, TransportOptions())
    connection.channel, connection.token
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple

import grpc

from etcdkit._core.handshake import authenticate
from etcdkit._core.resolver import ConnectionDescriptor
from etcdkit._core.version import user_agent
from etcdkit.types import Credentials

logger = logging.getLogger(__name__)

DEFAULT_AUTH_TIMEOUT = 30.0
DEFAULT_LB_POLICY = "round_robin"


@dataclass(frozen=True)
class TransportOptions:
    """
    Transport settings for the cluster channel.

    Attributes:
        auth_timeout: Deadline of the authentication call in seconds
        load_balancing_policy: gRPC LB policy across resolved addresses
        root_certificates: PEM roots for TLS (None uses the system roots)
        private_key: PEM client key for mutual TLS
        certificate_chain: PEM client certificate chain for mutual TLS
        channel_options: Extra raw gRPC channel arguments
    """
    auth_timeout: Optional[float] = DEFAULT_AUTH_TIMEOUT
    load_balancing_policy: str = DEFAULT_LB_POLICY
    root_certificates: Optional[bytes] = None
    private_key: Optional[bytes] = field(default=None, repr=False)
    certificate_chain: Optional[bytes] = None
    channel_options: Tuple[Tuple[str, Any], ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ChannelAndToken:
    """Result of opening a connection: the channel and its optional token."""
    channel: grpc.Channel
    token: Optional[str]


# Builds the channel in place of build_channel (interceptors, custom credentials)
ChannelFactory = Callable[[ConnectionDescriptor, "TransportOptions"], grpc.Channel]


def _channel_arguments(
    descriptor: ConnectionDescriptor,
    options: TransportOptions,
) -> List[Tuple[str, Any]]:
    args: List[Tuple[str, Any]] = [
        ("grpc.lb_policy_name", options.load_balancing_policy),
        ("grpc.primary_user_agent", user_agent()),
    ]
    if descriptor.authority:
        args.append(("grpc.default_authority", descriptor.authority))
        if descriptor.secure:
            args.append(("grpc.ssl_target_name_override", descriptor.authority))
    args.extend(options.channel_options)
    return args


def build_channel(
    descriptor: ConnectionDescriptor,
    options: Optional[TransportOptions] = None,
) -> grpc.Channel:
    """
    Create the channel described by descriptor.

    Does not connect; network errors surface on the first call.

    Args:
        descriptor: Resolved connection target
        options: Transport settings

    Returns:
        A sync gRPC channel
    """
    options = options or TransportOptions()
    args = _channel_arguments(descriptor, options)

    if descriptor.secure:
        creds = grpc.ssl_channel_credentials(
            root_certificates=options.root_certificates,
            private_key=options.private_key,
            certificate_chain=options.certificate_chain,
        )
        logger.debug(f"Creating TLS channel to {descriptor.target}")
        return grpc.secure_channel(descriptor.target, creds, options=args)

    logger.debug(f"Creating insecure channel to {descriptor.target}")
    return grpc.insecure_channel(descriptor.target, options=args)


def open_connection(
    descriptor: ConnectionDescriptor,
    credentials: Optional[Credentials],
    options: Optional[TransportOptions] = None,
    channel_factory: Optional[ChannelFactory] = None,
) -> ChannelAndToken:
    """
    Build the channel and authenticate over it.

    The channel is closed again if the handshake fails, so a failed
    connection leaves nothing open.

    Args:
        descriptor: Resolved connection target
        credentials: User name and password, or None
        options: Transport settings
        channel_factory: Replaces build_channel when given

    Returns:
        ChannelAndToken with the token set when credentials were given

    Raises:
        EmptyCredentialError: If user or password is empty
        ConnectFailureError: If the cluster could not be reached
        AuthRejectedError: If the credentials were rejected
    """
    options = options or TransportOptions()
    factory = channel_factory or build_channel
    channel = factory(descriptor, options)

    try:
        token = authenticate(channel, credentials, timeout=options.auth_timeout)
    except BaseException:
        channel.close()
        raise

    logger.info(
        f"Connected to etcd at {descriptor.target}"
        + (" (authenticated)" if token is not None else "")
    )
    return ChannelAndToken(channel=channel, token=token)
