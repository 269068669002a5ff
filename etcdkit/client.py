"""
etcd client: connection bootstrap, sub-client registry and teardown.

Usage:
    # Direct configuration
    client = Client(ClientConfig(endpoints=["http://10.0.0.1:2379"]))

    # Builder
    client = (
        Client.builder()
        .endpoints("http://10.0.0.1:2379", "http://10.0.0.2:2379")
        .user("root")
        .password("secret")
        .build()
    )

    # From environment (ETCDKIT_ENDPOINTS, ETCDKIT_USER, ...)
    with Client(ClientConfig.from_env()) as client:
        client.kv.unary_unary("Range", ...)

Construction resolves the endpoints, builds one channel and, when
credentials are set, authenticates before returning. Sub-clients are created
on first access and share the channel, token and executor.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, Tuple, TypeVar, Union

from etcdkit._core.channel import (
    DEFAULT_AUTH_TIMEOUT,
    DEFAULT_LB_POLICY,
    ChannelFactory,
    TransportOptions,
    open_connection,
)
from etcdkit._core.resolver import Endpoint, EndpointResolver, resolve_endpoints
from etcdkit.errors import (
    ClientClosedError,
    ConfigurationError,
    MissingEndpointsError,
)
from etcdkit.subclients import (
    AuthClient,
    ClusterClient,
    KVClient,
    LeaseClient,
    MaintenanceClient,
    WatchClient,
)
from etcdkit.types import ClientState, Credentials

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENV_ENDPOINTS = "ETCDKIT_ENDPOINTS"
ENV_USER = "ETCDKIT_USER"
ENV_PASSWORD = "ETCDKIT_PASSWORD"
ENV_AUTH_TIMEOUT = "ETCDKIT_AUTH_TIMEOUT"

EXECUTOR_THREAD_PREFIX = "etcdkit"


@dataclass
class ClientConfig:
    """
    Configuration for Client.

    Attributes:
        endpoints: Cluster addresses ("http://host:port", "host:port", ...)
        user: User name for authentication (str or bytes)
        password: Password for authentication (str or bytes)
        resolver: Custom endpoint resolver, overrides endpoints
        auth_timeout: Deadline of the authentication call in seconds
        load_balancing_policy: gRPC LB policy across resolved addresses
        root_certificates: PEM roots for https endpoints
        private_key: PEM client key for mutual TLS
        certificate_chain: PEM client certificate chain for mutual TLS
        channel_options: Extra raw gRPC channel arguments
        authority: :authority / TLS server name override
        max_workers: Size of the shared background executor
        channel_factory: Builds the channel instead of the default TLS or
            plaintext channel (interceptors, custom credentials)
    """
    endpoints: List[Union[str, Endpoint]] = field(default_factory=list)
    user: Optional[Union[str, bytes]] = None
    password: Optional[Union[str, bytes]] = field(default=None, repr=False)
    resolver: Optional[EndpointResolver] = None
    auth_timeout: Optional[float] = DEFAULT_AUTH_TIMEOUT
    load_balancing_policy: str = DEFAULT_LB_POLICY
    root_certificates: Optional[bytes] = None
    private_key: Optional[bytes] = field(default=None, repr=False)
    certificate_chain: Optional[bytes] = None
    channel_options: List[Tuple[str, Any]] = field(default_factory=list)
    authority: Optional[str] = None
    max_workers: Optional[int] = None
    channel_factory: Optional[ChannelFactory] = None

    def __post_init__(self) -> None:
        """Validate configuration on creation."""
        self.validate()

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            MissingEndpointsError: If no endpoints and no resolver are set
            ConfigurationError: On partial credentials, a partial client
                certificate or invalid numbers
        """
        if not self.endpoints and self.resolver is None:
            raise MissingEndpointsError(
                "either endpoints or a custom resolver must be supplied"
            )

        # Raises on a partial pair
        Credentials.from_pair(self.user, self.password)

        if self.auth_timeout is not None and self.auth_timeout <= 0:
            raise ConfigurationError(
                f"auth_timeout must be positive, got {self.auth_timeout}"
            )
        if self.max_workers is not None and self.max_workers <= 0:
            raise ConfigurationError(
                f"max_workers must be positive, got {self.max_workers}"
            )
        if (self.private_key is None) != (self.certificate_chain is None):
            raise ConfigurationError(
                "private_key and certificate_chain must be set together"
            )

    @property
    def credentials(self) -> Optional[Credentials]:
        return Credentials.from_pair(self.user, self.password)

    @property
    def transport_options(self) -> TransportOptions:
        return TransportOptions(
            auth_timeout=self.auth_timeout,
            load_balancing_policy=self.load_balancing_policy,
            root_certificates=self.root_certificates,
            private_key=self.private_key,
            certificate_chain=self.certificate_chain,
            channel_options=tuple(self.channel_options),
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        """
        Build a configuration from environment variables.

        Environment Variables:
            ETCDKIT_ENDPOINTS: Comma separated endpoint list
            ETCDKIT_USER: User name
            ETCDKIT_PASSWORD: Password
            ETCDKIT_AUTH_TIMEOUT: Authentication deadline in seconds

        Args:
            **overrides: Field values taking precedence over the environment

        Returns:
            Validated ClientConfig
        """
        values: dict = {}

        endpoints = os.environ.get(ENV_ENDPOINTS)
        if endpoints:
            values["endpoints"] = [e.strip() for e in endpoints.split(",") if e.strip()]
        if ENV_USER in os.environ:
            values["user"] = os.environ[ENV_USER]
        if ENV_PASSWORD in os.environ:
            values["password"] = os.environ[ENV_PASSWORD]

        timeout = os.environ.get(ENV_AUTH_TIMEOUT)
        if timeout:
            try:
                values["auth_timeout"] = float(timeout)
            except ValueError as e:
                raise ConfigurationError(
                    f"{ENV_AUTH_TIMEOUT} must be a number, got {timeout!r}"
                ) from e

        values.update(overrides)
        return cls(**values)


class _Memoized(Generic[T]):
    """
    Compute-once cell.

    Not thread-safe on its own: callers serialize get(). Client._get holds
    the client's close lock around it, which also keeps construction from
    racing close().
    """

    def __init__(self, factory: Callable[[], T]) -> None:
        self._factory = factory
        self._value: Optional[T] = None
        self._built = False

    @property
    def built(self) -> bool:
        return self._built

    @property
    def value(self) -> Optional[T]:
        """The cached value, None if never built."""
        return self._value

    def get(self) -> T:
        if not self._built:
            self._value = self._factory()
            self._built = True
        return self._value  # type: ignore[return-value]


class Client:
    """
    etcd v3 client.

    Owns one gRPC channel, the optional bearer token and a background
    executor, and hands them to six lazily created sub-clients.

    Construction either returns a usable, already-authenticated client or
    raises ConfigurationError, ConnectFailureError or AuthRejectedError.

    Attributes:
        kv, auth, cluster, lease, maintenance, watch: Sub-clients
    """

    def __init__(self, config: ClientConfig) -> None:
        config.validate()
        self._config = config

        descriptor = resolve_endpoints(config.endpoints, config.resolver)
        if config.authority:
            descriptor = dataclasses.replace(descriptor, authority=config.authority)

        connection = open_connection(
            descriptor,
            config.credentials,
            config.transport_options,
            channel_factory=config.channel_factory,
        )

        executor = ThreadPoolExecutor(
            max_workers=config.max_workers,
            thread_name_prefix=EXECUTOR_THREAD_PREFIX,
        )
        self._state = ClientState(
            channel=connection.channel,
            token=connection.token,
            executor=executor,
        )

        self._close_lock = threading.Lock()
        self._closed = False

        self._kv = _Memoized(lambda: KVClient(self._state))
        self._auth = _Memoized(lambda: AuthClient(self._state))
        self._cluster = _Memoized(lambda: ClusterClient(self._state))
        self._lease = _Memoized(lambda: LeaseClient(self._state))
        self._maintenance = _Memoized(lambda: MaintenanceClient(self._state))
        self._watch = _Memoized(lambda: WatchClient(self._state))

    @staticmethod
    def builder() -> "ClientBuilder":
        """Return a new ClientBuilder."""
        return ClientBuilder()

    @property
    def state(self) -> ClientState:
        """Shared channel, token and executor."""
        return self._state

    @property
    def token(self) -> Optional[str]:
        return self._state.token

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _get(self, cell: "_Memoized[T]") -> T:
        if not self._closed and cell.built:
            return cell.value  # type: ignore[return-value]
        # First access is serialized with close() so nothing is built after it
        with self._close_lock:
            if self._closed:
                raise ClientClosedError("client is closed")
            return cell.get()

    @property
    def kv(self) -> KVClient:
        return self._get(self._kv)

    @property
    def auth(self) -> AuthClient:
        return self._get(self._auth)

    @property
    def cluster(self) -> ClusterClient:
        return self._get(self._cluster)

    @property
    def lease(self) -> LeaseClient:
        return self._get(self._lease)

    @property
    def maintenance(self) -> MaintenanceClient:
        return self._get(self._maintenance)

    @property
    def watch(self) -> WatchClient:
        return self._get(self._watch)

    def close(self) -> None:
        """
        Release the lease sub-client, the executor and the channel, in order.

        Safe to call multiple times; only the first call does anything.
        Failures of individual steps are logged, never raised.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

            if self._lease.built:
                try:
                    self._lease.value.close()
                except Exception as e:
                    logger.warning(f"Failed to close lease client: {e}")

            try:
                self._state.executor.shutdown(wait=False, cancel_futures=True)
            except Exception as e:
                logger.warning(f"Failed to shut down executor: {e}")

            try:
                self._state.channel.close()
            except Exception as e:
                logger.warning(f"Failed to close channel: {e}")

        logger.debug("Client closed")

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class ClientBuilder:
    """
    Fluent builder for Client.

    Example:
        client = ClientBuilder().endpoints("10.0.0.1:2379").build()
    """

    def __init__(self) -> None:
        self._values: dict = {}
        self._channel_options: List[Tuple[str, Any]] = []

    def endpoints(self, *endpoints: Union[str, Endpoint]) -> "ClientBuilder":
        self._values["endpoints"] = list(endpoints)
        return self

    def user(self, user: Union[str, bytes]) -> "ClientBuilder":
        self._values["user"] = user
        return self

    def password(self, password: Union[str, bytes]) -> "ClientBuilder":
        self._values["password"] = password
        return self

    def resolver(self, resolver: EndpointResolver) -> "ClientBuilder":
        self._values["resolver"] = resolver
        return self

    def auth_timeout(self, seconds: Optional[float]) -> "ClientBuilder":
        self._values["auth_timeout"] = seconds
        return self

    def load_balancing_policy(self, policy: str) -> "ClientBuilder":
        self._values["load_balancing_policy"] = policy
        return self

    def root_certificates(self, pem: bytes) -> "ClientBuilder":
        self._values["root_certificates"] = pem
        return self

    def client_certificate(
        self, private_key: bytes, certificate_chain: bytes
    ) -> "ClientBuilder":
        """Present a client certificate (mutual TLS)."""
        self._values["private_key"] = private_key
        self._values["certificate_chain"] = certificate_chain
        return self

    def channel_factory(self, factory: ChannelFactory) -> "ClientBuilder":
        self._values["channel_factory"] = factory
        return self

    def authority(self, authority: str) -> "ClientBuilder":
        self._values["authority"] = authority
        return self

    def channel_option(self, key: str, value: Any) -> "ClientBuilder":
        self._channel_options.append((key, value))
        return self

    def max_workers(self, workers: int) -> "ClientBuilder":
        self._values["max_workers"] = workers
        return self

    def config(self) -> ClientConfig:
        """Return the validated configuration without connecting."""
        return ClientConfig(
            channel_options=list(self._channel_options),
            **self._values,
        )

    def build(self) -> Client:
        """Connect and return the client."""
        return Client(self.config())
