"""
Sub-clients sharing one etcd connection.

Each sub-client is bound to one etcd v3 gRPC service and reads the shared
ClientState (channel, token, executor). None of them owns the channel or the
executor; Client.close() releases those.

The request/response protocols of the individual services live with the
code that uses these bindings. This module provides the binding seam
(SubClient.unary_unary) and the lease sub-client's background work.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Optional, Set, Tuple

from etcdkit.errors import ClientClosedError
from etcdkit.types import ClientState

logger = logging.getLogger(__name__)


class SubClient:
    """
    Base class of the six sub-clients.

    Attributes:
        service: Fully qualified gRPC service name
    """

    service: str = ""

    def __init__(self, state: ClientState) -> None:
        self._state = state
        logger.debug(f"{type(self).__name__} created for {self.service}")

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def metadata(self) -> Tuple[Tuple[str, str], ...]:
        """Metadata to attach to every call (carries the token)."""
        return self._state.metadata

    def unary_unary(
        self,
        method: str,
        request_serializer: Optional[Callable[[Any], bytes]] = None,
        response_deserializer: Optional[Callable[[bytes], Any]] = None,
    ):
        """
        Bind a unary method of this sub-client's service on the shared channel.

        Args:
            method: Method name within the service (e.g. "Range")
            request_serializer: Request encoder
            response_deserializer: Response decoder

        Returns:
            grpc.UnaryUnaryMultiCallable
        """
        return self._state.channel.unary_unary(
            f"/{self.service}/{method}",
            request_serializer=request_serializer,
            response_deserializer=response_deserializer,
        )

    def close(self) -> None:
        """Release resources owned by this sub-client (none by default)."""


class KVClient(SubClient):
    """Key-value access (Range, Put, DeleteRange, Txn, Compact)."""
    service = "etcdserverpb.KV"


class AuthClient(SubClient):
    """Auth administration (users, roles, enable/disable)."""
    service = "etcdserverpb.Auth"


class ClusterClient(SubClient):
    """Cluster membership (MemberAdd, MemberRemove, MemberList, ...)."""
    service = "etcdserverpb.Cluster"


class MaintenanceClient(SubClient):
    """Maintenance (Status, Defragment, Snapshot, Alarm, ...)."""
    service = "etcdserverpb.Maintenance"


class WatchClient(SubClient):
    """Watch event streaming."""
    service = "etcdserverpb.Watch"


class LeaseClient(SubClient):
    """
    Lease management.

    The only sub-client that runs background work: keep-alive loops are
    scheduled on the shared executor and must be stopped before the
    executor shuts down, which Client.close() does by calling close()
    on this sub-client first.

    Example:
        future = client.lease.keep_alive(lease_id, interval=5.0, renew=renew_fn)
        ...
        client.close()  # stops the loop, then the executor, then the channel
    """

    service = "etcdserverpb.Lease"

    def __init__(self, state: ClientState) -> None:
        super().__init__(state)
        self._lock = threading.Lock()
        self._tasks: Set[Future] = set()
        self._stopped = threading.Event()

    @property
    def closed(self) -> bool:
        return self._stopped.is_set()

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """
        Run fn on the shared executor, tracked so close() can cancel it.

        Raises:
            ClientClosedError: If the lease client was closed
        """
        with self._lock:
            if self._stopped.is_set():
                raise ClientClosedError("lease client is closed")
            future = self._state.executor.submit(fn, *args, **kwargs)
            self._tasks.add(future)
        future.add_done_callback(self._discard)
        return future

    def _discard(self, future: Future) -> None:
        with self._lock:
            self._tasks.discard(future)

    def keep_alive(
        self,
        lease_id: int,
        interval: float,
        renew: Callable[[int], Any],
    ) -> Future:
        """
        Call renew(lease_id) every interval seconds until close().

        A failing renew is logged and retried on the next tick.

        Args:
            lease_id: Lease to keep alive
            interval: Seconds between renewals
            renew: Callable issuing the LeaseKeepAlive request

        Returns:
            Future of the background loop
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        def loop() -> None:
            while not self._stopped.wait(interval):
                try:
                    renew(lease_id)
                except Exception as e:
                    logger.warning(f"Keep-alive for lease {lease_id:x} failed: {e}")
            logger.debug(f"Keep-alive for lease {lease_id:x} stopped")

        return self.submit(loop)

    def close(self) -> None:
        """Stop keep-alive loops and cancel pending tasks. Safe to repeat."""
        with self._lock:
            self._stopped.set()
            pending = list(self._tasks)
        for future in pending:
            future.cancel()
        logger.debug(f"Lease client closed ({len(pending)} task(s) stopped)")
