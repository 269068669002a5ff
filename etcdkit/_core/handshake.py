"""
Authentication handshake for the etcd connection.

Exchanges a user name and password for a bearer token with one
Auth.Authenticate call, and classifies failures as either connectivity
problems or credential rejection.
"""

from __future__ import annotations

import logging
from typing import Optional

import grpc

from etcdkit._proto.etcdserverpb import rpc_pb2, rpc_pb2_grpc
from etcdkit.errors import (
    AuthRejectedError,
    ConnectFailureError,
    EmptyCredentialError,
)
from etcdkit.types import Credentials

logger = logging.getLogger(__name__)


# Status codes meaning the call never completed on the server side
TRANSPORT_FAILURE_CODES = frozenset(
    {
        grpc.StatusCode.UNAVAILABLE,
        grpc.StatusCode.DEADLINE_EXCEEDED,
        grpc.StatusCode.CANCELLED,
    }
)


def _classify(error: grpc.RpcError) -> Exception:
    code = error.code() if isinstance(error, grpc.Call) else None
    details = error.details() if isinstance(error, grpc.Call) else None

    if code is None or code in TRANSPORT_FAILURE_CODES:
        return ConnectFailureError(
            f"connect to etcd failed: {details or error}",
            code=code,
            details=details,
        )
    return AuthRejectedError(
        f"auth failed as wrong username or password: {details or code}",
        code=code,
        details=details,
    )


def authenticate(
    channel: grpc.Channel,
    credentials: Optional[Credentials],
    timeout: Optional[float] = None,
) -> Optional[str]:
    """
    Obtain a bearer token from the cluster.

    Blocks the calling thread for one round trip. Without credentials no
    call is made and None is returned.

    Args:
        channel: Channel to the cluster
        credentials: User name and password, or None
        timeout: Call deadline in seconds (None waits indefinitely)

    Returns:
        The token, or None when no credentials were given

    Raises:
        EmptyCredentialError: If user or password is empty (no call is made)
        ConnectFailureError: If the call could not complete
        AuthRejectedError: If the cluster rejected the credentials
    """
    if credentials is None:
        return None

    if not credentials.user:
        raise EmptyCredentialError("username can not be empty.")
    if not credentials.password:
        raise EmptyCredentialError("password can not be empty.")

    stub = rpc_pb2_grpc.AuthStub(channel)
    request = rpc_pb2.AuthenticateRequest(
        name=credentials.user,
        password=credentials.password,
    )

    future = stub.Authenticate.future(request, timeout=timeout)
    try:
        response = future.result()
    except KeyboardInterrupt:
        future.cancel()
        raise
    except grpc.FutureCancelledError as e:
        raise ConnectFailureError(
            "connect to etcd failed: authentication call was cancelled",
            code=grpc.StatusCode.CANCELLED,
        ) from e
    except grpc.RpcError as e:
        raise _classify(e) from e
    except Exception as e:
        raise ConnectFailureError(f"connect to etcd failed: {e}") from e

    logger.debug(
        f"Authenticated as {credentials.user.decode('utf-8', 'replace')!r}"
    )
    return response.token
