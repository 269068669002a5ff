"""
Pytest configuration for etcdkit tests.
"""

import socket
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import grpc
import pytest

from etcdkit._core.channel import ChannelAndToken
from etcdkit._proto.etcdserverpb import rpc_pb2, rpc_pb2_grpc


class FakeRpcError(grpc.RpcError, grpc.Call):
    """RpcError carrying a status code, like the errors grpc raises."""

    def __init__(self, code, details=""):
        super().__init__(f"{code}: {details}")
        self._code = code
        self._details = details

    def code(self):
        return self._code

    def details(self):
        return self._details

    def initial_metadata(self):
        return ()

    def trailing_metadata(self):
        return ()

    def is_active(self):
        return False

    def time_remaining(self):
        return None

    def cancel(self):
        return False

    def add_callback(self, callback):
        return False


class RecordingAuthServicer(rpc_pb2_grpc.AuthServicer):
    """Authenticate servicer accepting root/secret and recording requests."""

    def __init__(self, users=None, token="tok-123"):
        self.users = users if users is not None else {b"root": b"secret"}
        self.token = token
        self.requests = []
        self.endpoint = ""

    def Authenticate(self, request, context):
        self.requests.append(request)
        if self.users.get(request.name) != request.password:
            context.abort(
                grpc.StatusCode.INVALID_ARGUMENT,
                "etcdserver: authentication failed, invalid user ID or password",
            )
        return rpc_pb2.AuthenticateResponse(token=self.token)


@pytest.fixture
def auth_server():
    """In-process gRPC server serving etcdserverpb.Auth/Authenticate."""
    servicer = RecordingAuthServicer()
    server = grpc.server(ThreadPoolExecutor(max_workers=2))
    rpc_pb2_grpc.add_AuthServicer_to_server(servicer, server)
    port = server.add_insecure_port("127.0.0.1:0")
    server.start()
    servicer.endpoint = f"127.0.0.1:{port}"
    yield servicer
    server.stop(None)


@pytest.fixture
def unreachable_endpoint():
    """Address of a port nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return f"127.0.0.1:{port}"


@pytest.fixture
def mock_channel():
    """Mock sync gRPC channel."""
    return MagicMock(name="channel")


@pytest.fixture
def fake_connection(mock_channel):
    """Patch channel creation and the executor used by Client."""
    executor = MagicMock(name="executor")
    with patch(
        "etcdkit.client.open_connection",
        return_value=ChannelAndToken(channel=mock_channel, token="tok-123"),
    ) as mock_open:
        with patch("etcdkit.client.ThreadPoolExecutor", return_value=executor):
            yield SimpleNamespace(
                channel=mock_channel,
                executor=executor,
                open_connection=mock_open,
            )


@pytest.fixture
def rpc_error():
    """Factory for grpc errors with a given status code."""
    return FakeRpcError
