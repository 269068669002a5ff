"""
gRPC client stub and servicer for the etcd v3 Auth service.

Laid out like grpcio-tools output, restricted to Authenticate.
"""

from __future__ import annotations

import grpc

from etcdkit._proto.etcdserverpb import rpc_pb2

AUTH_SERVICE = "etcdserverpb.Auth"


class AuthStub:
    """
    Stub for the etcd Auth gRPC service.

    Attributes:
        Authenticate: Unary-unary callable (supports .future())
    """

    def __init__(self, channel: grpc.Channel) -> None:
        """
        Initialize stub with gRPC channel.

        Args:
            channel: Sync gRPC channel
        """
        self.Authenticate = channel.unary_unary(
            f"/{AUTH_SERVICE}/Authenticate",
            request_serializer=rpc_pb2.AuthenticateRequest.SerializeToString,
            response_deserializer=rpc_pb2.AuthenticateResponse.FromString,
        )


class AuthServicer:
    """Servicer base class for the etcd Auth service."""

    def Authenticate(self, request, context: grpc.ServicerContext):
        """Exchange a user name and password for a token."""
        context.set_code(grpc.StatusCode.UNIMPLEMENTED)
        context.set_details("Method not implemented!")
        raise NotImplementedError("Method not implemented!")


def add_AuthServicer_to_server(servicer: AuthServicer, server: grpc.Server) -> None:
    """Add an AuthServicer to a gRPC server."""
    handlers = {
        "Authenticate": grpc.unary_unary_rpc_method_handler(
            servicer.Authenticate,
            request_deserializer=rpc_pb2.AuthenticateRequest.FromString,
            response_serializer=rpc_pb2.AuthenticateResponse.SerializeToString,
        ),
    }
    generic_handler = grpc.method_handlers_generic_handler(AUTH_SERVICE, handlers)
    server.add_generic_rpc_handlers((generic_handler,))
