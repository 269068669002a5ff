"""
etcdserverpb proto package.

Re-exports the message classes and stubs for the etcd v3 Auth service
that the connection bootstrap needs.
"""

from etcdkit._proto.etcdserverpb import rpc_pb2
from etcdkit._proto.etcdserverpb import rpc_pb2_grpc

__all__ = ["rpc_pb2", "rpc_pb2_grpc"]
