"""
Protobuf messages for the etcd v3 Auth.Authenticate RPC.

Only the messages the connection bootstrap exchanges are described here.
The descriptors are built at import time into a private pool, so they never
clash with a full etcd API package loaded into the default pool.

Field numbers follow etcdserverpb/rpc.proto. The request's name and password
are declared as bytes (wire-compatible with the upstream string fields) so
raw credential bytes are sent unchanged.
"""

from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_Field = descriptor_pb2.FieldDescriptorProto

PACKAGE = "etcdserverpb"


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    fd = descriptor_pb2.FileDescriptorProto(
        name="etcdkit/etcdserverpb/auth_rpc.proto",
        package=PACKAGE,
        syntax="proto3",
    )

    header = fd.message_type.add(name="ResponseHeader")
    for number, name, ftype in (
        (1, "cluster_id", _Field.TYPE_UINT64),
        (2, "member_id", _Field.TYPE_UINT64),
        (3, "revision", _Field.TYPE_INT64),
        (4, "raft_term", _Field.TYPE_UINT64),
    ):
        header.field.add(
            name=name, number=number, type=ftype, label=_Field.LABEL_OPTIONAL
        )

    request = fd.message_type.add(name="AuthenticateRequest")
    request.field.add(
        name="name", number=1, type=_Field.TYPE_BYTES, label=_Field.LABEL_OPTIONAL
    )
    request.field.add(
        name="password", number=2, type=_Field.TYPE_BYTES, label=_Field.LABEL_OPTIONAL
    )

    response = fd.message_type.add(name="AuthenticateResponse")
    response.field.add(
        name="header",
        number=1,
        type=_Field.TYPE_MESSAGE,
        type_name=f".{PACKAGE}.ResponseHeader",
        label=_Field.LABEL_OPTIONAL,
    )
    response.field.add(
        name="token", number=2, type=_Field.TYPE_STRING, label=_Field.LABEL_OPTIONAL
    )
    return fd


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(
        _pool.FindMessageTypeByName(f"{PACKAGE}.{name}")
    )


ResponseHeader = _message_class("ResponseHeader")
AuthenticateRequest = _message_class("AuthenticateRequest")
AuthenticateResponse = _message_class("AuthenticateResponse")
