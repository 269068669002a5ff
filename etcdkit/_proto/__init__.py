"""Protocol buffer messages and gRPC stubs for the etcd v3 API."""
