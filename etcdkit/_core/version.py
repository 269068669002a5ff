"""
Version constants for etcdkit.

- CLIENT_VERSION: User-facing package version
- ETCD_API_VERSION: etcd API generation the stubs target
"""

from __future__ import annotations

# etcdkit version (user-facing semver)
CLIENT_VERSION = "0.1.0"

# etcd gRPC API generation (etcdserverpb)
ETCD_API_VERSION = "v3"


def user_agent() -> str:
    """User agent string sent on the cluster channel."""
    return f"etcdkit/{CLIENT_VERSION} (etcd-api/{ETCD_API_VERSION})"
