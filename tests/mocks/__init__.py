"""Test mocks for addon-verify.

Provides:
- FakeClusterClient: scripted in-memory cluster client
- cluster_bootstrap / package_install: object document builders
- Shared package references and cluster names
"""

from .fake_cluster import FakeClusterClient, cluster_bootstrap, package_install
from .refs import (
    CNI_REF,
    CPI_REF,
    CSI_REF,
    KAPP_REF,
    MANAGEMENT,
    METRICS_REF,
    STORAGECLASS_REF,
    WORKLOAD,
    converged,
)

__all__ = [
    "FakeClusterClient",
    "cluster_bootstrap",
    "package_install",
    "converged",
    "MANAGEMENT",
    "WORKLOAD",
    "CNI_REF",
    "KAPP_REF",
    "CSI_REF",
    "CPI_REF",
    "METRICS_REF",
    "STORAGECLASS_REF",
]
