"""Cluster API access and resource views."""

from .client import ClusterClient, KubectlClient
from .naming import package_install_name
from .resources import (
    CLUSTER_BOOTSTRAP_KIND,
    PACKAGE_INSTALL_KIND,
    TKG_NAMESPACE,
    ClusterBootstrap,
    Condition,
    PackageInstall,
)

__all__ = [
    # Client
    "ClusterClient",
    "KubectlClient",
    # Naming
    "package_install_name",
    # Resources
    "CLUSTER_BOOTSTRAP_KIND",
    "PACKAGE_INSTALL_KIND",
    "TKG_NAMESPACE",
    "ClusterBootstrap",
    "Condition",
    "PackageInstall",
]
