"""Naming conventions for add-on resources."""

from __future__ import annotations


def package_install_name(cluster_name: str, addon_short_name: str) -> str:
    """Name of the PackageInstall created for an add-on of a cluster.

    PackageInstalls on both management and workload clusters follow
    ``<cluster name>-<addon short name>``.
    """
    return f"{cluster_name}-{addon_short_name}"
