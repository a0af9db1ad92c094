"""Shared test fixtures for addon-verify tests.

- fast_config: VerifierConfig with sub-second deadlines
- bootstrap_doc: vSphere ClusterBootstrap with additional packages
- clusters: management/workload FakeClusterClients with every add-on converged
"""

from __future__ import annotations

import pytest

from addon_verify.config import VerifierConfig
from addon_verify.shared.logging import configure_logging
from tests.mocks import (
    CNI_REF,
    CPI_REF,
    CSI_REF,
    KAPP_REF,
    MANAGEMENT,
    METRICS_REF,
    STORAGECLASS_REF,
    WORKLOAD,
    FakeClusterClient,
    cluster_bootstrap,
    converged,
)


@pytest.fixture(autouse=True)
def _logging():
    """Route logs to the current test's stderr."""
    configure_logging("warning")
    yield


@pytest.fixture
def fast_config() -> VerifierConfig:
    """Config with sub-second deadlines."""
    return VerifierConfig(
        ready_timeout=0.3,
        get_resource_timeout=0.1,
        poll_interval=0.02,
    )


@pytest.fixture
def bootstrap_doc() -> dict:
    """ClusterBootstrap for a vSphere cluster with two additional packages."""
    return cluster_bootstrap(
        MANAGEMENT,
        cni=CNI_REF,
        kapp=KAPP_REF,
        csi=CSI_REF,
        cpi=CPI_REF,
        additional=[METRICS_REF, STORAGECLASS_REF],
    )


@pytest.fixture
def clusters(bootstrap_doc) -> tuple[FakeClusterClient, FakeClusterClient]:
    """Management and workload clients with every add-on converged."""
    management = FakeClusterClient()
    workload = FakeClusterClient()
    management.set_bootstrap(bootstrap_doc)
    for name, ref in (
        (f"{WORKLOAD}-antrea", CNI_REF),
        (f"{MANAGEMENT}-kapp-controller", KAPP_REF),
        (f"{WORKLOAD}-vsphere-csi", CSI_REF),
        (f"{WORKLOAD}-vsphere-cpi", CPI_REF),
        (f"{WORKLOAD}-metrics-server", METRICS_REF),
    ):
        workload.set_package_install(name, converged(name, ref))
    return management, workload
