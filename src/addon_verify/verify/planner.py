"""Selection of the add-ons to check for a cluster pair.

The plan always covers the CNI and the kapp-controller package. On vSphere
the CSI and CPI packages are mandatory too. Additional packages follow in
declaration order. Packages with known install issues can be excluded.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from ..cluster.naming import package_install_name
from ..cluster.resources import ClusterBootstrap
from ..errors import MissingAddonError
from ..shared.logging import get_logger
from .reference import PackageRef, parse_reference

logger = get_logger(__name__)

VSPHERE = "vsphere"


class ClusterRole(Enum):
    """Which cluster API handle a check is read through."""

    MANAGEMENT = "management"
    WORKLOAD = "workload"


class AddonSlot(Enum):
    """Where in the ClusterBootstrap spec a package was declared."""

    CNI = "cni"
    KAPP = "kapp"
    CSI = "csi"
    CPI = "cpi"
    ADDITIONAL = "additional"


@dataclass(frozen=True)
class CheckItem:
    """One add-on to verify."""

    target: ClusterRole
    cluster_name: str  # seeds the PackageInstall name
    slot: AddonSlot
    short_name: str
    full_name: str
    version: str

    @property
    def resource_name(self) -> str:
        return package_install_name(self.cluster_name, self.short_name)

    def describe(self) -> str:
        return (
            f"package {self.full_name} version {self.version} "
            f"(PackageInstall {self.resource_name}) on {self.target.value} cluster"
        )

    @classmethod
    def from_ref(
        cls, target: ClusterRole, cluster_name: str, slot: AddonSlot, package: PackageRef
    ) -> CheckItem:
        return cls(
            target=target,
            cluster_name=cluster_name,
            slot=slot,
            short_name=package.short_name,
            full_name=package.full_name,
            version=package.version,
        )


class AddonPlanner:
    """Build the ordered list of add-on checks from a ClusterBootstrap."""

    def __init__(self, exclusions: Iterable[str] = (), strict: bool = True):
        """Initialize planner.

        Args:
            exclusions: Package short names never checked.
            strict: Reject malformed package references.
        """
        self.exclusions = frozenset(exclusions)
        self.strict = strict

    def plan(
        self,
        declaration: ClusterBootstrap,
        infrastructure: str,
        management_cluster: str,
        workload_cluster: str,
    ) -> list[CheckItem]:
        """Plan checks for a cluster pair.

        Args:
            declaration: ClusterBootstrap declaring the add-ons.
            infrastructure: Infrastructure provider name (e.g. "vsphere", "aws").
                Only the exact name "vsphere" adds the CSI and CPI checks.
            management_cluster: Management cluster name.
            workload_cluster: Workload cluster name.

        Returns:
            Check items in plan order.

        Raises:
            MalformedReferenceError: A declared reference cannot be parsed.
            MissingAddonError: A required add-on has no reference.
        """
        # The kapp-controller PackageInstall is named after the management cluster
        candidates: list[tuple[AddonSlot, str | None, str]] = [
            (AddonSlot.CNI, declaration.cni, workload_cluster),
            (AddonSlot.KAPP, declaration.kapp, management_cluster),
        ]
        if infrastructure == VSPHERE:
            candidates.append((AddonSlot.CSI, declaration.csi, workload_cluster))
            candidates.append((AddonSlot.CPI, declaration.cpi, workload_cluster))
        for ref_name in declaration.additional_packages:
            candidates.append((AddonSlot.ADDITIONAL, ref_name, workload_cluster))

        items: list[CheckItem] = []
        for slot, ref_name, cluster_name in candidates:
            if not ref_name:
                raise MissingAddonError(
                    message=f"ClusterBootstrap {declaration.name} has no {slot.value} package reference",
                    slot=slot.value,
                )
            package = parse_reference(ref_name, strict=self.strict)
            if package.short_name in self.exclusions:
                logger.info("addon_excluded", package=package.ref_name, slot=slot.value)
                continue
            items.append(CheckItem.from_ref(ClusterRole.WORKLOAD, cluster_name, slot, package))

        logger.debug(
            "addon_plan_built",
            cluster_bootstrap=declaration.name,
            infrastructure=infrastructure,
            checks=len(items),
        )
        return items
