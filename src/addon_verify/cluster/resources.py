"""Read-only views over ClusterBootstrap and PackageInstall objects.

Objects arrive as the decoded JSON documents returned by the cluster API.
Only the fields the verifier reads are extracted; missing fields map to
empty values rather than errors, since a half-populated object is just a
resource that has not been reconciled yet.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Namespace holding ClusterBootstrap and PackageInstall objects
TKG_NAMESPACE = "tkg-system"

# Resource kinds as understood by kubectl
CLUSTER_BOOTSTRAP_KIND = "clusterbootstraps.run.tanzu.vmware.com"
PACKAGE_INSTALL_KIND = "packageinstalls.packaging.carvel.dev"

# kapp-controller condition types
RECONCILE_SUCCEEDED = "ReconcileSucceeded"
RECONCILE_FAILED = "ReconcileFailed"
CONDITION_TRUE = "True"


def _section(obj: Any, key: str) -> dict[str, Any]:
    value = obj.get(key) if isinstance(obj, dict) else None
    return value if isinstance(value, dict) else {}


def _list(obj: dict[str, Any], key: str) -> list[Any]:
    value = obj.get(key)
    return value if isinstance(value, list) else []


def _ref_name(section: Any) -> str | None:
    if not isinstance(section, dict):
        return None
    return section.get("refName") or None


@dataclass
class ClusterBootstrap:
    """Add-on declaration for a cluster."""

    name: str
    namespace: str = TKG_NAMESPACE
    cni: str | None = None
    kapp: str | None = None
    csi: str | None = None
    cpi: str | None = None
    additional_packages: list[str] = field(default_factory=list)

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> ClusterBootstrap:
        """Build from a ClusterBootstrap object document.

        Args:
            obj: Decoded resource (``metadata`` + ``spec``).

        Returns:
            ClusterBootstrap view.
        """
        metadata = _section(obj, "metadata")
        spec = _section(obj, "spec")
        additional = [
            pkg.get("refName", "") if isinstance(pkg, dict) else ""
            for pkg in _list(spec, "additionalPackages")
        ]
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", TKG_NAMESPACE),
            cni=_ref_name(spec.get("cni")),
            kapp=_ref_name(spec.get("kapp")),
            csi=_ref_name(spec.get("csi")),
            cpi=_ref_name(spec.get("cpi")),
            additional_packages=additional,
        )


@dataclass(frozen=True)
class Condition:
    """A status condition reported by the kapp-controller."""

    type: str
    status: str
    message: str = ""

    @property
    def is_true(self) -> bool:
        return self.status == CONDITION_TRUE


@dataclass
class PackageInstall:
    """Installation status of a package on a cluster."""

    name: str
    namespace: str = TKG_NAMESPACE
    ref_name: str = ""
    version_constraints: str = ""
    conditions: list[Condition] = field(default_factory=list)

    @property
    def first_condition(self) -> Condition | None:
        return self.conditions[0] if self.conditions else None

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> PackageInstall:
        """Build from a PackageInstall object document.

        Args:
            obj: Decoded resource (``metadata``, ``spec``, ``status``).

        Returns:
            PackageInstall view.
        """
        metadata = _section(obj, "metadata")
        package_ref = _section(_section(obj, "spec"), "packageRef")
        version_selection = _section(package_ref, "versionSelection")
        conditions = [
            Condition(
                type=str(c.get("type", "")),
                status=str(c.get("status", "")),
                message=str(c.get("message", "")),
            )
            for c in _list(_section(obj, "status"), "conditions")
            if isinstance(c, dict)
        ]
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", TKG_NAMESPACE),
            ref_name=str(package_ref.get("refName", "")),
            version_constraints=str(version_selection.get("constraints", "")),
            conditions=conditions,
        )
