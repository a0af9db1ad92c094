"""Error taxonomy for add-on convergence verification.

Cluster API errors are transient from the poller's point of view and are
absorbed while polling. Planning errors abort a run before any cluster
traffic. Verification errors name the add-on and cluster that did not
converge.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .verify.poller import ItemResult
    from .verify.verifier import VerificationReport


@dataclass
class AddonVerifyError(Exception):
    """Base error class for addon-verify errors."""

    message: str
    data: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.message


@dataclass
class ConfigError(AddonVerifyError):
    """Configuration file or value is invalid."""

    message: str = "Invalid configuration"


@dataclass
class ClusterAPIError(AddonVerifyError):
    """Request to the cluster API failed."""

    message: str = "Cluster API request failed"
    retryable: bool = True


@dataclass
class ResourceNotFoundError(ClusterAPIError):
    """Requested resource does not exist (yet)."""

    message: str = "Resource not found"


@dataclass
class PlanningError(AddonVerifyError):
    """Check plan could not be built from the bootstrap declaration."""

    message: str = "Failed to plan add-on checks"


@dataclass
class MalformedReferenceError(PlanningError):
    """Package reference does not have the expected dotted structure."""

    message: str = "Malformed package reference"
    reference: str = ""


@dataclass
class MissingAddonError(PlanningError):
    """A required add-on slot has no package reference."""

    message: str = "Required add-on reference is missing"
    slot: str = ""


@dataclass
class VerificationError(AddonVerifyError):
    """Verification run failed."""

    message: str = "Add-on verification failed"


@dataclass
class BootstrapNotFoundError(VerificationError):
    """ClusterBootstrap never appeared within the fetch deadline."""

    message: str = "ClusterBootstrap not found"
    cluster_name: str = ""


@dataclass
class AddonNotConvergedError(VerificationError):
    """An add-on did not reach a successfully reconciled state."""

    message: str = "Add-on did not converge"
    result: ItemResult | None = None
    report: VerificationReport | None = None


@dataclass
class AddonTimeoutError(AddonNotConvergedError):
    """Readiness deadline elapsed before the add-on converged."""

    message: str = "Timed out waiting for add-on"


@dataclass
class AddonMismatchError(AddonNotConvergedError):
    """Installed package name or version kept differing from the declaration."""

    message: str = "Installed add-on does not match declaration"


@dataclass
class AddonReconcileFailedError(AddonNotConvergedError):
    """Package installation reported a failed reconciliation."""

    message: str = "Add-on reconciliation failed"


@dataclass
class VerificationCancelledError(AddonVerifyError):
    """Run was cancelled before it completed."""

    message: str = "Verification cancelled"
    report: VerificationReport | None = None
