"""Add-on convergence verification.

This package verifies ClusterBootstrap add-ons on a cluster pair:
1. Parses package references
2. Plans which add-ons to check on which cluster
3. Polls each PackageInstall until it converges
4. Reports the first add-on that did not
"""

from .planner import AddonPlanner, AddonSlot, CheckItem, ClusterRole
from .poller import ConvergencePoller, ItemOutcome, ItemResult, PollState, Probe, WaitOutcome, wait_for
from .reference import PackageRef, parse_reference
from .verifier import BootstrapVerifier, VerificationReport

__all__ = [
    # References
    "PackageRef",
    "parse_reference",
    # Planning
    "AddonPlanner",
    "AddonSlot",
    "CheckItem",
    "ClusterRole",
    # Polling
    "ConvergencePoller",
    "ItemOutcome",
    "ItemResult",
    "PollState",
    "Probe",
    "WaitOutcome",
    "wait_for",
    # Verification
    "BootstrapVerifier",
    "VerificationReport",
]
