"""addon-verify - Verify ClusterBootstrap add-ons converge on a cluster pair."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("addon-verify")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for editable installs without metadata

from .verify import BootstrapVerifier, VerificationReport

__all__ = ["BootstrapVerifier", "VerificationReport", "__version__"]
