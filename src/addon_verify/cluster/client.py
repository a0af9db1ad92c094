"""Read-only cluster API access.

The verifier only ever reads objects, so the client surface is a single
``get``. ``KubectlClient`` shells out to kubectl the same way the rest of
our cluster tooling does, which keeps credential handling (kubeconfig,
contexts, exec plugins) with kubectl itself.
"""

from __future__ import annotations

import asyncio
import json
import subprocess
from typing import Any, Protocol

from ..errors import ClusterAPIError, ResourceNotFoundError
from ..shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0


class ClusterClient(Protocol):
    """Minimal read interface onto one cluster."""

    async def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        """Fetch a single object.

        Raises:
            ResourceNotFoundError: Object does not exist.
            ClusterAPIError: Any other failure talking to the cluster.
        """
        ...


class KubectlClient:
    """Cluster client backed by ``kubectl get -o json``."""

    def __init__(
        self,
        kubeconfig: str | None = None,
        context: str | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        """Initialize client.

        Args:
            kubeconfig: Path to kubeconfig file (kubectl default when None).
            context: Kubeconfig context to use.
            request_timeout: Seconds before a single kubectl call is abandoned.
        """
        self.kubeconfig = kubeconfig
        self.context = context
        self.request_timeout = request_timeout

    def _kubectl_cmd(self) -> list[str]:
        """Build base kubectl command."""
        cmd = ["kubectl"]
        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])
        if self.context:
            cmd.extend(["--context", self.context])
        return cmd

    async def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        return await asyncio.to_thread(self._get, kind, namespace, name)

    def _get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        target = f"{kind}/{name} in namespace {namespace}"
        try:
            result = subprocess.run(
                self._kubectl_cmd() + ["-n", namespace, "get", kind, name, "-o", "json"],
                capture_output=True,
                text=True,
                timeout=self.request_timeout,
            )
        except FileNotFoundError:
            raise ClusterAPIError(message="kubectl not found. Is kubectl installed?", retryable=False)
        except subprocess.TimeoutExpired:
            raise ClusterAPIError(
                message=f"Timed out getting {target}",
                data={"timeout": self.request_timeout},
            )

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            if "NotFound" in stderr or "not found" in stderr:
                raise ResourceNotFoundError(
                    message=f"{target} not found",
                    data={"kind": kind, "namespace": namespace, "name": name},
                )
            raise ClusterAPIError(
                message=f"Failed to get {target}: {stderr}",
                data={"kind": kind, "namespace": namespace, "name": name},
            )

        try:
            obj = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ClusterAPIError(message=f"Invalid JSON for {target}: {e}")
        if not isinstance(obj, dict):
            raise ClusterAPIError(message=f"Unexpected response for {target}")

        logger.debug("resource_fetched", kind=kind, namespace=namespace, name=name)
        return obj
