"""In-memory cluster client for verifier tests."""

from __future__ import annotations

import copy
from collections import defaultdict
from typing import Any

from addon_verify.cluster import CLUSTER_BOOTSTRAP_KIND, PACKAGE_INSTALL_KIND, TKG_NAMESPACE
from addon_verify.errors import ResourceNotFoundError

Response = dict[str, Any] | Exception


class FakeClusterClient:
    """Serves scripted responses per object.

    Each object key maps to a sequence of responses returned one per ``get``;
    the last response repeats. Unknown objects raise ResourceNotFoundError.
    """

    def __init__(self) -> None:
        self._responses: dict[tuple[str, str, str], list[Response]] = {}
        self.calls: list[tuple[str, str, str]] = []
        self.call_counts: dict[tuple[str, str, str], int] = defaultdict(int)

    def set(self, kind: str, namespace: str, name: str, *responses: Response) -> None:
        self._responses[(kind, namespace, name)] = list(responses)

    def set_bootstrap(self, obj: dict[str, Any], namespace: str = TKG_NAMESPACE) -> None:
        self.set(CLUSTER_BOOTSTRAP_KIND, namespace, obj["metadata"]["name"], obj)

    def set_package_install(self, name: str, *responses: Response, namespace: str = TKG_NAMESPACE) -> None:
        self.set(PACKAGE_INSTALL_KIND, namespace, name, *responses)

    async def get(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        key = (kind, namespace, name)
        self.calls.append(key)
        index = self.call_counts[key]
        self.call_counts[key] += 1

        responses = self._responses.get(key)
        if not responses:
            raise ResourceNotFoundError(message=f"{kind}/{name} not found")
        response = responses[min(index, len(responses) - 1)]
        if isinstance(response, Exception):
            raise response
        return copy.deepcopy(response)


def cluster_bootstrap(
    name: str,
    cni: str | None = None,
    kapp: str | None = None,
    csi: str | None = None,
    cpi: str | None = None,
    additional: list[str] | None = None,
) -> dict[str, Any]:
    """Build a ClusterBootstrap object document."""
    spec: dict[str, Any] = {}
    for key, ref in (("cni", cni), ("kapp", kapp), ("csi", csi), ("cpi", cpi)):
        if ref is not None:
            spec[key] = {"refName": ref, "valuesFrom": {"providerRef": {"kind": "Config"}}}
    if additional is not None:
        spec["additionalPackages"] = [{"refName": ref} for ref in additional]
    return {
        "apiVersion": "run.tanzu.vmware.com/v1alpha3",
        "kind": "ClusterBootstrap",
        "metadata": {"name": name, "namespace": TKG_NAMESPACE},
        "spec": spec,
    }


def package_install(
    name: str,
    ref_name: str,
    constraints: str,
    conditions: list[tuple[str, str]] | None = None,
) -> dict[str, Any]:
    """Build a PackageInstall object document."""
    if conditions is None:
        conditions = [("ReconcileSucceeded", "True")]
    return {
        "apiVersion": "packaging.carvel.dev/v1alpha1",
        "kind": "PackageInstall",
        "metadata": {"name": name, "namespace": TKG_NAMESPACE},
        "spec": {
            "packageRef": {
                "refName": ref_name,
                "versionSelection": {"constraints": constraints},
            },
        },
        "status": {
            "conditions": [{"type": t, "status": s} for t, s in conditions],
        },
    }
