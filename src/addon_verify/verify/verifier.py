"""Add-on convergence verification for a management/workload cluster pair.

The verifier reads the ClusterBootstrap of the management cluster, plans
the add-on checks and polls each PackageInstall until it converges. The
first add-on, in plan order, that does not converge fails the run.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field

from ..cluster.client import ClusterClient
from ..cluster.resources import CLUSTER_BOOTSTRAP_KIND, ClusterBootstrap
from ..config import VerifierConfig
from ..errors import (
    AddonMismatchError,
    AddonNotConvergedError,
    AddonReconcileFailedError,
    AddonTimeoutError,
    BootstrapNotFoundError,
    ClusterAPIError,
    VerificationCancelledError,
)
from ..shared.logging import get_logger
from .planner import AddonPlanner, CheckItem, ClusterRole
from .poller import ConvergencePoller, ItemOutcome, ItemResult, PollState, Probe, wait_for

logger = get_logger(__name__)

FAILURE_ERRORS: dict[ItemOutcome, type[AddonNotConvergedError]] = {
    ItemOutcome.TIMEOUT: AddonTimeoutError,
    ItemOutcome.MISMATCH: AddonMismatchError,
    ItemOutcome.RECONCILE_FAILED: AddonReconcileFailedError,
}


@dataclass
class VerificationReport:
    """Results of one verification run."""

    management_cluster: str
    workload_cluster: str
    infrastructure: str
    plan: list[CheckItem] = field(default_factory=list)
    results: list[ItemResult] = field(default_factory=list)

    @property
    def first_failure(self) -> ItemResult | None:
        """First non-converged result in plan order."""
        for result in self.results:
            if not result.converged:
                return result
        return None

    @property
    def ok(self) -> bool:
        return len(self.results) == len(self.plan) and self.first_failure is None


class BootstrapVerifier:
    """Verify ClusterBootstrap add-ons on a cluster pair."""

    def __init__(
        self,
        management_client: ClusterClient,
        workload_client: ClusterClient,
        config: VerifierConfig | None = None,
        planner: AddonPlanner | None = None,
        poller: ConvergencePoller | None = None,
    ):
        """Initialize verifier.

        Args:
            management_client: Client for the management cluster.
            workload_client: Client for the workload cluster.
            config: Verifier configuration (defaults when None).
            planner: Planner override; built from config when None.
            poller: Poller override; built from config when None.
        """
        self.management_client = management_client
        self.workload_client = workload_client
        self.config = config or VerifierConfig()
        self.planner = planner or AddonPlanner(
            exclusions=self.config.excluded_packages,
            strict=self.config.strict_references,
        )
        self.poller = poller or ConvergencePoller(
            ready_timeout=self.config.ready_timeout,
            poll_interval=self.config.poll_interval,
            namespace=self.config.namespace,
            mismatch_grace=self.config.mismatch_grace,
            fail_on_reconcile_failure=self.config.fail_on_reconcile_failure,
        )

    def client_for(self, target: ClusterRole) -> ClusterClient:
        if target == ClusterRole.MANAGEMENT:
            return self.management_client
        return self.workload_client

    async def fetch_bootstrap(
        self,
        cluster_name: str,
        cancel_event: asyncio.Event | None = None,
    ) -> ClusterBootstrap:
        """Fetch the ClusterBootstrap named after a cluster.

        Retries until get_resource_timeout elapses.

        Raises:
            BootstrapNotFoundError: The ClusterBootstrap never became readable.
            VerificationCancelledError: The cancel event was set.
            ClusterAPIError: The cluster cannot be queried at all.
        """
        namespace = self.config.namespace

        async def probe() -> Probe:
            try:
                obj = await self.management_client.get(CLUSTER_BOOTSTRAP_KIND, namespace, cluster_name)
            except ClusterAPIError as e:
                if not e.retryable:
                    raise
                logger.info("get_cluster_bootstrap_error", cluster=cluster_name, error=str(e))
                return Probe(PollState.PENDING, str(e))
            return Probe(PollState.SATISFIED, value=obj)

        outcome = await wait_for(
            probe,
            timeout=self.config.get_resource_timeout,
            interval=self.config.poll_interval,
            cancel_event=cancel_event,
        )
        if outcome.state == PollState.CANCELLED:
            raise VerificationCancelledError(
                message=f"Cancelled while fetching ClusterBootstrap {namespace}/{cluster_name}"
            )
        if outcome.state != PollState.SATISFIED:
            raise BootstrapNotFoundError(
                message=(
                    f"ClusterBootstrap {namespace}/{cluster_name} not available after "
                    f"{self.config.get_resource_timeout:g}s: {outcome.reason}"
                ),
                cluster_name=cluster_name,
            )
        return ClusterBootstrap.from_object(outcome.last_probe.value)

    async def _check(
        self,
        item: CheckItem,
        cancel_event: asyncio.Event | None,
        on_attempt: Callable[[int, CheckItem, str | None], None] | None,
    ) -> ItemResult:
        return await self.poller.poll(
            self.client_for(item.target), item, cancel_event=cancel_event, on_attempt=on_attempt
        )

    async def _check_concurrently(
        self,
        plan: list[CheckItem],
        cancel_event: asyncio.Event | None,
        on_attempt: Callable[[int, CheckItem, str | None], None] | None,
    ) -> list[ItemResult]:
        """Check items in parallel, up to the configured concurrency.

        Results are collected in plan order. Once every item before a failed
        one has converged, the remaining checks are cancelled and the results
        end at that failure, as in a sequential run.
        """
        semaphore = asyncio.Semaphore(self.config.concurrency)

        async def run(item: CheckItem) -> ItemResult:
            async with semaphore:
                return await self._check(item, cancel_event, on_attempt)

        tasks = [asyncio.create_task(run(item)) for item in plan]
        results: list[ItemResult] = []
        try:
            pending = set(tasks)
            while pending:
                _, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                while len(results) < len(tasks) and tasks[len(results)].done():
                    result = tasks[len(results)].result()
                    results.append(result)
                    if not result.converged:
                        return results
            return results
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def verify(
        self,
        management_cluster: str,
        workload_cluster: str,
        infrastructure: str,
        cancel_event: asyncio.Event | None = None,
        on_attempt: Callable[[int, CheckItem, str | None], None] | None = None,
    ) -> VerificationReport:
        """Verify every planned add-on has converged.

        Args:
            management_cluster: Management cluster name.
            workload_cluster: Workload cluster name.
            infrastructure: Infrastructure provider name.
            cancel_event: Setting this event aborts the run.
            on_attempt: Optional per-poll progress callback.

        Returns:
            VerificationReport with every item converged.

        Raises:
            BootstrapNotFoundError: ClusterBootstrap could not be fetched.
            PlanningError: The declaration could not be turned into checks.
            AddonNotConvergedError: An add-on did not converge.
            VerificationCancelledError: The run was cancelled.
            ClusterAPIError: A cluster cannot be queried at all.
        """
        logger.info(
            "verify_addons",
            management_cluster=management_cluster,
            workload_cluster=workload_cluster,
            infrastructure=infrastructure,
        )
        declaration = await self.fetch_bootstrap(management_cluster, cancel_event)
        plan = self.planner.plan(declaration, infrastructure, management_cluster, workload_cluster)
        report = VerificationReport(
            management_cluster=management_cluster,
            workload_cluster=workload_cluster,
            infrastructure=infrastructure,
            plan=plan,
        )

        if self.config.concurrency <= 1:
            for item in plan:
                result = await self._check(item, cancel_event, on_attempt)
                report.results.append(result)
                if not result.converged:
                    break
        else:
            report.results.extend(await self._check_concurrently(plan, cancel_event, on_attempt))

        if any(r.outcome == ItemOutcome.CANCELLED for r in report.results):
            raise VerificationCancelledError(
                message=f"Verification of workload cluster {workload_cluster} cancelled",
                report=report,
            )

        failure = report.first_failure
        if failure is not None:
            raise self._failure_error(failure, report)

        logger.info("addons_verified", workload_cluster=workload_cluster, checks=len(plan))
        return report

    def _failure_error(self, failure: ItemResult, report: VerificationReport) -> AddonNotConvergedError:
        item = failure.item
        if failure.outcome == ItemOutcome.TIMEOUT:
            summary = f"did not converge within {self.poller.ready_timeout:g}s"
        elif failure.outcome == ItemOutcome.MISMATCH:
            summary = "does not match the ClusterBootstrap declaration"
        else:
            summary = "failed to reconcile"
        message = f"{item.describe()} {summary}"
        if failure.last_reason:
            message = f"{message} (last status: {failure.last_reason})"
        return FAILURE_ERRORS[failure.outcome](
            message=message,
            data={"package_install": item.resource_name, "outcome": failure.outcome.value},
            result=failure,
            report=report,
        )

    def verify_sync(
        self,
        management_cluster: str,
        workload_cluster: str,
        infrastructure: str,
    ) -> VerificationReport:
        """Synchronous wrapper for verify."""
        return asyncio.run(self.verify(management_cluster, workload_cluster, infrastructure))
