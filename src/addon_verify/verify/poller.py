"""Convergence polling for add-on PackageInstalls.

``wait_for`` is the bounded-retry primitive: it probes immediately, then
every interval, until the probe settles, the deadline passes or the
cancel event is set. ``ConvergencePoller`` uses it to wait for a
PackageInstall to report ``ReconcileSucceeded`` for the declared package
and version.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..cluster.client import ClusterClient
from ..cluster.resources import (
    PACKAGE_INSTALL_KIND,
    RECONCILE_FAILED,
    RECONCILE_SUCCEEDED,
    TKG_NAMESPACE,
    PackageInstall,
)
from ..config import DEFAULT_POLL_INTERVAL, DEFAULT_READY_TIMEOUT
from ..errors import ClusterAPIError
from ..shared.logging import get_logger
from .planner import CheckItem

logger = get_logger(__name__)


class PollState(Enum):
    """State of a bounded wait."""

    PENDING = "pending"
    SATISFIED = "satisfied"
    ABORTED = "aborted"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass
class Probe:
    """Result of one probe. Only PENDING, SATISFIED and ABORTED are valid."""

    state: PollState
    reason: str | None = None
    value: Any = None


@dataclass
class WaitOutcome:
    """Final state of a bounded wait."""

    state: PollState
    attempts: int = 0
    elapsed_seconds: float = 0.0
    last_probe: Probe | None = None

    @property
    def reason(self) -> str | None:
        return self.last_probe.reason if self.last_probe else None


async def _pause(delay: float, cancel_event: asyncio.Event | None) -> bool:
    """Sleep for delay seconds. Returns True if the cancel event fired."""
    if cancel_event is None:
        await asyncio.sleep(delay)
        return False
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return False
    return True


async def wait_for(
    probe: Callable[[], Awaitable[Probe]],
    timeout: float,
    interval: float,
    cancel_event: asyncio.Event | None = None,
    on_attempt: Callable[[int, Probe], None] | None = None,
) -> WaitOutcome:
    """Probe until settled, timed out or cancelled.

    Args:
        probe: Async callable returning a Probe.
        timeout: Seconds from the first attempt until TIMEOUT.
        interval: Seconds between attempts.
        cancel_event: Setting this event ends the wait with CANCELLED.
        on_attempt: Optional callback called with (attempt, probe).

    Returns:
        WaitOutcome with the final state.
    """
    loop = asyncio.get_running_loop()
    start = loop.time()
    deadline = start + timeout
    attempt = 0
    last: Probe | None = None

    while True:
        if cancel_event is not None and cancel_event.is_set():
            return WaitOutcome(PollState.CANCELLED, attempt, loop.time() - start, last)

        attempt += 1
        last = await probe()
        if on_attempt:
            on_attempt(attempt, last)
        if last.state in (PollState.SATISFIED, PollState.ABORTED):
            return WaitOutcome(last.state, attempt, loop.time() - start, last)

        remaining = deadline - loop.time()
        if remaining <= 0:
            return WaitOutcome(PollState.TIMEOUT, attempt, loop.time() - start, last)

        if await _pause(min(interval, remaining), cancel_event):
            return WaitOutcome(PollState.CANCELLED, attempt, loop.time() - start, last)


class ItemOutcome(Enum):
    """Verification outcome for one add-on."""

    CONVERGED = "converged"
    TIMEOUT = "timeout"
    MISMATCH = "mismatch"
    RECONCILE_FAILED = "reconcile_failed"
    CANCELLED = "cancelled"


@dataclass
class ItemResult:
    """Outcome of polling one add-on."""

    item: CheckItem
    outcome: ItemOutcome
    attempts: int = 0
    elapsed_seconds: float = 0.0
    last_reason: str | None = None

    @property
    def converged(self) -> bool:
        return self.outcome == ItemOutcome.CONVERGED


class ConvergencePoller:
    """Wait for a PackageInstall to converge on the declared package."""

    def __init__(
        self,
        ready_timeout: float = DEFAULT_READY_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        namespace: str = TKG_NAMESPACE,
        mismatch_grace: float | None = None,
        fail_on_reconcile_failure: bool = False,
    ):
        """Initialize poller.

        Args:
            ready_timeout: Seconds to wait for each add-on.
            poll_interval: Seconds between PackageInstall lookups.
            namespace: Namespace holding the PackageInstalls.
            mismatch_grace: Seconds a reconciled but mismatching package may
                persist before failing with MISMATCH. None waits until
                ready_timeout.
            fail_on_reconcile_failure: Fail as soon as the first condition is
                ReconcileFailed instead of waiting for a retry to succeed.
        """
        self.ready_timeout = ready_timeout
        self.poll_interval = poll_interval
        self.namespace = namespace
        self.mismatch_grace = mismatch_grace
        self.fail_on_reconcile_failure = fail_on_reconcile_failure

    @staticmethod
    def mismatch(install: PackageInstall, item: CheckItem) -> str | None:
        """Describe how an installed package differs from the check item."""
        if install.ref_name != item.full_name:
            return f"package {install.ref_name!r} installed, expected {item.full_name!r}"
        if install.version_constraints != item.version:
            return f"version {install.version_constraints!r} installed, expected {item.version!r}"
        return None

    async def poll(
        self,
        client: ClusterClient,
        item: CheckItem,
        cancel_event: asyncio.Event | None = None,
        on_attempt: Callable[[int, CheckItem, str | None], None] | None = None,
    ) -> ItemResult:
        """Poll the item's PackageInstall until it converges.

        Retryable lookup errors, missing conditions, unsucceeded conditions
        and mismatches are all treated as not ready yet.

        Args:
            client: Cluster holding the PackageInstall.
            item: Add-on to check.
            cancel_event: Setting this event ends polling with CANCELLED.
            on_attempt: Optional callback called with (attempt, item, reason).

        Returns:
            ItemResult for the item.

        Raises:
            ClusterAPIError: A lookup failed in a way retrying cannot fix.
        """
        log = logger.bind(
            package_install=item.resource_name,
            package=item.full_name,
            version=item.version,
            cluster=item.target.value,
        )
        log.info("check_package_install")
        loop = asyncio.get_running_loop()
        mismatch_since: float | None = None

        async def probe() -> Probe:
            nonlocal mismatch_since
            try:
                obj = await client.get(PACKAGE_INSTALL_KIND, self.namespace, item.resource_name)
            except ClusterAPIError as e:
                if not e.retryable:
                    log.error("get_package_install_failed", error=str(e))
                    raise
                log.info("get_package_install_error", error=str(e))
                mismatch_since = None
                return Probe(PollState.PENDING, f"lookup failed: {e}")

            install = PackageInstall.from_object(obj)
            condition = install.first_condition
            log.debug(
                "package_install_fetched",
                conditions=len(install.conditions),
                ref_name=install.ref_name,
                constraints=install.version_constraints,
            )
            if condition is None:
                mismatch_since = None
                return Probe(PollState.PENDING, "no conditions reported")

            if condition.type != RECONCILE_SUCCEEDED or not condition.is_true:
                mismatch_since = None
                reason = f"condition {condition.type}={condition.status}"
                if condition.message:
                    reason = f"{reason}: {condition.message}"
                if self.fail_on_reconcile_failure and condition.type == RECONCILE_FAILED and condition.is_true:
                    return Probe(PollState.ABORTED, reason, ItemOutcome.RECONCILE_FAILED)
                return Probe(PollState.PENDING, reason)

            mismatch = self.mismatch(install, item)
            if mismatch is None:
                return Probe(PollState.SATISFIED)

            now = loop.time()
            if mismatch_since is None:
                mismatch_since = now
            if self.mismatch_grace is not None and now - mismatch_since >= self.mismatch_grace:
                return Probe(PollState.ABORTED, mismatch, ItemOutcome.MISMATCH)
            return Probe(PollState.PENDING, mismatch)

        def report_attempt(attempt: int, result: Probe) -> None:
            if result.state == PollState.PENDING:
                log.info("package_install_not_ready", attempt=attempt, reason=result.reason)
            if on_attempt:
                on_attempt(attempt, item, result.reason)

        outcome = await wait_for(
            probe,
            timeout=self.ready_timeout,
            interval=self.poll_interval,
            cancel_event=cancel_event,
            on_attempt=report_attempt,
        )

        if outcome.state == PollState.SATISFIED:
            item_outcome = ItemOutcome.CONVERGED
            log.info("addon_converged", attempts=outcome.attempts, elapsed_seconds=outcome.elapsed_seconds)
        elif outcome.state == PollState.ABORTED:
            item_outcome = outcome.last_probe.value
            log.warning("addon_failed", outcome=item_outcome.value, reason=outcome.reason)
        elif outcome.state == PollState.CANCELLED:
            item_outcome = ItemOutcome.CANCELLED
            log.warning("addon_check_cancelled", attempts=outcome.attempts)
        else:
            item_outcome = ItemOutcome.TIMEOUT
            log.warning(
                "addon_timeout",
                timeout=self.ready_timeout,
                attempts=outcome.attempts,
                reason=outcome.reason,
            )

        return ItemResult(
            item=item,
            outcome=item_outcome,
            attempts=outcome.attempts,
            elapsed_seconds=outcome.elapsed_seconds,
            last_reason=outcome.reason,
        )
