"""Debounced auto-save of an in-memory itinerary.

Every mutation restarts a quiet-period timer; when it elapses, the latest
collection is written as a full-document overwrite under the armed scope.
Loading a scope arms the coordinator without writing. Re-arming or closing
drops the pending timer without a final save.

Write failures are logged and dropped: the in-memory collection stays the
source of truth and the next mutation's save retries implicitly. Shared-trip
scopes write conditionally on the version last seen; a mismatch leaves the
coordinator in ``conflict`` until the scope is reloaded.
"""

import asyncio
import logging
import time
from datetime import datetime

from backend.app.db.context import ItineraryScope
from backend.app.db.repositories import ReplaceableDocumentStore, VersionConflictError
from backend.app.models.common import ScopeKind, SyncStatus
from backend.app.models.itinerary import ItineraryDocument, ItineraryEvent
from backend.app.utils.logging import StructuredSyncLogger
from backend.app.utils.metrics import PrometheusSyncMetrics, metrics

logger = logging.getLogger(__name__)


class AutoSaveCoordinator:
    """Coalesces itinerary mutations into at most one write per quiet period."""

    def __init__(
        self,
        store: ReplaceableDocumentStore,
        app_id: str,
        debounce_seconds: float = 1.5,
        sync_logger: StructuredSyncLogger | None = None,
        sync_metrics: PrometheusSyncMetrics | None = None,
    ) -> None:
        self._store = store
        self._app_id = app_id
        self._delay = debounce_seconds
        self._log = sync_logger or StructuredSyncLogger()
        self._metrics = sync_metrics or metrics

        self._scope: ItineraryScope | None = None
        self._version = 0
        self._epoch = 0
        self._timer: asyncio.TimerHandle | None = None
        self._pending: list[ItineraryEvent] | None = None
        self._writes: set[asyncio.Task[None]] = set()
        self._write_lock = asyncio.Lock()
        self.status = SyncStatus.idle

    @property
    def scope(self) -> ItineraryScope | None:
        return self._scope

    @property
    def version(self) -> int:
        """Store version of the last document loaded or written for the scope."""
        return self._version

    @property
    def has_pending(self) -> bool:
        return self._timer is not None

    def arm(self, scope: ItineraryScope, version: int) -> None:
        """Point the coordinator at a freshly loaded scope without saving.

        Any pending save for the previous scope is dropped, and writes still
        waiting for their turn are invalidated.
        """
        self._cancel_timer()
        self._pending = None
        self._epoch += 1
        self._scope = scope
        self._version = version
        self.status = SyncStatus.idle

    def schedule(self, events: list[ItineraryEvent]) -> None:
        """Record a mutation and restart the quiet-period timer."""
        if self._scope is None:
            raise RuntimeError("auto-save coordinator is not armed")

        self._cancel_timer()
        self._pending = list(events)
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._delay, self._fire, self._epoch)

        if self.status != SyncStatus.conflict:
            self.status = SyncStatus.pending

    async def flush(self) -> None:
        """Write the pending collection now instead of waiting for the timer."""
        if self._timer is None:
            await self.drain()
            return

        snapshot, self._pending = self._pending or [], None
        self._cancel_timer()
        await self._write(self._epoch, snapshot)

    async def drain(self) -> None:
        """Wait for writes that already started."""
        if self._writes:
            await asyncio.gather(*list(self._writes))

    def close(self) -> None:
        """Stop without a final save (scope left or session ended)."""
        self._cancel_timer()
        self._pending = None
        self._epoch += 1
        self._scope = None
        if self.status == SyncStatus.pending:
            self.status = SyncStatus.idle

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, epoch: int) -> None:
        self._timer = None
        snapshot, self._pending = self._pending or [], None
        task = asyncio.get_running_loop().create_task(self._write(epoch, snapshot))
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)

    async def _write(self, epoch: int, events: list[ItineraryEvent]) -> None:
        async with self._write_lock:
            scope = self._scope
            if epoch != self._epoch or scope is None:
                # Scope changed while this write was queued
                return

            document = ItineraryDocument(
                events=events,
                updated_at=datetime.now(),
                updated_by=scope.owner_id,
            ).model_dump(mode="json")
            expected = self._version if scope.kind == ScopeKind.trip else None

            start = time.perf_counter()
            try:
                new_version = await self._store.replace(
                    scope.document_path(self._app_id), document, expected_version=expected
                )
            except VersionConflictError as e:
                latency_ms = (time.perf_counter() - start) * 1000
                self._record(scope, "conflict", len(events), latency_ms, error_reason=str(e))
                if epoch == self._epoch:
                    self.status = SyncStatus.conflict
                return
            except Exception as e:
                latency_ms = (time.perf_counter() - start) * 1000
                self._record(
                    scope, "failed", len(events), latency_ms, error_reason=type(e).__name__
                )
                logger.exception("Itinerary save failed; keeping in-memory state")
                if epoch == self._epoch:
                    self.status = SyncStatus.failed
                return

            latency_ms = (time.perf_counter() - start) * 1000
            self._record(scope, "saved", len(events), latency_ms, version=new_version)

            if epoch == self._epoch:
                self._version = new_version
                if self._timer is None:
                    self.status = SyncStatus.saved

    def _record(
        self,
        scope: ItineraryScope,
        outcome: str,
        event_count: int,
        latency_ms: float,
        version: int | None = None,
        error_reason: str | None = None,
    ) -> None:
        self._metrics.record_save(scope.kind.value, outcome, latency_ms)
        self._log.log_save(
            scope,
            outcome,
            event_count,
            latency_ms,
            version=version,
            error_reason=error_reason,
        )
