"""Debounced autosave for free-text notes fields.

NotesAutosaveController keeps a local draft and the last value known to be
on the server (the baseline). Edits restart a debounce timer; when it
fires and the draft differs from the baseline, the draft is saved.

Rules the controller keeps:
- A save that succeeds moves the baseline to the value that was sent.
  Only the newest acknowledged save counts, so a slow older save cannot
  roll the baseline back.
- Saves are never cancelled. An edit made while a save is in flight
  leaves the controller dirty and schedules another save.
- A server value observed while the draft is clean replaces both draft
  and baseline. While dirty, only the baseline moves and the user's text
  is left alone.
- Whenever the baseline moves and the draft still differs from it, a
  save is scheduled unless one is pending or already carries the draft.
- A failed save keeps the draft dirty and records the error. Nothing is
  retried until the next edit, a changed server value or flush().
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum

import structlog

from src.dealboard.client.api import DealboardClient
from src.dealboard.config import get_settings
from src.dealboard.deals.schemas import EntityType

logger = structlog.get_logger(__name__)


class NotesState(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"


class NotesAutosaveController:
    """Autosave state machine for one notes field.

    Args:
        save: Coroutine function that persists the given text.
        initial: Server value the field starts from.
        debounce: Quiet period in seconds before a save. Defaults to
            NOTES_AUTOSAVE_DEBOUNCE_MS.
        name: Label used in log events.
    """

    def __init__(
        self,
        save: Callable[[str], Awaitable[object]],
        initial: str = "",
        debounce: float | None = None,
        name: str = "notes",
    ) -> None:
        self._save = save
        self._draft = initial
        self._baseline = initial
        self._debounce = (
            debounce if debounce is not None else get_settings().notes_debounce_seconds
        )
        self._name = name

        self._timer: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()
        self._sent_seq = 0
        self._acked_seq = 0
        self._last_sent: str | None = None
        self._last_task: asyncio.Task | None = None
        self.last_error: Exception | None = None

    # ── State ───────────────────────────────────────────────────────────────

    @property
    def draft(self) -> str:
        return self._draft

    @property
    def baseline(self) -> str:
        return self._baseline

    @property
    def is_dirty(self) -> bool:
        return self._draft != self._baseline

    @property
    def state(self) -> NotesState:
        if not self.is_dirty:
            return NotesState.CLEAN
        if self._in_flight and self._last_sent == self._draft:
            return NotesState.SAVING
        return NotesState.DIRTY

    # ── Local Edits ─────────────────────────────────────────────────────────

    def edit(self, text: str) -> None:
        """Replace the draft and restart the debounce timer.

        Must be called from a running event loop.
        """
        self._draft = text
        self._restart_timer()

    def _restart_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(self._debounced_save())

    async def _debounced_save(self) -> None:
        await asyncio.sleep(self._debounce)
        self._timer = None
        self._start_save()

    def _draft_in_flight(self) -> bool:
        last = self._last_task
        return last is not None and not last.done() and self._last_sent == self._draft

    def _reschedule_if_dirty(self) -> None:
        """Arm the debounce timer after the baseline moved away from the draft."""
        if not self.is_dirty or self._draft_in_flight():
            return
        if self._timer is not None and not self._timer.done():
            return
        self._restart_timer()

    # ── Saving ──────────────────────────────────────────────────────────────

    def _start_save(self) -> asyncio.Task | None:
        if not self.is_dirty:
            return None
        if self._draft_in_flight():
            return self._last_task

        self._sent_seq += 1
        value = self._draft
        self._last_sent = value
        task = asyncio.get_running_loop().create_task(self._run_save(self._sent_seq, value))
        self._in_flight.add(task)
        self._last_task = task
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _run_save(self, seq: int, value: str) -> bool:
        try:
            await self._save(value)
        except Exception as exc:
            self.last_error = exc
            logger.warning(
                "notes.save_failed",
                field=self._name,
                seq=seq,
                error=str(exc),
            )
            return False

        if seq > self._acked_seq:
            self._acked_seq = seq
            self._baseline = value
            self.last_error = None
            logger.debug("notes.saved", field=self._name, seq=seq, length=len(value))
            self._reschedule_if_dirty()
        else:
            logger.debug("notes.stale_ack_ignored", field=self._name, seq=seq)
        return True

    async def flush(self) -> bool:
        """Save now if dirty, skipping the debounce wait.

        Returns:
            False if the save failed, True otherwise (including nothing to save).
        """
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None
        task = self._start_save()
        if task is None:
            return True
        return await task

    # ── Server Reconciliation ───────────────────────────────────────────────

    def observe_server_value(self, value: str | None) -> None:
        """Reconcile a freshly read server value with the local draft."""
        value = value or ""
        if self._draft == self._baseline:
            self._draft = value
        else:
            logger.debug("notes.server_value_deferred", field=self._name)
        self._baseline = value
        self._reschedule_if_dirty()

    # ── Lifecycle ───────────────────────────────────────────────────────────

    async def wait_idle(self) -> None:
        """Wait until no timer is pending and no save is in flight."""
        while True:
            pending = [
                t for t in (self._timer, *self._in_flight) if t is not None and not t.done()
            ]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self) -> None:
        """Drop the pending timer and let in-flight saves finish."""
        pending = list(self._in_flight)
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
            pending.append(self._timer)
        self._timer = None
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)


class NotesSession:
    """Autosaved notes of one deal or buying party, bound to the API client."""

    def __init__(
        self,
        client: DealboardClient,
        entity_type: EntityType,
        entity_id: str,
        debounce: float | None = None,
    ) -> None:
        self._client = client
        self._entity_type = EntityType(entity_type)
        self._entity_id = entity_id
        self.controller = NotesAutosaveController(
            self._save,
            debounce=debounce,
            name=f"{self._entity_type.value}:{entity_id}",
        )

    async def _save(self, notes: str) -> None:
        if self._entity_type is EntityType.DEAL:
            await self._client.save_deal_notes(self._entity_id, notes)
        else:
            await self._client.save_party_notes(self._entity_id, notes)

    async def refresh(self) -> str:
        """Fetch the record and reconcile its notes; returns the draft afterwards."""
        if self._entity_type is EntityType.DEAL:
            record = await self._client.get_deal(self._entity_id)
        else:
            record = await self._client.get_party(self._entity_id)
        self.controller.observe_server_value(record.notes)
        return self.controller.draft

    @property
    def draft(self) -> str:
        return self.controller.draft

    def edit(self, text: str) -> None:
        self.controller.edit(text)

    async def flush(self) -> bool:
        return await self.controller.flush()

    async def aclose(self) -> None:
        await self.controller.aclose()
