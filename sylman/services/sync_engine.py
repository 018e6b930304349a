"""Save orchestration: manual saves, interval autosave, change detection, status.

One engine per editing session. Manual saves and autosave ticks share a
single in-flight guard: a save requested while another is outstanding is
dropped, never queued. The cached syllabus id and the last-saved snapshot
are written only after the store has answered.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from sylman.core.config import Settings, get_settings
from sylman.core.logger import log_status
from sylman.schemas.syllabus import SyllabusData
from sylman.services.assembler import DocumentAssembler
from sylman.services.form_layout import FIELD_LABELS, SCALAR_FIELDS
from sylman.services.form_tree import FormNode
from sylman.services.gateway import GatewayError, SyllabusGateway
from sylman.services.rich_text import RichTextBridge
from sylman.services.session import SessionContext

logger = logging.getLogger(__name__)

AUTOSAVING = "Autosaving..."
AUTOSAVE_FAILED = "Autosave failed. Please check your connection."
STALE_ID = "This syllabus no longer exists on the server; the next save will create a new one."


class SyncState(str, Enum):
    IDLE = "idle"
    SAVING = "saving"
    AUTOSAVE_PENDING = "autosave_pending"


class SaveOutcome(str, Enum):
    SAVED = "saved"
    SKIPPED_UNCHANGED = "skipped_unchanged"
    BUSY = "busy"
    VALIDATION_FAILED = "validation_failed"
    STALE_ID = "stale_id"
    FAILED = "failed"


@dataclass
class SaveResult:
    outcome: SaveOutcome
    syllabus_id: Optional[str] = None
    created: bool = False
    message: str = ""
    missing_fields: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.outcome in (SaveOutcome.SAVED, SaveOutcome.SKIPPED_UNCHANGED)


class StatusReporter:
    """Writes status text to the status area; transient messages clear themselves.

    With a running loop the clear is scheduled with ``call_later``. Callers
    without a persistent loop (one ``asyncio.run`` per action) call
    ``expire()`` instead, which clears by timestamp.
    """

    def __init__(
        self,
        node: Optional[FormNode] = None,
        clear_after: Optional[float] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.node = node
        self.clear_after = clear_after if clear_after is not None else get_settings().status_clear_seconds
        self.text = ""
        self._monotonic = monotonic
        self._expires_at: Optional[float] = None
        self._clear_handle: Optional[asyncio.TimerHandle] = None

    def show(self, text: str, level: int = logging.INFO, transient: bool = False) -> None:
        self._cancel_clear()
        self.text = text
        if self.node is not None:
            self.node.text = text
        log_status(text, level)
        if transient:
            self._expires_at = self._monotonic() + self.clear_after
            self._schedule_clear()

    def clear(self) -> None:
        self._cancel_clear()
        self.text = ""
        if self.node is not None:
            self.node.text = ""

    def expire(self) -> bool:
        """Clear a transient message whose display time has passed."""
        if self._expires_at is None or self._monotonic() < self._expires_at:
            return False
        self.clear()
        return True

    def _schedule_clear(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._clear_handle = loop.call_later(self.clear_after, self.clear)

    def _cancel_clear(self) -> None:
        self._expires_at = None
        if self._clear_handle is not None:
            self._clear_handle.cancel()
            self._clear_handle = None


class SyncEngine:
    def __init__(
        self,
        session: SessionContext,
        gateway: SyllabusGateway,
        assembler: DocumentAssembler,
        bridge: Optional[RichTextBridge] = None,
        status: Optional[StatusReporter] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.session = session
        self.gateway = gateway
        self.assembler = assembler
        self.bridge = bridge
        self.settings = settings or get_settings()
        self.status = status or StatusReporter(clear_after=self.settings.status_clear_seconds)
        self._clock = clock
        self._in_flight = False
        self._last_saved: Optional[Dict[str, Any]] = None
        self._autosave_task: Optional[asyncio.Task] = None

    # -- state -----------------------------------------------------------

    @property
    def state(self) -> SyncState:
        if self._in_flight:
            return SyncState.SAVING
        if self.autosave_running:
            return SyncState.AUTOSAVE_PENDING
        return SyncState.IDLE

    @property
    def autosave_running(self) -> bool:
        return self._autosave_task is not None and not self._autosave_task.done()

    @property
    def last_saved_snapshot(self) -> Optional[Dict[str, Any]]:
        return self._last_saved

    def mark_saved(self, document: SyllabusData) -> None:
        """Record ``document`` as matching the store (e.g. right after a load)."""
        self._last_saved = document.content()

    def mark_stale(self) -> None:
        """Forget the cached id and baseline; the next save (manual or auto) creates."""
        self.session.clear_syllabus()
        self._last_saved = None
        self.status.show(STALE_ID, logging.WARNING)

    def snapshot(self) -> SyllabusData:
        if self.bridge is not None:
            self.bridge.sync_all()
        return self.assembler.assemble()

    def missing_required(self, document: SyllabusData) -> List[str]:
        wire = document.to_wire()
        return [key for key in self.settings.required_fields if not str(wire.get(key, "")).strip()]

    # -- saving ----------------------------------------------------------

    async def manual_save(self) -> SaveResult:
        return await self._save(autosave=False)

    async def autosave_tick(self) -> SaveResult:
        return await self._save(autosave=True)

    async def _save(self, autosave: bool) -> SaveResult:
        kind = "autosave" if autosave else "save"
        if self._in_flight:
            logger.info("A save is already in flight; dropping %s request.", kind)
            return SaveResult(SaveOutcome.BUSY, syllabus_id=self.session.syllabus_id)

        self._in_flight = True
        try:
            document = self.snapshot()
            content = document.content()

            if autosave and content == self._last_saved:
                logger.debug("No changes since last save; skipping autosave.")
                return SaveResult(SaveOutcome.SKIPPED_UNCHANGED, syllabus_id=self.session.syllabus_id)

            if not autosave:
                missing = self.missing_required(document)
                if missing:
                    labels = ", ".join(FIELD_LABELS.get(SCALAR_FIELDS.get(key, key), key) for key in missing)
                    message = f"Please fill in the required fields: {labels}"
                    self.status.show(message, logging.WARNING)
                    return SaveResult(SaveOutcome.VALIDATION_FAILED, message=message, missing_fields=missing)
            else:
                self.status.show(AUTOSAVING)

            return await self._send(document, content, autosave)
        finally:
            self._in_flight = False

    async def _send(self, document: SyllabusData, content: Dict[str, Any], autosave: bool) -> SaveResult:
        now = self._clock()
        document.last_edited = now.isoformat()
        syllabus_id = self.session.syllabus_id
        created = False

        try:
            if syllabus_id:
                await self.gateway.update(syllabus_id, document, autosave=autosave, last_edited=document.last_edited)
            else:
                syllabus_id = await self.gateway.create(self.session.user_id, document, autosave=autosave)
                created = True
        except GatewayError as exc:
            if exc.is_not_found and syllabus_id:
                logger.warning("Syllabus %s not found on update; clearing cached id.", syllabus_id)
                self.mark_stale()
                return SaveResult(SaveOutcome.STALE_ID, message=STALE_ID)
            message = AUTOSAVE_FAILED if autosave else f"Failed to save form data: {exc.message}"
            self.status.show(message, logging.ERROR)
            return SaveResult(SaveOutcome.FAILED, syllabus_id=self.session.syllabus_id, message=message)
        except Exception as exc:
            logger.exception("Unexpected error while saving syllabus")
            message = AUTOSAVE_FAILED if autosave else f"Failed to save form data: {exc}"
            self.status.show(message, logging.ERROR)
            return SaveResult(SaveOutcome.FAILED, syllabus_id=self.session.syllabus_id, message=message)

        if created:
            self.session.open_syllabus(syllabus_id)
            logger.info("Created syllabus %s", syllabus_id)
        self._last_saved = content

        stamp = now.strftime("%H:%M:%S")
        if autosave:
            message = f"Autosaved at {stamp}"
        else:
            message = f"Saved at {stamp}"
            self.stop_autosave()
        self.status.show(message, transient=True)
        return SaveResult(SaveOutcome.SAVED, syllabus_id=syllabus_id, created=created, message=message)

    # -- autosave timer --------------------------------------------------

    def start_autosave(self, interval: Optional[float] = None) -> bool:
        """Start the interval loop; False when it is already running."""
        if self.autosave_running:
            return False
        period = interval if interval is not None else self.settings.autosave_interval_seconds
        self._autosave_task = asyncio.get_running_loop().create_task(self._autosave_loop(period))
        logger.info("Autosave started (every %ss)", period)
        return True

    def stop_autosave(self) -> bool:
        if not self.autosave_running:
            return False
        self._autosave_task.cancel()
        self._autosave_task = None
        logger.info("Autosave stopped")
        return True

    async def _autosave_loop(self, period: float) -> None:
        while True:
            await asyncio.sleep(period)
            await self.autosave_tick()

    async def aclose(self) -> None:
        task = self._autosave_task
        self.stop_autosave()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.status.clear()
