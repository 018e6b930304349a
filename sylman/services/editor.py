"""Editing-session controller wiring the form tree to the sync engine."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from sylman.core.config import Settings, get_settings
from sylman.schemas.syllabus import SyllabusData
from sylman.services.assembler import DocumentAssembler
from sylman.services.field_accessor import FieldAccessor
from sylman.services.form_layout import build_form_tree
from sylman.services.form_tree import FormNode, FormTree
from sylman.services.gateway import GatewayError, SyllabusGateway
from sylman.services.list_builder import DynamicListBuilder
from sylman.services.listener_registry import ListenerRegistry
from sylman.services.populator import DocumentPopulator
from sylman.services.rich_text import RichTextBridge
from sylman.services.session import SessionContext
from sylman.services.sync_engine import SaveResult, StatusReporter, SyncEngine
from sylman.services.syllabus_formatter import syllabus_to_text

logger = logging.getLogger(__name__)


class SyllabusEditor:
    """
    One open syllabus form.

    Builds the tree and every component around it, wires the static form
    controls, and exposes the session-level operations: open, program
    change, interaction tracking and submit.
    """

    def __init__(
        self,
        session: SessionContext,
        gateway: SyllabusGateway,
        settings: Optional[Settings] = None,
        tree: Optional[FormTree] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.settings = settings or get_settings()
        self.session = session
        self.gateway = gateway
        self.tree = tree or build_form_tree(self.settings)
        self.registry = ListenerRegistry()
        self.fields = FieldAccessor(self.tree)
        self.status = StatusReporter(self.tree.get("autosave-status"), self.settings.status_clear_seconds)
        self.bridge = RichTextBridge(self.tree, self.registry)
        self.builder = DynamicListBuilder(
            self.tree, self.bridge, self.registry, self.settings, notify=self._warn,
        )
        self.assembler = DocumentAssembler(self.tree, self.fields)
        self.populator = DocumentPopulator(self.tree, self.bridge, self.builder, self.fields)
        self.engine = SyncEngine(
            session, gateway, self.assembler, self.bridge, self.status, self.settings, clock,
        )
        self._wire_controls()

    def _warn(self, message: str) -> None:
        self.status.show(message, logging.WARNING)

    def _control(self, node_id: str, event: str, handler: Callable[[FormNode], None]) -> None:
        node = self.tree.require(node_id)
        if node is not None:
            self.registry.register(f"control:{node_id}:{event}", node, event, handler)

    def _wire_controls(self) -> None:
        self._control("programSelect", "change", lambda node: self.apply_program(node.value))
        self._control("moduleSelect", "change", lambda node: self.builder.generate_modules())
        self._control("datePicker", "change", lambda node: self.builder.generate_modules())
        self._control("addModuleButton", "click", lambda node: self.builder.add_module())
        self._control("addWeightingRowButton", "click", lambda node: self.builder.add_weighting_row())
        self._control(
            "addInstructors", "change",
            lambda node: self.builder.set_instructor_count(int(node.value)) if node.value.isdigit() else None,
        )

    # -- lifecycle -------------------------------------------------------

    async def open(self, syllabus_id: Optional[str] = None) -> SyllabusData:
        """Load a stored syllabus (or start a blank draft) into the form."""
        syllabus_id = syllabus_id or self.session.syllabus_id
        if syllabus_id:
            try:
                document = await self.gateway.fetch(syllabus_id)
            except GatewayError as exc:
                self.status.show(f"Failed to load syllabus data: {exc.message}", logging.ERROR)
                raise
            self.session.open_syllabus(syllabus_id)
        else:
            document = SyllabusData()

        self.populator.populate(document)
        self.fields.set_value("syllabusId", syllabus_id or "")
        if syllabus_id:
            self.engine.mark_saved(self.engine.snapshot())
        logger.info("Opened syllabus %s", syllabus_id or "(draft)")
        return document

    async def close(self) -> None:
        await self.engine.aclose()
        self.bridge.detach_all()
        self.registry.release_all()

    # -- program selection -----------------------------------------------

    def apply_program(self, program: str) -> None:
        self.populator.apply_program_defaults(program)

    async def change_program(self, program: str) -> bool:
        """Select ``program``, reset its defaults and persist the narrow update."""
        if not self.fields.set_value("programSelect", program):
            return False
        self.apply_program(program)
        if not self.session.syllabus_id:
            return True
        try:
            await self.gateway.update_program(self.session.syllabus_id, program)
        except GatewayError as exc:
            if exc.is_not_found:
                logger.warning("Syllabus %s not found on program update; clearing cached id.", self.session.syllabus_id)
                self.engine.mark_stale()
                return False
            self.status.show(f"Failed to update program selection: {exc.message}", logging.ERROR)
            return False
        logger.info("Program selection updated to %s", program)
        return True

    # -- saving ----------------------------------------------------------

    def notify_interaction(self) -> bool:
        """Start autosave on the first interaction; no-op while it is running."""
        if self.engine.autosave_running:
            return False
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; autosave not started.")
            return False
        return self.engine.start_autosave()

    async def submit(self) -> SaveResult:
        return await self.engine.manual_save()

    def export_text(self) -> str:
        return syllabus_to_text(self.engine.snapshot())
