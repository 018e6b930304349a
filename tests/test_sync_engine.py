import asyncio
from datetime import datetime

import pytest

from sylman.core.config import Settings
from sylman.schemas.syllabus import Module, SyllabusData
from sylman.services.editor import SyllabusEditor
from sylman.services.form_tree import FormNode
from sylman.services.gateway import GatewayError
from sylman.services.program_defaults import PROGRAM_OUTCOMES, get_default_policies
from sylman.services.session import SessionContext
from sylman.services.sync_engine import (
    AUTOSAVE_FAILED,
    STALE_ID,
    SaveOutcome,
    StatusReporter,
    SyncState,
)


class FakeGateway:
    def __init__(self):
        self.created = []
        self.updated = []
        self.program_updates = []
        self.documents = {}
        self.next_id = "new-1"
        self.create_error = None
        self.update_error = None
        self.fetch_error = None
        self.gate = None

    async def create(self, user_id, document, autosave=False):
        if self.gate is not None:
            await self.gate.wait()
        if self.create_error:
            raise self.create_error
        self.created.append((user_id, document, autosave))
        return self.next_id

    async def update(self, syllabus_id, document, autosave=False, last_edited=None):
        if self.update_error:
            raise self.update_error
        self.updated.append((syllabus_id, document, autosave, last_edited))

    async def update_program(self, syllabus_id, program):
        if self.update_error:
            raise self.update_error
        self.program_updates.append((syllabus_id, program))

    async def fetch(self, syllabus_id):
        if self.fetch_error:
            raise self.fetch_error
        return self.documents[syllabus_id]


def _clock():
    return datetime(2024, 1, 1, 10, 0, 0)


def _editor(gateway, session=None):
    session = session or SessionContext(user_id="u1")
    return SyllabusEditor(session, gateway, settings=Settings(), clock=_clock)


def _fill(editor):
    editor.fields.set_value("programSelect", "BSN")
    editor.fields.set_value("courseTitle", "Ethics")
    editor.fields.set_value("courseNumber", "NURS 101")


class TestManualSave:
    def test_missing_required_fields_blocks_save(self):
        gateway = FakeGateway()
        editor = _editor(gateway)

        result = asyncio.run(editor.submit())

        assert result.outcome == SaveOutcome.VALIDATION_FAILED
        assert result.missing_fields == ["courseTitle", "programSelect", "courseNumber"]
        assert editor.status.text == "Please fill in the required fields: Course Title, Program, Course Number"
        assert gateway.created == [] and gateway.updated == []

    def test_first_save_creates_then_updates(self):
        gateway = FakeGateway()
        editor = _editor(gateway)
        _fill(editor)

        async def run():
            first = await editor.submit()
            editor.fields.set_value("credits", "3")
            second = await editor.submit()
            return first, second

        first, second = asyncio.run(run())

        assert first.created and first.syllabus_id == "new-1"
        assert editor.session.syllabus_id == "new-1"
        assert gateway.created[0][1].course_title == "Ethics"
        assert second.outcome == SaveOutcome.SAVED and not second.created
        assert gateway.updated[0][0] == "new-1"
        assert gateway.updated[0][3] == "2024-01-01T10:00:00"
        assert editor.status.text == "Saved at 10:00:00"

    def test_stale_id_is_cleared_and_next_save_creates(self):
        gateway = FakeGateway()
        editor = _editor(gateway, SessionContext(user_id="u1", syllabus_id="gone"))
        _fill(editor)
        gateway.update_error = GatewayError("Syllabus not found", status_code=404)

        result = asyncio.run(editor.submit())
        assert result.outcome == SaveOutcome.STALE_ID
        assert editor.session.syllabus_id is None
        assert editor.status.text == STALE_ID

        gateway.update_error = None
        result = asyncio.run(editor.submit())
        assert result.created
        assert editor.session.syllabus_id == "new-1"

    def test_autosave_after_stale_id_recreates_document(self):
        gateway = FakeGateway()
        editor = _editor(gateway, SessionContext(user_id="u1", syllabus_id="abc"))
        _fill(editor)

        async def run():
            saved = await editor.submit()
            gateway.update_error = GatewayError("Syllabus not found", status_code=404)
            stale = await editor.submit()
            baseline = editor.engine.last_saved_snapshot
            gateway.update_error = None
            recreated = await editor.engine.autosave_tick()
            return saved, stale, baseline, recreated

        saved, stale, baseline, recreated = asyncio.run(run())

        assert saved.outcome == SaveOutcome.SAVED
        assert stale.outcome == SaveOutcome.STALE_ID
        assert baseline is None
        assert recreated.outcome == SaveOutcome.SAVED and recreated.created
        assert len(gateway.created) == 1
        assert gateway.created[0][1].course_title == "Ethics"
        assert editor.session.syllabus_id == "new-1"

    def test_server_error_keeps_id_and_reports_message(self):
        gateway = FakeGateway()
        editor = _editor(gateway, SessionContext(user_id="u1", syllabus_id="abc"))
        _fill(editor)
        gateway.update_error = GatewayError("Server exploded", status_code=500)

        result = asyncio.run(editor.submit())

        assert result.outcome == SaveOutcome.FAILED
        assert result.message == "Failed to save form data: Server exploded"
        assert editor.session.syllabus_id == "abc"
        assert editor.engine.last_saved_snapshot is None


class TestAutosave:
    def test_unchanged_form_is_not_resent(self):
        gateway = FakeGateway()
        editor = _editor(gateway)
        _fill(editor)

        async def run():
            await editor.submit()
            skipped = await editor.engine.autosave_tick()
            editor.fields.set_value("credits", "4")
            sent = await editor.engine.autosave_tick()
            return skipped, sent

        skipped, sent = asyncio.run(run())

        assert skipped.outcome == SaveOutcome.SKIPPED_UNCHANGED
        assert sent.outcome == SaveOutcome.SAVED
        assert len(gateway.updated) == 1
        assert gateway.updated[0][2] is True
        assert editor.status.text == "Autosaved at 10:00:00"

    def test_autosave_skips_required_field_check(self):
        gateway = FakeGateway()
        editor = _editor(gateway)

        result = asyncio.run(editor.engine.autosave_tick())

        assert result.outcome == SaveOutcome.SAVED
        assert gateway.created[0][2] is True

    def test_autosave_failure_message(self):
        gateway = FakeGateway()
        gateway.create_error = GatewayError("Request failed: connection refused")
        editor = _editor(gateway)

        result = asyncio.run(editor.engine.autosave_tick())

        assert result.outcome == SaveOutcome.FAILED
        assert editor.status.text == AUTOSAVE_FAILED

    @pytest.mark.asyncio
    async def test_save_requested_while_in_flight_is_dropped(self):
        gateway = FakeGateway()
        gateway.gate = asyncio.Event()
        editor = _editor(gateway)
        _fill(editor)

        first = asyncio.create_task(editor.engine.manual_save())
        await asyncio.sleep(0)

        assert editor.engine.state == SyncState.SAVING
        assert (await editor.engine.autosave_tick()).outcome == SaveOutcome.BUSY
        assert (await editor.engine.manual_save()).outcome == SaveOutcome.BUSY

        gateway.gate.set()
        assert (await first).outcome == SaveOutcome.SAVED
        assert len(gateway.created) == 1
        assert editor.engine.state == SyncState.IDLE

    @pytest.mark.asyncio
    async def test_loop_saves_once_then_skips(self):
        gateway = FakeGateway()
        editor = _editor(gateway)
        _fill(editor)

        assert editor.engine.start_autosave(interval=0.01) is True
        assert editor.engine.start_autosave(interval=0.01) is False
        await asyncio.sleep(0.1)
        await editor.engine.aclose()

        assert len(gateway.created) == 1
        assert gateway.updated == []
        assert not editor.engine.autosave_running

    @pytest.mark.asyncio
    async def test_manual_save_stops_autosave(self):
        gateway = FakeGateway()
        editor = _editor(gateway)
        _fill(editor)

        assert editor.notify_interaction() is True
        assert editor.notify_interaction() is False
        await editor.submit()

        assert not editor.engine.autosave_running
        await editor.close()


class TestStatusReporter:
    @pytest.mark.asyncio
    async def test_transient_message_clears_itself(self):
        node = FormNode("div", id="autosave-status")
        status = StatusReporter(node, clear_after=0.01)

        status.show("Autosaved at 10:00:00", transient=True)
        assert node.text == "Autosaved at 10:00:00"
        await asyncio.sleep(0.05)
        assert node.text == ""

    def test_expire_clears_transient_message_by_timestamp(self):
        now = [100.0]
        node = FormNode("div")
        status = StatusReporter(node, clear_after=5, monotonic=lambda: now[0])

        status.show("Autosaved at 10:00:00", transient=True)
        now[0] = 104.0
        assert status.expire() is False
        assert node.text == "Autosaved at 10:00:00"

        now[0] = 105.0
        assert status.expire() is True
        assert node.text == ""

    def test_expire_keeps_persistent_message(self):
        now = [0.0]
        status = StatusReporter(FormNode("div"), clear_after=5, monotonic=lambda: now[0])

        status.show("Saved at 10:00:00", transient=True)
        status.show("Autosave failed. Please check your connection.")
        now[0] = 60.0

        assert status.expire() is False
        assert status.text == "Autosave failed. Please check your connection."

    @pytest.mark.asyncio
    async def test_newer_message_cancels_pending_clear(self):
        status = StatusReporter(FormNode("div"), clear_after=0.01)

        status.show("Saved at 10:00:00", transient=True)
        status.show("Autosave failed. Please check your connection.")
        await asyncio.sleep(0.05)

        assert status.text == "Autosave failed. Please check your connection."


class TestSyllabusEditor:
    def test_open_populates_and_baselines(self):
        gateway = FakeGateway()
        gateway.documents["abc"] = SyllabusData(
            program_select="MSN", course_title="Ethics", course_number="NURS 101",
            modules=[Module(title="Intro", dates="01/01/2024 - 01/07/2024", assignments=["Read"])],
        )
        editor = _editor(gateway)

        async def run():
            await editor.open("abc")
            return await editor.engine.autosave_tick()

        result = asyncio.run(run())

        assert editor.session.syllabus_id == "abc"
        assert editor.fields.get_value("syllabusId") == "abc"
        assert editor.fields.get_value("module1Title") == "Intro"
        assert result.outcome == SaveOutcome.SKIPPED_UNCHANGED
        assert gateway.updated == []

    def test_open_failure_is_reported_and_raised(self):
        gateway = FakeGateway()
        gateway.fetch_error = GatewayError("Syllabus not found", status_code=404)
        editor = _editor(gateway)

        with pytest.raises(GatewayError):
            asyncio.run(editor.open("missing"))
        assert editor.status.text == "Failed to load syllabus data: Syllabus not found"

    def test_change_program_persists_narrow_update(self):
        gateway = FakeGateway()
        gateway.documents["abc"] = SyllabusData(program_select="BSN", course_title="Ethics")
        editor = _editor(gateway)

        async def run():
            await editor.open("abc")
            return await editor.change_program("DNP")

        assert asyncio.run(run()) is True
        assert gateway.program_updates == [("abc", "DNP")]
        assert editor.engine.snapshot().program_outcomes == PROGRAM_OUTCOMES["DNP"]

    def test_change_program_rejects_unknown_option(self):
        gateway = FakeGateway()
        editor = _editor(gateway, SessionContext(user_id="u1", syllabus_id="abc"))

        assert asyncio.run(editor.change_program("PhD")) is False
        assert gateway.program_updates == []

    def test_change_program_failure_shows_status(self):
        gateway = FakeGateway()
        gateway.update_error = GatewayError("Server exploded", status_code=500)
        editor = _editor(gateway, SessionContext(user_id="u1", syllabus_id="abc"))

        assert asyncio.run(editor.change_program("MSN")) is False
        assert editor.status.text == "Failed to update program selection: Server exploded"

    def test_change_program_on_deleted_syllabus_clears_id(self):
        gateway = FakeGateway()
        gateway.update_error = GatewayError("Syllabus not found", status_code=404)
        editor = _editor(gateway, SessionContext(user_id="u1", syllabus_id="gone"))

        assert asyncio.run(editor.change_program("MSN")) is False
        assert editor.session.syllabus_id is None
        assert editor.status.text == STALE_ID

        gateway.update_error = None
        _fill(editor)
        result = asyncio.run(editor.submit())
        assert result.created
        assert editor.session.syllabus_id == "new-1"

    def test_store_shaped_document_loads_and_saves(self):
        gateway = FakeGateway()
        gateway.documents["abc"] = SyllabusData.model_validate({
            "programSelect": "BSN",
            "courseTitle": "Ethics",
            "courseNumber": "NURS 101",
            "assessments": [],
            "slo": {"slo1": ["Analyze ethical frameworks"], "slo2": []},
            "weightingDetails": [{"component": "Exam", "weight": 60}],
            "modules": [{"title": "Intro", "description": "Week one"}],
            "policiesAndServices": {"attendance": None, "academicIntegrity": "<p>Be honest</p>"},
        })
        editor = _editor(gateway)

        async def run():
            await editor.open("abc")
            editor.fields.set_value("credits", "3")
            return await editor.submit()

        result = asyncio.run(run())

        assert result.outcome == SaveOutcome.SAVED
        saved = gateway.updated[0][1]
        assert saved.slo["1"] == ["Analyze ethical frameworks"]
        assert saved.weighting_details[0].assessed_element == "Exam"
        assert saved.modules[0].title == "Intro"
        assert saved.policies_and_services["academicIntegrity"] == "<p>Be honest</p>"
        assert saved.policies_and_services["attendance"] == get_default_policies("BSN")["attendance"]

    def test_form_controls_are_wired(self):
        editor = _editor(FakeGateway())

        editor.tree.get("addWeightingRowButton").click()
        assert len(editor.tree.tbody("weightingDetailsTable").children) == 1

        editor.fields.set_value("datePicker", "2024-01-01")
        editor.fields.set_value("moduleSelect", "4")
        editor.tree.get("moduleSelect").dispatch("change")
        assert len(editor.builder.module_blocks()) == 4

        editor.fields.set_value("programSelect", "MSN")
        editor.tree.get("programSelect").dispatch("change")
        assert editor.assembler.assemble().program_outcomes == PROGRAM_OUTCOMES["MSN"]

    def test_outcome_and_module_controls_are_reachable(self):
        gateway = FakeGateway()
        gateway.documents["abc"] = SyllabusData(
            program_select="BSN",
            slo={"1": ["Analyze", "Apply"]},
            assessments={"1.1": ["Exam"]},
            modules=[Module(title="Intro", dates="01/01/2024 - 01/07/2024", assignments=["Read", "Write"])],
        )
        editor = _editor(gateway)
        asyncio.run(editor.open("abc"))

        def assessment_rows():
            return editor.tree.tbody("outcomesAssessmentTable").children

        cell = editor.builder.slo_cell(1)
        assert [row.get_attr("data-slo-key") for row in assessment_rows()] == ["1.1", "1.2"]
        cell.by_class("slo-group")[1].first_by_class("removeOutcomeButton").click()
        assert len(cell.by_class("slo-group")) == 1
        assert [row.get_attr("data-slo-key") for row in assessment_rows()] == ["1.1"]

        assessment_cell = assessment_rows()[0].first_by_class("assessment-cell")
        assessment_cell.first_by_class("addAssessmentButton").click()
        wrappers = assessment_cell.by_class("assessment-input-wrapper")
        assert len(wrappers) == 2
        wrappers[1].first_by_class("minus-button").click()
        assert editor.builder.current_assessments() == {"1.1": ["Exam"]}

        block = editor.builder.module_blocks()[0]
        assignments = editor.tree.get("module1AssignmentsContainer")
        block.first_by_class("add-assignment-button").click()
        assert len(assignments.by_class("assignment-wrapper")) == 3
        assignments.by_class("assignment-wrapper")[0].first_by_class("remove-assignment-button").click()
        assert [w.by_tag("textarea")[0].value for w in assignments.by_class("assignment-wrapper")] == ["Write", ""]
        block.first_by_class("remove-module-button").click()
        assert editor.builder.module_blocks() == []

    def test_notify_interaction_without_loop_is_noop(self):
        editor = _editor(FakeGateway())
        assert editor.notify_interaction() is False

    def test_export_text_uses_current_form(self):
        editor = _editor(FakeGateway())
        _fill(editor)
        assert editor.export_text().startswith("# Ethics")
