from datetime import date

import pytest

from sylman.core.config import Settings
from sylman.schemas.syllabus import Instructor, Module, WeightingDetail
from sylman.services.form_layout import build_form_tree
from sylman.services.list_builder import (
    DynamicListBuilder,
    format_module_dates,
    parse_start_date,
    parse_weight,
)
from sylman.services.listener_registry import ListenerRegistry
from sylman.services.rich_text import RichTextBridge


@pytest.fixture
def form():
    settings = Settings()
    tree = build_form_tree(settings)
    registry = ListenerRegistry()
    bridge = RichTextBridge(tree, registry)
    notices = []
    builder = DynamicListBuilder(tree, bridge, registry, settings, notify=notices.append)
    return tree, builder, notices


def _slo_placeholders(cell):
    return [node.placeholder for node in cell.by_tag("textarea")]


def test_module_dates_are_weekly_ranges():
    assert format_module_dates(date(2024, 1, 1), 1) == "01/01/2024 - 01/07/2024"
    assert format_module_dates(date(2024, 1, 1), 3) == "01/15/2024 - 01/21/2024"


def test_parse_helpers():
    assert parse_start_date("2024-01-01") == date(2024, 1, 1)
    assert parse_start_date("01/08/2024") == date(2024, 1, 8)
    assert parse_start_date("") is None
    assert parse_start_date("soon") is None
    assert parse_weight("12.5") == 12.5
    assert parse_weight("") == 0.0
    assert parse_weight("abc") == 0.0


class TestSloInputs:
    def test_add_appends_before_add_button(self, form):
        tree, builder, _ = form
        builder.render_outcomes_table(["Outcome one"], {})
        cell = builder.slo_cell(1)

        group = builder.add_slo_input(cell, 1)
        assert group is not None
        assert _slo_placeholders(cell) == ["SLO 1.1"]
        assert cell.by_tag("textarea")[0].name == "slo1[]"
        assert cell.last_child.has_class("addOutcomeButton")

    def test_duplicate_placeholder_is_rejected_without_change(self, form):
        tree, builder, _ = form
        builder.render_outcomes_table(["One", "Two"], {"2": ["first", "second"]})
        cell = builder.slo_cell(2)

        builder.remove_slo_group(cell.by_class("slo-group")[0])
        assert _slo_placeholders(cell) == ["SLO 2.2"]

        before = list(cell.children)
        assert builder.add_slo_input(cell, 2) is None
        assert cell.children == before
        assert cell.last_child.has_class("addOutcomeButton")

    def test_add_button_click_rebuilds_assessments(self, form):
        tree, builder, _ = form
        builder.render_outcomes_table(["One"], {"1": ["Analyze cases"]})
        builder.render_assessment_table({"1.1": ["Exam"]})

        builder.slo_cell(1).first_by_class("addOutcomeButton").click()

        assert builder.current_assessments() == {"1.1": ["Exam"], "1.2": [""]}

    def test_remove_button_click_releases_its_listeners(self, form):
        tree, builder, _ = form
        builder.render_outcomes_table(["One"], {"1": ["a", "b"]})
        cell = builder.slo_cell(1)
        remove_button = cell.by_class("removeOutcomeButton")[0]

        remove_button.click()

        assert remove_button.listener_count() == 0
        assert _slo_placeholders(cell) == ["SLO 1.2"]


class TestAssessments:
    def test_stored_values_then_blank_placeholder(self, form):
        tree, builder, _ = form
        builder.render_outcomes_table(["One"], {"1": ["a", "b"]})
        builder.render_assessment_table({"1.1": ["Exam", "Paper"]})

        body = tree.tbody("outcomesAssessmentTable")
        rows = body.children
        assert [row.get_attr("data-slo-key") for row in rows] == ["1.1", "1.2"]
        assert [n.placeholder for n in rows[0].by_name("assessments1.1[]")] == ["Assessment 1", "Assessment 2"]
        # the lone blank input has no remove control
        assert rows[1].by_class("minus-button") == []

    def test_rebuild_keeps_current_values(self, form):
        tree, builder, _ = form
        builder.render_outcomes_table(["One"], {"1": ["a"]})
        builder.render_assessment_table()
        tree.tbody("outcomesAssessmentTable").by_name("assessments1.1[]")[0].value = "Quiz"

        builder.rebuild_assessments()

        assert builder.current_assessments() == {"1.1": ["Quiz"]}


class TestWeighting:
    def test_total_over_100_is_flagged(self, form):
        tree, builder, _ = form
        for label, weight in (("Exam", "30"), ("Paper", "30"), ("Project", "50")):
            builder.add_weighting_row(label, weight)

        total = tree.get("totalWeight")
        assert total.text == "110%"
        assert total.get_attr("data-over-limit") == "true"

    def test_total_of_100_is_not_flagged(self, form):
        tree, builder, _ = form
        builder.render_weighting_rows([
            WeightingDetail(assessed_element="Exam", weight=40),
            WeightingDetail(assessed_element="Paper", weight=60),
        ])

        total = tree.get("totalWeight")
        assert total.text == "100%"
        assert total.get_attr("data-over-limit") is None

    def test_input_and_remove_events_update_total(self, form):
        tree, builder, _ = form
        first = builder.add_weighting_row("Exam", "60")
        builder.add_weighting_row("Paper", "50")
        assert tree.get("totalWeight").text == "110%"

        weight = first.by_name("weight[]")[0]
        weight.value = "40"
        weight.dispatch("input")
        assert tree.get("totalWeight").text == "90%"

        first.first_by_class("remove-weighting-row").click()
        assert tree.get("totalWeight").text == "50%"
        assert tree.get("totalWeight").get_attr("style") is None


class TestModules:
    def test_generate_dates_each_module(self, form):
        tree, builder, _ = form
        assert builder.generate_modules(3, "2024-01-01") == 3
        assert tree.get("module3Dates").value == "01/15/2024 - 01/21/2024"
        assert tree.get("module3Dates").readonly
        assert len(tree.get("module1AssignmentsContainer").by_class("assignment-wrapper")) == 1

    def test_add_module_requires_start_date(self, form):
        tree, builder, notices = form
        assert builder.add_module() is None
        assert builder.module_blocks() == []
        assert notices == ["Please select a valid start date before adding modules."]

    def test_add_module_stops_at_cap(self, form):
        tree, builder, notices = form
        builder.generate_modules(20, "2024-01-01")
        assert builder.add_module("2024-01-01") is None
        assert len(builder.module_blocks()) == 20
        assert notices == ["Maximum of 20 modules allowed."]

    def test_add_after_remove_does_not_reuse_ids(self, form):
        tree, builder, _ = form
        tree.get("datePicker").value = "2024-01-01"
        builder.generate_modules(3)
        tree.get("module2").first_by_class("remove-module-button").click()

        block = builder.add_module()

        assert block.id == "module4"
        assert tree.get("module4Dates").value == "01/22/2024 - 01/28/2024"
        assert [b.id for b in builder.module_blocks()] == ["module1", "module3", "module4"]

    def test_regenerate_releases_old_listeners(self, form):
        tree, builder, _ = form
        builder.generate_modules(2, "2024-01-01")
        old_button = tree.get("module1").first_by_class("add-assignment-button")

        builder.generate_modules(2, "2024-02-01")

        assert old_button.listener_count() == 0
        # add + remove per module, one remove per default assignment
        assert len(builder.registry) == 6

    def test_assignment_buttons(self, form):
        tree, builder, _ = form
        builder.render_modules([Module(title="Intro", dates="x", assignments=["Read ch. 1"])])
        block = tree.get("module1")

        block.first_by_class("add-assignment-button").click()
        names = block.by_name("module[1][assignments][]")
        assert [n.value for n in names] == ["Read ch. 1", ""]
        assert names[1].placeholder == "Assignment 2"

        block.by_class("remove-assignment-button")[0].click()
        assert [n.value for n in block.by_name("module[1][assignments][]")] == [""]


class TestInstructors:
    def test_render_attaches_office_hours_editors(self, form):
        tree, builder, _ = form
        count = builder.render_instructors([
            Instructor(name="Dr. Ada", office_hours="<p>Mon</p>"),
            Instructor(name="Dr. Bo"),
        ])
        assert count == 2
        assert tree.get("addInstructors").value == "2"
        assert builder.bridge.get("instructor1OfficeHours").get_html() == "<p>Mon</p>"
        assert builder.bridge.is_attached("instructor2OfficeHours")

    def test_shrinking_keeps_remaining_values(self, form):
        tree, builder, _ = form
        builder.render_instructors([Instructor(name="Dr. Ada"), Instructor(name="Dr. Bo")])

        builder.set_instructor_count(1)

        assert builder.instructor_count() == 1
        assert tree.get("instructor1Name").value == "Dr. Ada"
        assert not builder.bridge.is_attached("instructor2OfficeHours")

    def test_count_is_capped(self, form):
        tree, builder, _ = form
        assert builder.set_instructor_count(12) == 9
