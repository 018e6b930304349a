"""Repeatable form groups: instructors, SLOs, assessments, weighting rows, modules.

Each group owns its remove control and each section keeps its add control
as the last child. Every handler goes through the listener registry and is
released before its node leaves the tree.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from sylman.core.config import Settings, get_settings
from sylman.schemas.syllabus import Instructor, Module, WeightingDetail
from sylman.services.field_accessor import FieldAccessor
from sylman.services.form_layout import rich_text_field
from sylman.services.form_tree import FormNode, FormTree, element
from sylman.services.listener_registry import ListenerRegistry
from sylman.services.rich_text import RichTextBridge

logger = logging.getLogger(__name__)

DATE_FORMAT = "%m/%d/%Y"

INSTRUCTOR_FIELDS: Tuple[Tuple[str, str, str], ...] = (
    ("Name", "name", "Course Instructor {index} Name, Credentials"),
    ("Email", "email", "name@jefferson.edu"),
    ("Phone", "phone", "###-###-####"),
    ("Office", "office", "Building, Room Number"),
)


@dataclass
class WeightTotal:
    total: float
    over_limit: bool
    display: str


# -- pure helpers ---------------------------------------------------------


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def parse_start_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse an ISO ``YYYY-MM-DD`` (or ``MM/DD/YYYY``) start date; None when invalid."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if not text:
        return None
    for fmt in ("%Y-%m-%d", DATE_FORMAT):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def module_date_range(start: date, module_number: int) -> Tuple[date, date]:
    """Module N covers ``start + 7*(N-1)`` through six days later."""
    first = start + timedelta(days=(module_number - 1) * 7)
    return first, first + timedelta(days=6)


def format_module_dates(start: date, module_number: int) -> str:
    first, last = module_date_range(start, module_number)
    return f"{format_date(first)} - {format_date(last)}"


def format_weight(weight: float) -> str:
    return f"{weight:g}"


def parse_weight(value: str) -> float:
    try:
        return float((value or "").strip())
    except ValueError:
        return 0.0


# -- readers shared with the assembler ------------------------------------


def read_instructors(container: FormNode) -> List[Instructor]:
    instructors = []
    for block in container.by_class("instructor-block"):
        index = block.get_attr("data-instructor-index", "")
        values = {}
        for suffix, attr, _ in INSTRUCTOR_FIELDS + (("OfficeHours", "office_hours", ""),):
            node = block.by_id(f"instructor{index}{suffix}")
            values[attr] = node.value if node is not None else ""
        instructors.append(Instructor(**values))
    return instructors


def read_slo_cells(cells: Sequence[FormNode]) -> Dict[str, List[str]]:
    slo: Dict[str, List[str]] = {}
    for cell in cells:
        outcome = cell.get_attr("data-outcome-index", "")
        slo[outcome] = [node.value for node in cell.by_name(f"slo{outcome}[]")]
    return slo


def read_assessments(body: Optional[FormNode]) -> Dict[str, List[str]]:
    if body is None:
        return {}
    assessments: Dict[str, List[str]] = {}
    for row in body.children:
        key = row.get_attr("data-slo-key")
        if key:
            assessments[key] = [node.value for node in row.by_name(f"assessments{key}[]")]
    return assessments


def read_weighting_rows(body: Optional[FormNode]) -> List[WeightingDetail]:
    if body is None:
        return []
    details = []
    for row in body.by_class("weighting-row"):
        label = row.by_name("assessedElements[]")
        weight = row.by_name("weight[]")
        details.append(WeightingDetail(
            assessed_element=label[0].value if label else "",
            weight=parse_weight(weight[0].value) if weight else 0.0,
        ))
    return details


def read_modules(container: FormNode) -> List[Module]:
    modules = []
    for block in container.by_class("module-block"):
        number = block.get_attr("data-module-number", "")
        title = block.by_id(f"module{number}Title")
        dates = block.by_id(f"module{number}Dates")
        modules.append(Module(
            title=title.value if title is not None else "",
            dates=dates.value if dates is not None else "",
            assignments=[node.value for node in block.by_name(f"module[{number}][assignments][]")],
        ))
    return modules


class DynamicListBuilder:
    def __init__(
        self,
        tree: FormTree,
        bridge: RichTextBridge,
        registry: Optional[ListenerRegistry] = None,
        settings: Optional[Settings] = None,
        notify: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.tree = tree
        self.bridge = bridge
        self.registry = registry or bridge.registry
        self.settings = settings or get_settings()
        self.fields = FieldAccessor(tree)
        self._notify = notify or logger.warning
        self._seq = itertools.count(1)

    def _key(self, kind: str, ident: object) -> str:
        return f"{kind}:{ident}#{next(self._seq)}"

    def _on(self, kind: str, ident: object, node: FormNode, event: str, action: Callable[[], object]) -> None:
        self.registry.register(self._key(kind, ident), node, event, lambda _node: action())

    def _clear_section(self, container: FormNode) -> None:
        self.registry.release_within(container)
        container.clear()

    def _remove_group(self, group: FormNode) -> None:
        self.registry.release_within(group)
        group.remove()

    @staticmethod
    def relocate_add_button(cell: Optional[FormNode], cls: str = "addOutcomeButton") -> None:
        if cell is None:
            return
        button = cell.first_by_class(cls)
        if button is not None:
            cell.append(button)

    # -- instructors -----------------------------------------------------

    def instructor_count(self) -> int:
        container = self.tree.get("instructorsContainer")
        return len(container.by_class("instructor-block")) if container is not None else 0

    def render_instructors(self, instructors: Sequence[Instructor]) -> int:
        """Detach old office-hour editors, then rebuild one block per record."""
        container = self.tree.require("instructorsContainer")
        if container is None:
            return 0

        for block in container.by_class("instructor-block"):
            field_id = f"instructor{block.get_attr('data-instructor-index')}OfficeHours"
            if self.bridge.is_attached(field_id):
                self.bridge.detach(field_id)
        self._clear_section(container)

        records = list(instructors)
        if len(records) > self.settings.max_instructors:
            logger.warning("Only %d instructors are supported; dropping %d.",
                           self.settings.max_instructors, len(records) - self.settings.max_instructors)
            records = records[: self.settings.max_instructors]

        for index, record in enumerate(records, 1):
            container.append(self._instructor_block(index, record))
            self.bridge.attach(f"instructor{index}OfficeHours")

        if records:
            self.fields.set_value("addInstructors", str(len(records)))
        logger.debug("Rendered %d instructor blocks", len(records))
        return len(records)

    def set_instructor_count(self, count: int) -> int:
        """Resize the instructor list, keeping values of the blocks that remain."""
        container = self.tree.require("instructorsContainer")
        if container is None:
            return 0
        self.bridge.sync_all()
        current = read_instructors(container)
        count = max(0, min(count, self.settings.max_instructors))
        records = current[:count] + [Instructor() for _ in range(count - len(current))]
        return self.render_instructors(records)

    def _instructor_block(self, index: int, record: Instructor) -> FormNode:
        shade = "instructor-block-white" if index % 2 == 0 else "instructor-block-gray"
        block = element(
            "div",
            classes=["instructor-block", shade],
            attrs={"data-instructor-index": str(index)},
            children=[element("label", text=f"Course Instructor {index}:")],
        )
        for suffix, attr, placeholder in INSTRUCTOR_FIELDS:
            block.append(element(
                "input",
                id=f"instructor{index}{suffix}",
                name=f"instructors[{index}][{attr}]",
                placeholder=placeholder.format(index=index),
                value=getattr(record, attr),
            ))
        container, hidden = rich_text_field(f"instructor{index}OfficeHours")
        hidden.name = f"instructors[{index}][officeHours]"
        hidden.value = record.office_hours
        block.append(element("label", text="Office Hours:"))
        block.append(container)
        block.append(hidden)
        return block

    # -- program outcomes / SLOs -----------------------------------------

    def slo_cells(self) -> List[FormNode]:
        return self.tree.by_class("slo-cell")

    def slo_cell(self, outcome_index: int) -> Optional[FormNode]:
        for cell in self.slo_cells():
            if cell.get_attr("data-outcome-index") == str(outcome_index):
                return cell
        return None

    def render_outcomes_table(self, outcomes: Sequence[str], slo: Mapping[str, Sequence[str]]) -> None:
        body = self.tree.tbody("progStudentOutcomesTable")
        if body is None:
            return
        self._clear_section(body)

        for index, statement in enumerate(outcomes, 1):
            row = body.append(element("tr", attrs={"data-outcome-index": str(index)}))
            row.append(element("td", classes=["prog-outcome"], text=statement))
            cell = row.append(element("td", classes=["slo-cell"], attrs={"data-outcome-index": str(index)}))
            add_button = cell.append(element("button", classes=["addOutcomeButton"], text="Add"))
            self._on("slo-add", index, add_button, "click",
                     lambda cell=cell, index=index: self._add_slo_and_refresh(cell, index))

            for slo_index, value in enumerate(slo.get(str(index), []), 1):
                self.add_slo_input(cell, index, slo_index, value)

        logger.debug("Rendered %d program outcomes", len(outcomes))

    def add_slo_input(
        self, cell: FormNode, outcome_index: int, slo_index: Optional[int] = None, value: str = ""
    ) -> Optional[FormNode]:
        """Add an SLO group under one outcome; None when that SLO key already exists."""
        inputs = cell.by_tag("textarea")
        if slo_index is None:
            slo_index = len(inputs) + 1
        placeholder = f"SLO {outcome_index}.{slo_index}"
        if any(node.placeholder == placeholder for node in inputs):
            logger.warning('SLO with placeholder "%s" already exists.', placeholder)
            return None

        group = element("div", classes=["slo-group"])
        group.append(element(
            "textarea",
            name=f"slo{outcome_index}[]",
            placeholder=placeholder,
            value=value,
            attrs={"required": "true", "data-slo-key": f"{outcome_index}.{slo_index}"},
        ))
        remove_button = group.append(element("button", classes=["removeOutcomeButton"], text="Remove"))
        self._on("slo-remove", f"{outcome_index}.{slo_index}", remove_button, "click",
                 lambda: self._remove_slo_and_refresh(group))

        cell.insert_before(group, cell.first_by_class("addOutcomeButton"))
        return group

    def remove_slo_group(self, group: FormNode) -> None:
        """Drop one SLO group; sibling placeholders keep their numbers."""
        cell = group.closest(lambda n: n.has_class("slo-cell"))
        self._remove_group(group)
        self.relocate_add_button(cell)

    def _add_slo_and_refresh(self, cell: FormNode, outcome_index: int) -> None:
        if self.add_slo_input(cell, outcome_index) is not None:
            self.rebuild_assessments()

    def _remove_slo_and_refresh(self, group: FormNode) -> None:
        self.remove_slo_group(group)
        self.rebuild_assessments()

    # -- assessments -----------------------------------------------------

    def current_assessments(self) -> Dict[str, List[str]]:
        return read_assessments(self.tree.tbody("outcomesAssessmentTable"))

    def render_assessment_table(self, stored: Optional[Mapping[str, Sequence[str]]] = None) -> None:
        """One row per displayed SLO; values come from ``stored``, else the current table, else blank."""
        body = self.tree.tbody("outcomesAssessmentTable")
        if body is None:
            return
        existing = read_assessments(body)
        stored = stored or {}
        self._clear_section(body)

        for cell in self.slo_cells():
            outcome = cell.get_attr("data-outcome-index")
            for slo_index, slo_input in enumerate(cell.by_tag("textarea"), 1):
                key = f"{outcome}.{slo_index}"
                if key in stored:
                    values = list(stored[key])
                else:
                    values = existing.get(key, [])

                row = body.append(element("tr", attrs={"data-slo-key": key}))
                row.append(element("td", classes=["outcome-cell"], text=f"{key} {slo_input.value}".strip()))
                assessment_cell = row.append(element(
                    "td", classes=["assessment-cell"], attrs={"data-slo-key": key},
                ))
                add_button = assessment_cell.append(element(
                    "button", classes=["addAssessmentButton"], text="+ Add Assessment",
                ))
                self._on("assessment-add", key, add_button, "click",
                         lambda cell=assessment_cell, key=key: self.add_assessment_input(cell, key))

                if values:
                    for value in values:
                        self.add_assessment_input(assessment_cell, key, value)
                else:
                    self.add_assessment_input(assessment_cell, key, removable=False)

    def rebuild_assessments(self) -> None:
        self.render_assessment_table(None)

    def add_assessment_input(
        self, cell: FormNode, slo_key: str, value: str = "", removable: bool = True
    ) -> FormNode:
        name = f"assessments{slo_key}[]"
        number = len(cell.by_name(name)) + 1
        wrapper = element("div", classes=["assessment-input-wrapper"])
        wrapper.append(element(
            "input",
            name=name,
            placeholder=f"Assessment {number}",
            value=value,
            attrs={"type": "text", "required": "true"},
        ))
        if removable:
            remove_button = wrapper.append(element("button", classes=["minus-button"], text="-"))
            self._on("assessment-remove", slo_key, remove_button, "click",
                     lambda: self.remove_assessment_input(wrapper))
        cell.insert_before(wrapper, cell.first_by_class("addAssessmentButton"))
        return wrapper

    def remove_assessment_input(self, wrapper: FormNode) -> None:
        cell = wrapper.parent
        self._remove_group(wrapper)
        self.relocate_add_button(cell, "addAssessmentButton")

    # -- weighting rows --------------------------------------------------

    def render_weighting_rows(self, details: Sequence[WeightingDetail]) -> None:
        body = self.tree.tbody("weightingDetailsTable")
        if body is None:
            return
        self._clear_section(body)
        for detail in details:
            self.add_weighting_row(detail.assessed_element, format_weight(detail.weight))
        self.update_total_weight()

    def add_weighting_row(self, label: str = "", weight: str = "") -> Optional[FormNode]:
        body = self.tree.tbody("weightingDetailsTable")
        if body is None:
            return None
        row = element("tr", classes=["weighting-row"])
        row.append(element("td", children=[element(
            "input", name="assessedElements[]", placeholder="Assignment Title", value=label,
            attrs={"type": "text", "required": "true"},
        )]))
        weight_input = element(
            "input", name="weight[]", placeholder="Weight (%)", value=weight,
            attrs={"type": "number", "min": "0", "max": "100", "required": "true"},
        )
        row.append(element("td", children=[weight_input]))
        remove_button = element("button", classes=["remove-weighting-row"], text="Remove")
        row.append(element("td", children=[remove_button]))

        self._on("weight-input", "row", weight_input, "input", self.update_total_weight)
        self._on("weight-remove", "row", remove_button, "click", lambda: self.remove_weighting_row(row))
        body.append(row)
        self.update_total_weight()
        return row

    def remove_weighting_row(self, row: FormNode) -> None:
        self._remove_group(row)
        self.update_total_weight()

    def update_total_weight(self) -> Optional[WeightTotal]:
        body = self.tree.tbody("weightingDetailsTable")
        if body is None:
            return None
        total = sum(parse_weight(node.value) for node in body.by_name("weight[]"))
        result = WeightTotal(total=total, over_limit=total > 100, display=f"{format_weight(total)}%")

        node = self.tree.get("totalWeight")
        if node is None:
            logger.warning("Total weight element not found.")
            return result
        node.text = result.display
        if result.over_limit:
            node.set_attr("data-over-limit", "true")
            node.set_attr("style", "color: red")
            logger.warning("Total weight exceeds 100%%: %s", result.display)
        else:
            node.remove_attr("data-over-limit")
            node.remove_attr("style")
        return result

    # -- modules ---------------------------------------------------------

    def module_blocks(self) -> List[FormNode]:
        container = self.tree.get("modulesContainer")
        return container.by_class("module-block") if container is not None else []

    def add_module(self, start_date: Union[str, date, None] = None) -> Optional[FormNode]:
        """Append the next module, dated from the selected start date."""
        blocks = self.module_blocks()
        if len(blocks) >= self.settings.max_modules:
            self._notify(f"Maximum of {self.settings.max_modules} modules allowed.")
            return None
        start = parse_start_date(start_date if start_date is not None else self.fields.get_value("datePicker"))
        if start is None:
            self._notify("Please select a valid start date before adding modules.")
            return None

        numbers = [int(block.get_attr("data-module-number", "0")) for block in blocks]
        number = max(numbers, default=0) + 1
        return self._module_block(number, dates=format_module_dates(start, number))

    def generate_modules(self, count: Optional[int] = None, start_date: Union[str, date, None] = None) -> int:
        """Replace all modules with ``count`` freshly dated ones."""
        start = parse_start_date(start_date if start_date is not None else self.fields.get_value("datePicker"))
        if start is None:
            self._notify("Please select a valid start date.")
            return 0
        if count is None:
            selected = self.fields.get_value("moduleSelect")
            count = int(selected) if selected.isdigit() else 1
        count = max(0, min(count, self.settings.max_modules))

        container = self.tree.require("modulesContainer")
        if container is None:
            return 0
        self._clear_section(container)
        for number in range(1, count + 1):
            self._module_block(number, dates=format_module_dates(start, number))
        return count

    def render_modules(self, modules: Sequence[Module]) -> None:
        container = self.tree.require("modulesContainer")
        if container is None:
            return
        self._clear_section(container)
        for number, module in enumerate(modules[: self.settings.max_modules], 1):
            self._module_block(number, title=module.title, dates=module.dates, assignments=module.assignments)

    def _module_block(
        self, number: int, title: str = "", dates: str = "", assignments: Optional[Sequence[str]] = None
    ) -> Optional[FormNode]:
        container = self.tree.require("modulesContainer")
        if container is None:
            return None
        shade = "module-block-gray" if number % 2 == 0 else "module-block-white"
        block = container.append(element(
            "div",
            id=f"module{number}",
            classes=["module-block", shade],
            attrs={"data-module-number": str(number)},
        ))
        block.append(element("h3", text=f"Module {number}"))
        block.append(element(
            "textarea", id=f"module{number}Title", name=f"module[{number}][title]",
            placeholder=f"Module {number} Title", value=title, attrs={"required": "true"},
        ))
        block.append(element(
            "textarea", id=f"module{number}Dates", name=f"module[{number}][dates]", value=dates, readonly=True,
        ))
        block.append(element("div", id=f"module{number}AssignmentsContainer", classes=["assignments-container"]))
        add_button = block.append(element("button", classes=["add-assignment-button"], text="+ Add Assignment"))
        remove_button = block.append(element("button", classes=["remove-module-button"], text="Remove Module"))
        self._on("assignment-add", number, add_button, "click", lambda: self.add_assignment(number))
        self._on("module-remove", number, remove_button, "click", lambda: self.remove_module(number))

        if assignments is None:
            self.add_assignment(number)
        else:
            for value in assignments:
                self.add_assignment(number, value)
        return block

    def add_assignment(self, module_number: int, value: str = "") -> Optional[FormNode]:
        container = self.tree.require(f"module{module_number}AssignmentsContainer")
        if container is None:
            return None
        number = len(container.by_class("assignment-wrapper")) + 1
        wrapper = container.append(element("div", classes=["assignment-wrapper"]))
        wrapper.append(element(
            "textarea", name=f"module[{module_number}][assignments][]",
            placeholder=f"Assignment {number}", value=value, attrs={"required": "true"},
        ))
        remove_button = wrapper.append(element("button", classes=["remove-assignment-button"], text="Remove"))
        self._on("assignment-remove", module_number, remove_button, "click",
                 lambda: self.remove_assignment(wrapper))
        return wrapper

    def remove_assignment(self, wrapper: FormNode) -> None:
        self._remove_group(wrapper)

    def remove_module(self, module_number: int) -> bool:
        block = self.tree.get(f"module{module_number}")
        if block is None:
            logger.warning("Module %s not found.", module_number)
            return False
        self._remove_group(block)
        return True
