"""Static skeleton of the syllabus form.

Dynamic sections (instructors, outcome tables, weighting rows, modules) are
empty containers here; the list builder fills them.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from sylman.core.config import Settings, get_settings
from sylman.services.form_tree import FormNode, FormTree, element, option
from sylman.services.program_defaults import FIELD_PLACEHOLDERS, POLICY_KEYS
from sylman.schemas.syllabus import ProgramCode

# Wire key -> element id for every scalar field
SCALAR_FIELDS: Dict[str, str] = {
    "programSelect": "programSelect",
    "courseTitle": "courseTitle",
    "courseNumber": "courseNumber",
    "credits": "credits",
    "placement": "placement",
    "courseType": "courseType",
    "courseDelivery": "courseDelivery",
    "courseLead": "courseLead",
    "leadEmail": "leadEmail",
    "leadPhone": "leadPhone",
    "leadOffice": "leadOffice",
    "leadOfficeHours": "leadOfficeHours",
    "courseReqs": "courseReqs",
    "courseDescription": "courseDescription",
    "requiredMaterials": "requiredMaterials",
    "instructionalMethods": "instructionalMethods",
    "courseCommunications": "courseCommunications",
    "startDate": "datePicker",
}

RICH_TEXT_FIELDS: List[str] = [
    "leadOfficeHours",
    "courseDescription",
    "requiredMaterials",
    "instructionalMethods",
    "courseCommunications",
]

FIELD_LABELS: Dict[str, str] = {
    "programSelect": "Program",
    "courseTitle": "Course Title",
    "courseNumber": "Course Number",
    "credits": "Credits",
    "placement": "Placement in Curriculum",
    "courseType": "Course Type",
    "courseDelivery": "Course Delivery",
    "courseLead": "Course Lead",
    "leadEmail": "Course Lead Email",
    "leadPhone": "Course Lead Phone",
    "leadOffice": "Course Lead Office",
    "leadOfficeHours": "Course Lead Office Hours",
    "courseReqs": "Pre/Co-requisites",
    "courseDescription": "Course Description",
    "requiredMaterials": "Required Materials",
    "instructionalMethods": "Instructional Methods",
    "courseCommunications": "Course Communications",
    "datePicker": "Start Date",
}

_INPUT_PLACEHOLDERS: Dict[str, str] = {
    "courseTitle": "Course Title",
    "courseNumber": "NURS ###",
    "credits": "# credits",
    "placement": FIELD_PLACEHOLDERS["default"]["placement"],
    "courseType": FIELD_PLACEHOLDERS["default"]["courseType"],
    "courseDelivery": "In person, online, or hybrid",
    "courseLead": "Course Lead Name, Credentials",
    "leadEmail": "name@jefferson.edu",
    "leadPhone": "###-###-####",
    "leadOffice": "Building, Room Number",
    "courseReqs": "Pre/Co-requisites or None",
}


def rich_text_field(field_id: str, attrs: Optional[Dict[str, str]] = None) -> List[FormNode]:
    """Editor container plus the hidden textarea that carries the value."""
    return [
        element("div", id=f"editor-{field_id}", classes=["editor"]),
        element("textarea", id=field_id, name=field_id, attrs=dict(attrs or {}, hidden="true")),
    ]


def _labelled(field_id: str, *nodes: FormNode) -> FormNode:
    return element(
        "div",
        classes=["form-field"],
        children=[element("label", text=FIELD_LABELS.get(field_id, field_id), attrs={"for": field_id}), *nodes],
    )


def _table(table_id: str, headers: List[str]) -> FormNode:
    head = element("thead", children=[element("tr", children=[element("th", text=h) for h in headers])])
    return element("table", id=table_id, children=[head, element("tbody")])


def build_form_tree(settings: Optional[Settings] = None) -> FormTree:
    settings = settings or get_settings()
    form = element("form", id="syllabusForm")

    form.append(element("input", id="syllabusId", name="syllabusId", attrs={"type": "hidden"}))

    program = element(
        "select",
        id="programSelect",
        name="programSelect",
        children=[option("", "Select a program")] + [option(code.value) for code in ProgramCode],
    )
    form.append(_labelled("programSelect", program))

    for field_id in ("courseTitle", "courseNumber", "credits", "placement", "courseType",
                     "courseDelivery", "courseLead", "leadEmail", "leadPhone", "leadOffice",
                     "courseReqs"):
        form.append(_labelled(field_id, element(
            "input", id=field_id, name=field_id, placeholder=_INPUT_PLACEHOLDERS.get(field_id, ""),
        )))
    for field_id in RICH_TEXT_FIELDS:
        form.append(_labelled(field_id, *rich_text_field(field_id)))

    # Instructors
    form.append(element(
        "select",
        id="addInstructors",
        name="addInstructors",
        children=[option(str(i)) for i in range(1, settings.max_instructors + 1)],
    ))
    form.append(element("div", id="instructorsContainer"))

    # Outcomes and assessments
    form.append(_table("progStudentOutcomesTable", ["Program Outcomes", "Student Learning Outcomes"]))
    form.append(_table("outcomesAssessmentTable", ["Student Learning Outcome", "Assessments"]))

    # Weighting
    form.append(_table("weightingDetailsTable", ["Assessed Element", "Weight (%)"]))
    form.append(element("span", id="totalWeight", text="0%"))
    form.append(element("button", id="addWeightingRowButton", classes=["add-weighting-row"], text="+ Add Row"))

    # Modules
    form.append(_labelled("datePicker", element("input", id="datePicker", name="datePicker", attrs={"type": "date"})))
    form.append(element(
        "select",
        id="moduleSelect",
        name="moduleSelect",
        children=[
            option(str(i), f"{i} Module{'s' if i > 1 else ''}") for i in range(1, settings.max_modules + 1)
        ],
    ))
    form.append(element("div", id="modulesContainer"))
    form.append(element("button", id="addModuleButton", text="+ Add Module"))

    # Policies and services
    policies = element("section", id="policiesAndServices")
    for key in POLICY_KEYS:
        policies.append(element("div", classes=["policy"], children=rich_text_field(key, {"data-policy-key": key})))
    form.append(policies)

    form.append(element("div", id="autosave-status", classes=["autosave-status"]))
    form.append(element("button", id="saveButton", attrs={"type": "submit"}, text="Save"))

    return FormTree(form)
