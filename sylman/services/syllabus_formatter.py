"""
Syllabus Formatter - Convert a syllabus document into readable text.

Rich-text fields are stored as HTML; they are flattened to plain text here
so the output can be shown in a text view or exported as markdown.
"""

import html
import re
from typing import Dict, List

from sylman.schemas.syllabus import SyllabusData
from sylman.services.list_builder import format_weight

_BLOCK_TAGS = re.compile(r"</?(p|div|br|li|ul|ol|h[1-6])\b[^>]*>", re.IGNORECASE)
_TAGS = re.compile(r"<[^>]+>")
_BLANK_LINES = re.compile(r"\n{3,}")

LABELS: Dict[str, str] = {
    "program": "Program",
    "course_number": "Course Number",
    "credits": "Credits",
    "placement": "Placement",
    "course_type": "Course Type",
    "course_delivery": "Course Delivery",
    "course_lead": "Course Lead",
    "requisites": "Pre/Co-requisites",
    "description": "Course Description",
    "materials": "Required Materials",
    "methods": "Instructional Methods",
    "communications": "Course Communications",
    "instructors": "Instructors",
    "office_hours": "Office Hours",
    "outcomes": "Program and Student Learning Outcomes",
    "assessments": "Assessments",
    "weighting": "Weighting Details",
    "total": "Total",
    "modules": "Modules",
    "policies": "Policies and Services",
}


def strip_html(value: str) -> str:
    """Flatten rich-text HTML to plain text, one line per block element."""
    text = _BLOCK_TAGS.sub("\n", value or "")
    text = html.unescape(_TAGS.sub("", text))
    lines = [line.strip() for line in text.splitlines()]
    return _BLANK_LINES.sub("\n\n", "\n".join(lines)).strip()


def policy_title(key: str) -> str:
    words = re.sub(r"(?<=[a-z])(?=[A-Z])", " ", key)
    return words[:1].upper() + words[1:]


def syllabus_to_text(syllabus: SyllabusData) -> str:
    """
    Convert a syllabus document to markdown-style text.

    Args:
        syllabus: The assembled or stored syllabus document

    Returns:
        Formatted text; empty sections are omitted
    """
    l = LABELS
    sections: List[str] = [f"# {syllabus.course_title or 'Untitled Syllabus'}"]

    for label, value in (
        (l["program"], syllabus.program_select),
        (l["course_number"], syllabus.course_number),
        (l["credits"], syllabus.credits),
        (l["placement"], syllabus.placement),
        (l["course_type"], syllabus.course_type),
        (l["course_delivery"], syllabus.course_delivery),
        (l["requisites"], syllabus.course_reqs),
    ):
        if value:
            sections.append(f"**{label}:** {value}")

    if syllabus.course_lead:
        contact = ", ".join(v for v in (syllabus.lead_email, syllabus.lead_phone, syllabus.lead_office) if v)
        sections.append(f"**{l['course_lead']}:** {syllabus.course_lead}" + (f" ({contact})" if contact else ""))
        if syllabus.lead_office_hours:
            sections.append(f"**{l['office_hours']}:** {strip_html(syllabus.lead_office_hours)}")

    for label, value in (
        (l["description"], syllabus.course_description),
        (l["materials"], syllabus.required_materials),
        (l["methods"], syllabus.instructional_methods),
        (l["communications"], syllabus.course_communications),
    ):
        if value:
            sections.append(f"\n## {label}\n{strip_html(value)}")

    if syllabus.instructors:
        sections.append(f"\n## {l['instructors']}")
        for instructor in syllabus.instructors:
            details = ", ".join(v for v in (instructor.email, instructor.phone, instructor.office) if v)
            line = f"- {instructor.name or 'TBD'}" + (f" ({details})" if details else "")
            if instructor.office_hours:
                line += f"; {l['office_hours']}: {strip_html(instructor.office_hours)}"
            sections.append(line)

    if syllabus.program_outcomes:
        sections.append(f"\n## {l['outcomes']}")
        for index, outcome in enumerate(syllabus.program_outcomes, 1):
            sections.append(f"{index}. {outcome}")
            for slo_index, slo in enumerate(syllabus.slo.get(str(index), []), 1):
                key = f"{index}.{slo_index}"
                sections.append(f"   - SLO {key}: {slo}")
                assessments = [a for a in syllabus.assessments.get(key, []) if a]
                if assessments:
                    sections.append(f"     {l['assessments']}: {'; '.join(assessments)}")

    if syllabus.weighting_details:
        sections.append(f"\n## {l['weighting']}")
        total = 0.0
        for detail in syllabus.weighting_details:
            total += detail.weight
            sections.append(f"- {detail.assessed_element or 'Untitled'}: {format_weight(detail.weight)}%")
        sections.append(f"**{l['total']}:** {format_weight(total)}%")

    if syllabus.modules:
        sections.append(f"\n## {l['modules']}")
        for number, module in enumerate(syllabus.modules, 1):
            heading = f"**Module {number}:** {module.title or 'Untitled'}"
            if module.dates:
                heading += f" ({module.dates})"
            sections.append(heading)
            for assignment in module.assignments:
                if assignment:
                    sections.append(f"- {assignment}")

    policies = {k: v for k, v in syllabus.policies_and_services.items() if v}
    if policies:
        sections.append(f"\n## {l['policies']}")
        for key, text in policies.items():
            sections.append(f"\n### {policy_title(key)}\n{strip_html(text)}")

    return "\n".join(sections)
