"""
Syllabus Schema - Structured syllabus document exchanged with the syllabus store.

Field names are snake_case in Python and camelCase on the wire, matching the
documents the REST store already holds (``courseTitle``, ``policiesAndServices``...).
Legacy documents may be partial or carry ``null`` values; those are normalised
to empty strings/lists so a loaded document never contains ``None``.
"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ProgramCode(str, Enum):
    BSN = "BSN"
    MSN = "MSN"
    DNP = "DNP"


def _str_list(value: Any) -> List[str]:
    """Coerce a stored list to strings, dropping nulls; anything else becomes []."""
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else str(item) for item in value if item is not None]


class WireModel(BaseModel):
    """Base model: camelCase aliases, unknown keys ignored, nulls dropped."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class Instructor(WireModel):
    """One course instructor block"""
    name: str = ""
    email: str = ""
    phone: str = ""
    office: str = ""
    office_hours: str = Field("", description="Rich text (HTML)")

    @field_validator("*", mode="before")
    @classmethod
    def _to_str(cls, value: Any) -> Any:
        return value if isinstance(value, str) else str(value)


class WeightingDetail(WireModel):
    """A graded component and its share of the final grade"""
    assessed_element: str = ""
    weight: float = Field(0.0, description="Percentage, 0-100")

    @model_validator(mode="before")
    @classmethod
    def _component_alias(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("component") is not None and not {"assessedElement", "assessed_element"} & data.keys():
            data = {**data, "assessedElement": data["component"]}
        return data

    @field_validator("weight", mode="before")
    @classmethod
    def _coerce_weight(cls, value: Any) -> float:
        if isinstance(value, str):
            value = value.strip()
            if not value:
                return 0.0
            try:
                return float(value)
            except ValueError:
                return 0.0
        return value


class Module(WireModel):
    """A dated block of course content"""
    title: str = ""
    dates: str = Field("", description="MM/DD/YYYY - MM/DD/YYYY")
    assignments: List[str] = Field(default_factory=list)

    @field_validator("title", "dates", mode="before")
    @classmethod
    def _to_str(cls, value: Any) -> Any:
        return value if isinstance(value, str) else str(value)

    @field_validator("assignments", mode="before")
    @classmethod
    def _clean_assignments(cls, value: Any) -> Any:
        return _str_list(value)


class SyllabusData(WireModel):
    """
    Complete syllabus document.

    ``slo`` is keyed by the 1-based program outcome index; the i-th entry of
    each list is SLO ``<outcome>.<i>``. ``assessments`` is keyed by that SLO
    key (``"2.1"``).
    """
    program_select: str = ""
    course_title: str = ""
    course_number: str = ""
    credits: str = ""
    placement: str = ""
    course_type: str = ""
    course_delivery: str = ""
    course_lead: str = ""
    lead_email: str = ""
    lead_phone: str = ""
    lead_office: str = ""
    lead_office_hours: str = ""
    course_reqs: str = ""
    course_description: str = ""
    required_materials: str = ""
    instructional_methods: str = ""
    course_communications: str = ""
    start_date: str = ""

    instructors: List[Instructor] = Field(default_factory=list)
    program_outcomes: List[str] = Field(default_factory=list)
    slo: Dict[str, List[str]] = Field(default_factory=dict)
    assessments: Dict[str, List[str]] = Field(default_factory=dict)
    weighting_details: List[WeightingDetail] = Field(default_factory=list)
    modules: List[Module] = Field(default_factory=list)
    policies_and_services: Dict[str, str] = Field(default_factory=dict)
    last_edited: str = ""

    @field_validator(
        "program_select", "course_title", "course_number", "credits", "placement",
        "course_type", "course_delivery", "course_lead", "lead_email", "lead_phone",
        "lead_office", "lead_office_hours", "course_reqs", "course_description",
        "required_materials", "instructional_methods", "course_communications",
        "start_date", "last_edited",
        mode="before",
    )
    @classmethod
    def _scalar_to_str(cls, value: Any) -> str:
        # Stored documents sometimes carry numbers (credits) or arrays for scalars
        if isinstance(value, list):
            return ", ".join(str(v) for v in value)
        return value if isinstance(value, str) else str(value)

    @field_validator("slo", "assessments", mode="before")
    @classmethod
    def _keyed_lists(cls, value: Any, info: ValidationInfo) -> Dict[str, List[str]]:
        # Older store documents hold assessments as an array and slo as {"slo1": [...]}
        if not isinstance(value, dict):
            return {}
        result = {}
        for key, items in value.items():
            if items is None:
                continue
            key = str(key)
            if info.field_name == "slo" and key.startswith("slo"):
                key = key[3:]
            result[key] = _str_list(items)
        return result

    @field_validator("policies_and_services", mode="before")
    @classmethod
    def _clean_policies(cls, value: Any) -> Dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(k): v if isinstance(v, str) else str(v) for k, v in value.items() if v is not None}

    @field_validator("program_outcomes", mode="before")
    @classmethod
    def _clean_outcomes(cls, value: Any) -> List[str]:
        return _str_list(value)

    @field_validator("instructors", "weighting_details", "modules", mode="before")
    @classmethod
    def _clean_rows(cls, value: Any) -> List[Any]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, (dict, WireModel))]

    def content(self) -> Dict[str, Any]:
        """Wire form without ``lastEdited``, used for change detection."""
        data = self.to_wire()
        data.pop("lastEdited", None)
        return data


class SyllabusRecord(WireModel):
    """Server envelope returned by the list endpoints"""
    id: str = Field("", alias="_id")
    user_id: str = ""
    syllabus_data: SyllabusData = Field(default_factory=SyllabusData)
    created_at: str = ""
    updated_at: str = ""

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def _id_to_str(cls, value: Any) -> str:
        return value if isinstance(value, str) else str(value)
