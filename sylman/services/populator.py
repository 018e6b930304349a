"""Rebuild the form tree from a stored syllabus document.

Every section container is cleared before it is refilled, so reloading a
document never leaves stale rows behind. Stored documents may be partial
(legacy or half-filled); gaps are filled from the program defaults.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sylman.schemas.syllabus import Module, SyllabusData, WeightingDetail
from sylman.services.assembler import POLICY_MARKER
from sylman.services.field_accessor import FieldAccessor
from sylman.services.form_layout import RICH_TEXT_FIELDS, SCALAR_FIELDS
from sylman.services.form_tree import FormTree
from sylman.services.list_builder import DynamicListBuilder
from sylman.services.program_defaults import (
    POLICY_KEYS,
    get_default_policies,
    get_default_slo_mapping,
    get_field_placeholders,
    get_program_outcomes,
    is_known_program,
)
from sylman.services.rich_text import RichTextBridge

logger = logging.getLogger(__name__)


def weighting_from_modules(modules: List[Module]) -> List[WeightingDetail]:
    """One weighting row per non-blank module assignment, weight left at zero."""
    return [
        WeightingDetail(assessed_element=assignment)
        for module in modules
        for assignment in module.assignments
        if assignment.strip()
    ]


def resolve_policies(stored: Dict[str, str], program: str, keys: List[str]) -> Dict[str, str]:
    """Stored value, else the program default, else an empty string, per key."""
    defaults = get_default_policies(program)
    resolved = {}
    for key in keys:
        if key in stored:
            resolved[key] = stored[key]
        else:
            resolved[key] = defaults.get(key, "")
    return resolved


class DocumentPopulator:
    def __init__(
        self,
        tree: FormTree,
        bridge: RichTextBridge,
        builder: DynamicListBuilder,
        accessor: Optional[FieldAccessor] = None,
    ) -> None:
        self.tree = tree
        self.bridge = bridge
        self.builder = builder
        self.fields = accessor or FieldAccessor(tree)

    def populate(self, document: SyllabusData) -> None:
        wire = document.to_wire()
        program = document.program_select

        for key, field_id in SCALAR_FIELDS.items():
            self.fields.set_value(field_id, wire.get(key, ""))
        self.apply_placeholders(program)

        self.builder.render_instructors(document.instructors)

        outcomes = document.program_outcomes
        if not outcomes and is_known_program(program):
            outcomes = get_program_outcomes(program)
        slo = document.slo
        if not slo and is_known_program(program):
            slo = get_default_slo_mapping(program)
        self.builder.render_outcomes_table(outcomes, slo)
        self.builder.render_assessment_table(document.assessments)

        self.builder.render_modules(document.modules)
        weighting = document.weighting_details or weighting_from_modules(document.modules)
        if not weighting:
            weighting = [WeightingDetail()]
        self.builder.render_weighting_rows(weighting)

        self.populate_policies(document.policies_and_services, program)

        for field_id in RICH_TEXT_FIELDS:
            self.bridge.attach(field_id)
        self.bridge.reseed_all()
        logger.info("Populated form for %s", document.course_title or "untitled syllabus")

    def policy_keys(self) -> List[str]:
        """Fixed policy keys plus any extra ones present in the markup."""
        keys = list(POLICY_KEYS)
        for node in self.tree.by_attr(POLICY_MARKER):
            key = node.get_attr(POLICY_MARKER)
            if key not in keys:
                keys.append(key)
        return keys

    def populate_policies(self, stored: Dict[str, str], program: str) -> Dict[str, str]:
        policies = resolve_policies(stored, program, self.policy_keys())
        for key, text in policies.items():
            if self.fields.set_value(key, text):
                self.bridge.attach(key)
                self.bridge.reseed(key)
        return policies

    def apply_placeholders(self, program: str) -> None:
        for field_id, text in get_field_placeholders(program).items():
            self.fields.set_placeholder(field_id, text)

    def apply_program_defaults(self, program: str) -> None:
        """Reset outcomes, SLOs, assessments and policy text for a newly chosen program."""
        self.apply_placeholders(program)
        self.populate_policies({}, program)
        if is_known_program(program):
            self.builder.render_outcomes_table(get_program_outcomes(program), get_default_slo_mapping(program))
        else:
            logger.warning("No program outcomes found for program %r.", program)
            self.builder.render_outcomes_table([], {})
        self.builder.rebuild_assessments()
        logger.info("Default outcomes and policies applied for program %s", program or "(none)")
