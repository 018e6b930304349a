"""Build one complete syllabus snapshot from the current form tree.

Only hidden value nodes are read for rich-text fields; callers must run
``RichTextBridge.sync_all()`` first. Policy fields are discovered through
their ``data-policy-key`` marker, so new policies only need markup.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sylman.schemas.syllabus import SyllabusData
from sylman.services.field_accessor import FieldAccessor
from sylman.services.form_layout import SCALAR_FIELDS
from sylman.services.form_tree import FormTree
from sylman.services.list_builder import (
    read_assessments,
    read_instructors,
    read_modules,
    read_slo_cells,
    read_weighting_rows,
)

logger = logging.getLogger(__name__)

POLICY_MARKER = "data-policy-key"


class DocumentAssembler:
    def __init__(self, tree: FormTree, accessor: Optional[FieldAccessor] = None) -> None:
        self.tree = tree
        self.fields = accessor or FieldAccessor(tree)

    def assemble(self) -> SyllabusData:
        data: Dict[str, Any] = {key: self.fields.get_value(field_id) for key, field_id in SCALAR_FIELDS.items()}

        container = self.tree.require("instructorsContainer")
        data["instructors"] = read_instructors(container) if container is not None else []

        data["programOutcomes"] = self._program_outcomes()
        data["slo"] = read_slo_cells(self.tree.by_class("slo-cell"))
        data["assessments"] = read_assessments(self.tree.tbody("outcomesAssessmentTable"))
        data["weightingDetails"] = read_weighting_rows(self.tree.tbody("weightingDetailsTable"))

        modules = self.tree.require("modulesContainer")
        data["modules"] = read_modules(modules) if modules is not None else []

        data["policiesAndServices"] = self.policies()

        document = SyllabusData.model_validate(data)
        logger.debug(
            "Assembled syllabus: %d instructors, %d outcomes, %d modules",
            len(document.instructors), len(document.slo), len(document.modules),
        )
        return document

    def _program_outcomes(self) -> List[str]:
        body = self.tree.tbody("progStudentOutcomesTable")
        if body is None:
            return []
        return [cell.text for cell in body.by_class("prog-outcome")]

    def policies(self) -> Dict[str, str]:
        policies: Dict[str, str] = {}
        for node in self.tree.by_attr(POLICY_MARKER):
            key = node.get_attr(POLICY_MARKER)
            policies[key] = (node.value or "").strip()
        return policies
