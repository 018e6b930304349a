"""Get/set primitive field values by id, tolerant of missing elements."""

from __future__ import annotations

import logging

from sylman.services.form_tree import FormTree

logger = logging.getLogger(__name__)


class FieldAccessor:
    def __init__(self, tree: FormTree) -> None:
        self.tree = tree

    def get_value(self, field_id: str) -> str:
        node = self.tree.get(field_id)
        if node is None:
            logger.warning('Element with id "%s" not found.', field_id)
            return ""
        return node.value or ""

    def set_value(self, field_id: str, value: str) -> bool:
        """Write ``value`` into the field. Returns False when nothing was written.

        A select only takes values present among its options; anything else
        is skipped with a warning so optional sections never raise.
        """
        node = self.tree.get(field_id)
        if node is None:
            logger.warning('Element with id "%s" not found.', field_id)
            return False
        value = "" if value is None else str(value)
        if node.tag == "select" and value not in node.option_values():
            logger.warning('Option "%s" not found in select "%s".', value, field_id)
            return False
        node.value = value
        return True

    def set_placeholder(self, field_id: str, text: str) -> bool:
        node = self.tree.get(field_id)
        if node is None:
            logger.warning('Element with id "%s" not found.', field_id)
            return False
        node.placeholder = text
        return True

    def get_text(self, field_id: str) -> str:
        node = self.tree.get(field_id)
        return node.text if node is not None else ""
