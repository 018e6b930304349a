"""Rich-text bridge: one editor per field, mirrored into a hidden value node.

The hidden node (``#<field_id>``) is the value of record; assembly and
population only ever touch it. Editors mount on ``#editor-<field_id>``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from sylman.services.form_tree import FormNode, FormTree
from sylman.services.listener_registry import ListenerRegistry

logger = logging.getLogger(__name__)

TEXT_CHANGE = "text-change"

DEFAULT_TOOLBAR: Tuple[Tuple[str, ...], ...] = (
    ("bold", "italic", "underline", "strike"),
    ("link",),
    ("clean",),
)


@dataclass
class EditorConfig:
    theme: str = "snow"
    placeholder: str = "Enter text..."
    toolbar: Tuple[Tuple[str, ...], ...] = DEFAULT_TOOLBAR


class RichTextEditor(Protocol):
    """Contract a mounted editor must satisfy."""

    def get_html(self) -> str: ...

    def set_html(self, html: str) -> None: ...

    def add_listener(self, event: str, handler: Callable[[Any], None]) -> None: ...

    def remove_listener(self, event: str, handler: Callable[[Any], None]) -> None: ...


class BufferEditor:
    """Headless editor holding its HTML in memory."""

    def __init__(self, container: FormNode, config: EditorConfig) -> None:
        self.container = container
        self.config = config
        self._html = ""
        self._listeners: Dict[str, List[Callable[[Any], None]]] = {}
        container.set_attr("data-editor", config.theme)
        container.placeholder = config.placeholder

    def get_html(self) -> str:
        return self._html

    def set_html(self, html: str) -> None:
        self._html = html or ""
        for handler in list(self._listeners.get(TEXT_CHANGE, [])):
            handler(self)

    def add_listener(self, event: str, handler: Callable[[Any], None]) -> None:
        self._listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Callable[[Any], None]) -> None:
        handlers = self._listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self) -> int:
        return sum(len(handlers) for handlers in self._listeners.values())


EditorFactory = Callable[[FormNode, EditorConfig], RichTextEditor]


@dataclass
class _Mount:
    editor: RichTextEditor
    config: EditorConfig = field(default_factory=EditorConfig)


class RichTextBridge:
    def __init__(
        self,
        tree: FormTree,
        registry: Optional[ListenerRegistry] = None,
        editor_factory: EditorFactory = BufferEditor,
    ) -> None:
        self.tree = tree
        self.registry = registry or ListenerRegistry()
        self._factory = editor_factory
        self._mounts: Dict[str, _Mount] = {}

    @staticmethod
    def _listener_key(field_id: str) -> str:
        return f"editor:{field_id}"

    def is_attached(self, field_id: str) -> bool:
        return field_id in self._mounts

    def attached_ids(self) -> List[str]:
        return list(self._mounts)

    def get(self, field_id: str) -> Optional[RichTextEditor]:
        mount = self._mounts.get(field_id)
        return mount.editor if mount else None

    def attach(self, field_id: str, config: Optional[EditorConfig] = None) -> Optional[RichTextEditor]:
        existing = self._mounts.get(field_id)
        if existing is not None:
            logger.info('Editor for "%s" is already attached; reusing it.', field_id)
            return existing.editor

        container = self.tree.get(f"editor-{field_id}")
        if container is None:
            logger.warning("Editor container #editor-%s not found.", field_id)
            return None
        hidden = self.tree.get(field_id)
        if hidden is None:
            logger.warning("Hidden field #%s not found to sync with editor.", field_id)
            return None

        config = config or EditorConfig()
        editor = self._factory(container, config)
        editor.set_html(hidden.value)

        def mirror(source: Any) -> None:
            hidden.value = source.get_html().strip()

        self.registry.register(self._listener_key(field_id), editor, TEXT_CHANGE, mirror)
        self._mounts[field_id] = _Mount(editor=editor, config=config)
        logger.debug('Editor attached for "%s".', field_id)
        return editor

    def detach(self, field_id: str) -> bool:
        mount = self._mounts.pop(field_id, None)
        if mount is None:
            logger.warning('No editor attached for "%s".', field_id)
            return False
        self.registry.release(self._listener_key(field_id))
        logger.debug('Editor detached for "%s".', field_id)
        return True

    def detach_all(self) -> None:
        for field_id in list(self._mounts):
            self.detach(field_id)

    def sync_all(self) -> int:
        """Copy every editor's content into its hidden node. Returns the count synced."""
        synced = 0
        for field_id, mount in self._mounts.items():
            hidden = self.tree.get(field_id)
            if hidden is None:
                logger.warning("Hidden field #%s not found during synchronization.", field_id)
                continue
            hidden.value = mount.editor.get_html().strip()
            synced += 1
        return synced

    def reseed(self, field_id: str) -> bool:
        """Push the hidden node's value into the attached editor."""
        mount = self._mounts.get(field_id)
        if mount is None:
            return False
        hidden = self.tree.get(field_id)
        if hidden is None:
            logger.warning("Hidden field #%s not found while reseeding.", field_id)
            return False
        mount.editor.set_html(hidden.value)
        return True

    def reseed_all(self) -> None:
        for field_id in list(self._mounts):
            self.reseed(field_id)
