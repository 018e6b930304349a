"""In-memory view-model tree standing in for the browser document.

Nodes carry the few properties the editor reads and writes (value, text,
placeholder, attributes, classes) plus per-event listener lists, so the
form components can be exercised without a real DOM.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]
Predicate = Callable[["FormNode"], bool]


class FormNode:
    def __init__(
        self,
        tag: str,
        id: Optional[str] = None,
        name: Optional[str] = None,
        classes: Optional[List[str]] = None,
        attrs: Optional[Dict[str, str]] = None,
        value: str = "",
        text: str = "",
        placeholder: str = "",
        readonly: bool = False,
    ) -> None:
        self.tag = tag
        self.id = id
        self.name = name
        self.classes: List[str] = list(classes or [])
        self.attrs: Dict[str, str] = dict(attrs or {})
        self.value = value
        self.text = text
        self.placeholder = placeholder
        self.readonly = readonly
        self.children: List[FormNode] = []
        self.parent: Optional[FormNode] = None
        self._listeners: Dict[str, List[Handler]] = {}

    def __repr__(self) -> str:
        ident = f"#{self.id}" if self.id else ""
        cls = "".join(f".{c}" for c in self.classes)
        return f"<FormNode {self.tag}{ident}{cls}>"

    # -- structure -----------------------------------------------------

    def append(self, child: FormNode) -> FormNode:
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def insert_before(self, child: FormNode, reference: Optional[FormNode]) -> FormNode:
        """Insert ``child`` before ``reference``; append when reference is not a child."""
        if reference is None or reference.parent is not self:
            return self.append(child)
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.insert(self.children.index(reference), child)
        return child

    def remove(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None

    def clear(self) -> None:
        for child in list(self.children):
            child.remove()

    @property
    def last_child(self) -> Optional[FormNode]:
        return self.children[-1] if self.children else None

    def contains(self, other: FormNode) -> bool:
        node: Optional[FormNode] = other
        while node is not None:
            if node is self:
                return True
            node = node.parent
        return False

    # -- queries ---------------------------------------------------------

    def walk(self) -> Iterator[FormNode]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, predicate: Predicate) -> Optional[FormNode]:
        for node in self.walk():
            if node is not self and predicate(node):
                return node
        return None

    def find_all(self, predicate: Predicate) -> List[FormNode]:
        return [node for node in self.walk() if node is not self and predicate(node)]

    def by_id(self, node_id: str) -> Optional[FormNode]:
        return self.find(lambda n: n.id == node_id)

    def by_class(self, cls: str) -> List[FormNode]:
        return self.find_all(lambda n: cls in n.classes)

    def first_by_class(self, cls: str) -> Optional[FormNode]:
        return self.find(lambda n: cls in n.classes)

    def by_name(self, name: str) -> List[FormNode]:
        return self.find_all(lambda n: n.name == name)

    def by_tag(self, tag: str) -> List[FormNode]:
        return self.find_all(lambda n: n.tag == tag)

    def by_attr(self, attr: str, value: Optional[str] = None) -> List[FormNode]:
        if value is None:
            return self.find_all(lambda n: attr in n.attrs)
        return self.find_all(lambda n: n.attrs.get(attr) == value)

    def closest(self, predicate: Predicate) -> Optional[FormNode]:
        node: Optional[FormNode] = self
        while node is not None:
            if predicate(node):
                return node
            node = node.parent
        return None

    def has_class(self, cls: str) -> bool:
        return cls in self.classes

    def get_attr(self, attr: str, default: Optional[str] = None) -> Optional[str]:
        return self.attrs.get(attr, default)

    def set_attr(self, attr: str, value: str) -> None:
        self.attrs[attr] = value

    def remove_attr(self, attr: str) -> None:
        self.attrs.pop(attr, None)

    def option_values(self) -> List[str]:
        return [child.value for child in self.children if child.tag == "option"]

    # -- events ----------------------------------------------------------

    def add_listener(self, event: str, handler: Handler) -> None:
        self._listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Handler) -> None:
        handlers = self._listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(handlers) for handlers in self._listeners.values())

    def dispatch(self, event: str) -> None:
        for handler in list(self._listeners.get(event, [])):
            handler(self)

    def click(self) -> None:
        self.dispatch("click")


class FormTree:
    """Root holder with id lookup; every component queries through this."""

    def __init__(self, root: Optional[FormNode] = None) -> None:
        self.root = root or FormNode("form", id="syllabusForm")

    def get(self, node_id: str) -> Optional[FormNode]:
        if self.root.id == node_id:
            return self.root
        return self.root.by_id(node_id)

    def require(self, node_id: str) -> Optional[FormNode]:
        """Like ``get`` but logs a warning when the node is absent."""
        node = self.get(node_id)
        if node is None:
            logger.warning('Element with id "%s" not found.', node_id)
        return node

    def tbody(self, table_id: str) -> Optional[FormNode]:
        table = self.require(table_id)
        if table is None:
            return None
        body = table.find(lambda n: n.tag == "tbody")
        if body is None:
            logger.warning("Table body for #%s not found.", table_id)
        return body

    def query_all(self, predicate: Predicate) -> List[FormNode]:
        return self.root.find_all(predicate)

    def by_class(self, cls: str) -> List[FormNode]:
        return self.root.by_class(cls)

    def by_attr(self, attr: str, value: Optional[str] = None) -> List[FormNode]:
        return self.root.by_attr(attr, value)


def element(tag: str, **kwargs: Any) -> FormNode:
    """Shorthand used by the layout and list builders."""
    children = kwargs.pop("children", None) or []
    node = FormNode(tag, **kwargs)
    for child in children:
        node.append(child)
    return node


def option(value: str, label: Optional[str] = None) -> FormNode:
    return FormNode("option", value=value, text=label if label is not None else value)
