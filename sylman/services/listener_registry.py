"""Keyed registry of event subscriptions.

Every handler the editor wires up is recorded under a key so it can be
released explicitly before the owning section is re-rendered. Registering
a key that is already present releases the previous subscription first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol

from sylman.services.form_tree import FormNode

logger = logging.getLogger(__name__)


class ListenerTarget(Protocol):
    def add_listener(self, event: str, handler: Callable[[Any], None]) -> None: ...

    def remove_listener(self, event: str, handler: Callable[[Any], None]) -> None: ...


@dataclass
class Registration:
    key: str
    target: ListenerTarget
    event: str
    handler: Callable[[Any], None]


class ListenerRegistry:
    def __init__(self) -> None:
        self._entries: Dict[str, Registration] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> List[str]:
        return list(self._entries)

    def get(self, key: str) -> Optional[Registration]:
        return self._entries.get(key)

    def register(self, key: str, target: ListenerTarget, event: str, handler: Callable[[Any], None]) -> Registration:
        if key in self._entries:
            logger.debug("Replacing listener %s", key)
            self.release(key)
        target.add_listener(event, handler)
        registration = Registration(key=key, target=target, event=event, handler=handler)
        self._entries[key] = registration
        return registration

    def release(self, key: str) -> bool:
        registration = self._entries.pop(key, None)
        if registration is None:
            return False
        registration.target.remove_listener(registration.event, registration.handler)
        return True

    def release_prefix(self, prefix: str) -> int:
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            self.release(key)
        return len(keys)

    def release_within(self, node: FormNode) -> int:
        """Release every subscription whose target node sits inside ``node``."""
        keys = [
            key
            for key, registration in self._entries.items()
            if isinstance(registration.target, FormNode) and node.contains(registration.target)
        ]
        for key in keys:
            self.release(key)
        return len(keys)

    def release_all(self) -> None:
        for key in list(self._entries):
            self.release(key)
