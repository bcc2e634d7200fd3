from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from dazzle_panel.services.backend import Backend

EventHandler = Callable[[Any], None]


class PushSubscriptions:
    """
    Owns the live push-channel listeners for one backend.

    arm() always tears down the previous set before listening again, so
    re-initialising never stacks duplicate handlers on a channel.
    """

    def __init__(self, backend: Backend) -> None:
        self._backend = backend
        self._handles: list[Callable[[], None]] = []

    @property
    def active(self) -> bool:
        return bool(self._handles)

    def arm(self, handlers: Mapping[str, EventHandler]) -> None:
        self.teardown()
        for event, handler in handlers.items():
            self._handles.append(self._backend.listen(event, handler))
        logging.debug("Push subscriptions armed: %s", ", ".join(handlers))

    def teardown(self) -> None:
        handles, self._handles = self._handles, []
        for unlisten in handles:
            try:
                unlisten()
            except Exception as e:
                logging.warning("Failed to remove push listener: %s", e)
