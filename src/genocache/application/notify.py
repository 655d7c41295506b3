from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable

from ..domain.value_types import NOTIFICATION_KINDS, NotificationKind

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class Notifier:
    """
    Named publish/subscribe for the four data-source notifications:

    - ``newdata(range)``: records for ``range`` were just cached
    - ``networkprogress(count | info)``: fetches about to start
    - ``networkdone()``: one fetch settled, success or failure
    - ``networkfailure(message)``: a fetch failed; always followed by ``networkdone``

    A raising handler is logged and skipped; it never reaches the fetch.
    """
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def on(self, kind: NotificationKind, handler: Handler) -> Handler:
        if kind not in NOTIFICATION_KINDS:
            raise ValueError(f"Unknown notification {kind!r}; expected one of {NOTIFICATION_KINDS}")
        self._handlers[kind].append(handler)
        return handler

    def once(self, kind: NotificationKind, handler: Handler) -> Handler:
        def _once(*args: Any) -> Any:
            self.off(kind, _once)
            return handler(*args)
        _once.__wrapped__ = handler  # type: ignore[attr-defined]
        self.on(kind, _once)
        return handler

    def off(self, kind: NotificationKind, handler: Handler | None = None) -> None:
        if handler is None:
            self._handlers.pop(kind, None)
            return
        # a once() registration is removed by the handler it wraps
        for h in list(self._handlers.get(kind, ())):
            if h == handler or getattr(h, "__wrapped__", None) == handler:
                self._handlers[kind].remove(h)
                break

    def emit(self, kind: NotificationKind, *args: Any) -> None:
        for handler in list(self._handlers.get(kind, ())):
            try:
                handler(*args)
            except Exception:
                logger.exception("%s handler %r raised", kind, handler)
