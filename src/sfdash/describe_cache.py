"""Lazy, never-expiring cache for describe calls.

Keys are exact, case-sensitive sObject names. Concurrent first requests for
the same key share one remote call: the first caller fetches, the others
wait on its future. A failed fetch is not cached; every waiter sees the
same exception and the next caller tries again.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

_logger = logging.getLogger(__name__)

DescribeLoader = Callable[[str], Any]
LayoutLoader = Callable[[str, Optional[str]], Any]


class DescribeCache:
    def __init__(self, describe_loader: DescribeLoader, layout_loader: LayoutLoader) -> None:
        self._describe_loader = describe_loader
        self._layout_loader = layout_loader
        self._lock = threading.Lock()
        self._describes: Dict[str, Future] = {}
        self._layouts: Dict[Tuple[str, Optional[str]], Future] = {}

    def describe(self, sobject_type: str) -> Any:
        return self._get(self._describes, sobject_type, lambda: self._describe_loader(sobject_type))

    def describe_layout(self, sobject_type: str, layout_id: Optional[str] = None) -> Any:
        # None stands for the full object layout.
        return self._get(
            self._layouts,
            (sobject_type, layout_id),
            lambda: self._layout_loader(sobject_type, layout_id),
        )

    def __contains__(self, sobject_type: str) -> bool:
        with self._lock:
            fut = self._describes.get(sobject_type)
        return fut is not None and fut.done() and fut.exception() is None

    def _get(self, table: Dict[Any, Future], key: Hashable, load: Callable[[], Any]) -> Any:
        with self._lock:
            fut = table.get(key)
            owner = fut is None
            if owner:
                fut = Future()
                table[key] = fut

        if not owner:
            _logger.debug("describe cache hit: %s", key)
            return fut.result()

        _logger.debug("describe cache miss: %s", key)
        try:
            value = load()
        except BaseException as exc:
            with self._lock:
                table.pop(key, None)
            fut.set_exception(exc)
            raise
        fut.set_result(value)
        return value
