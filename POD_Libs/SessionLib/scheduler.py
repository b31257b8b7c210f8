"""
Coalescing render scheduler.

Bursts of parameter changes (slider drags) should not each trigger a full
re-render. RenderScheduler runs renders on a single worker thread; a
request issued while a render is in flight replaces any request still
waiting, so intermediate states are skipped and the last requested state
is always rendered.

Example:
    >>> scheduler = RenderScheduler(session.render_state, on_result=show)
    >>> for value in range(0, 100, 5):
    ...     scheduler.request(state_with_brightness(value))
    >>> scheduler.wait_idle()
"""

import concurrent.futures
import logging
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

_NOTHING = object()


class RenderScheduler:
    """
    Single-worker scheduler that keeps at most one pending request.

    Args:
        render_fn: Callable that renders a request and returns a result
        on_result: Called with (request, result) after each render
        on_error: Called with (request, exception) when rendering fails.
                  Without it the error is logged and the worker continues.
    """

    def __init__(
        self,
        render_fn: Callable[[Any], Any],
        on_result: Optional[Callable[[Any, Any], None]] = None,
        on_error: Optional[Callable[[Any, BaseException], None]] = None,
    ) -> None:
        self._render_fn = render_fn
        self._on_result = on_result
        self._on_error = on_error
        self._executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="render")
        self._lock = threading.Lock()
        self._idle = threading.Event()
        self._idle.set()
        self._pending: Any = _NOTHING
        self._running = False
        self._closed = False
        self.renders = 0
        self.skipped = 0

    def request(self, payload: Any) -> None:
        """Schedule payload for rendering, replacing any request not yet started."""
        with self._lock:
            if self._closed:
                raise RuntimeError("RenderScheduler is closed")
            if self._pending is not _NOTHING:
                self.skipped += 1
                logger.debug("Coalesced render request (%d skipped)", self.skipped)
            self._pending = payload
            self._idle.clear()
            if not self._running:
                self._running = True
                self._executor.submit(self._drain)

    def _drain(self) -> None:
        while True:
            with self._lock:
                payload = self._pending
                self._pending = _NOTHING
                if payload is _NOTHING:
                    self._running = False
                    self._idle.set()
                    return

            try:
                result = self._render_fn(payload)
                self.renders += 1
                if self._on_result is not None:
                    self._on_result(payload, result)
            except Exception as e:
                if self._on_error is None:
                    logger.exception("Render failed: %s", e)
                    continue
                try:
                    self._on_error(payload, e)
                except Exception:
                    # A failing callback must not stop the worker
                    logger.exception("Render error callback failed for %r", payload)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no render is running or pending. Returns False on timeout."""
        return self._idle.wait(timeout)

    def close(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
            self._pending = _NOTHING
        self._executor.shutdown(wait=wait)
