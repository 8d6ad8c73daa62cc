from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from src.engine.board import Board
from src.engine.move import Color
from src.search.service import SearchResult, SearchService


logger = logging.getLogger(__name__)


# (generation, result) -> None
ResultCallback = Callable[[int, SearchResult], None]


class BackgroundSearch:
    """Runs one search at a time on a daemon thread.

    Notes:
    - The search works on a clone taken when ``start`` is called, so the
      live board is never touched from the worker.
    - Every ``start`` and ``cancel`` bumps a generation id. A worker whose
      generation is no longer current drops its result instead of calling
      back; callbacks must re-check ``is_current`` under the lock that
      guards the live board before applying anything.
    """

    def __init__(self, service: Optional[SearchService] = None) -> None:
        self._service = service or SearchService()
        self._lock = threading.Lock()
        self._gen = 0
        self._running = False
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    @property
    def generation(self) -> int:
        with self._lock:
            return self._gen

    def is_current(self, gen: int) -> bool:
        with self._lock:
            return gen == self._gen

    def start(self, board: Board, color: Color, depth: int, on_result: ResultCallback) -> int:
        """Search ``board`` for ``color`` in the background; return the generation id."""
        snapshot = board.clone()
        with self._lock:
            self._gen += 1
            gen = self._gen
            self._running = True

        def worker() -> None:
            logger.debug("search started", extra={"generation": gen, "depth": depth})
            try:
                res = self._service.search(snapshot, color, depth)
                if not self.is_current(gen):
                    logger.info("discarding stale search result", extra={"generation": gen})
                    return
                on_result(gen, res)
            finally:
                with self._lock:
                    if gen == self._gen:
                        self._running = False

        self._thread = threading.Thread(target=worker, name=f"ai-search-{gen}", daemon=True)
        self._thread.start()
        return gen

    def cancel(self) -> None:
        """Invalidate any in-flight search; its result will be discarded."""
        with self._lock:
            if self._running:
                logger.debug("search cancelled", extra={"generation": self._gen})
            self._gen += 1
            self._running = False

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
