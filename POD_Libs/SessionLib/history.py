"""
Bounded undo/redo history of EditorState snapshots.

Snapshots are deep copies taken on push and handed out as deep copies,
so nothing outside the history can alter an entry once recorded.
"""

import copy
import logging
from typing import List, Optional

from POD_Libs.constants import HISTORY_CAP
from POD_Libs.SessionLib.state import EditorState

logger = logging.getLogger(__name__)


class History:
    """
    Linear history with a cursor.

    Pushing after an undo discards the redo tail. When the number of
    entries exceeds ``cap`` the oldest entry is evicted.
    """

    def __init__(self, initial: EditorState, cap: int = HISTORY_CAP) -> None:
        if cap < 1:
            raise ValueError(f"History cap must be at least 1, got {cap}")
        self.cap = cap
        self._entries: List[EditorState] = [copy.deepcopy(initial)]
        self._index = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    def current(self) -> EditorState:
        return copy.deepcopy(self._entries[self._index])

    def push(self, state: EditorState) -> None:
        del self._entries[self._index + 1:]
        self._entries.append(copy.deepcopy(state))
        if len(self._entries) > self.cap:
            evicted = len(self._entries) - self.cap
            del self._entries[:evicted]
            logger.debug("History full, evicted %d oldest entries", evicted)
        self._index = len(self._entries) - 1

    def can_undo(self) -> bool:
        return self._index > 0

    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    def undo(self) -> Optional[EditorState]:
        if not self.can_undo():
            return None
        self._index -= 1
        return self.current()

    def redo(self) -> Optional[EditorState]:
        if not self.can_redo():
            return None
        self._index += 1
        return self.current()

    def reset(self) -> EditorState:
        """Return to the first recorded snapshot, dropping everything after it."""
        del self._entries[1:]
        self._index = 0
        return self.current()
