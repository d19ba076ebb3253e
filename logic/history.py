"""
Undo/redo history for mind map edits.

Each history is a pair of snapshot stacks. Recording a new state clears the
redo stack; undo and redo move the current state between the two.
"""

import copy
import threading
from collections import OrderedDict
from typing import Any, List, Optional, Tuple

from .config import MAX_HISTORY, MAX_TRACKED_HISTORIES


class EditHistory:
    """Bounded undo/redo stacks of map snapshots.

    Attributes:
        max_depth: Maximum number of undo steps kept. Oldest steps are
            dropped first.
    """

    def __init__(self, max_depth: int = MAX_HISTORY):
        self.max_depth = max_depth
        self._past: List[Any] = []
        self._future: List[Any] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    def record(self, snapshot: Any):
        """Push the state that existed before an edit.

        Args:
            snapshot: State prior to the edit.
        """
        self._past.append(copy.deepcopy(snapshot))
        if len(self._past) > self.max_depth:
            del self._past[0]
        self._future.clear()

    def undo(self, current: Any) -> Any:
        """Step back one edit.

        Args:
            current: The state being replaced, kept for redo.

        Returns:
            The previous state.

        Raises:
            IndexError: If there is nothing to undo.
        """
        if not self._past:
            raise IndexError("Nothing to undo")
        previous = self._past.pop()
        self._future.insert(0, copy.deepcopy(current))
        return previous

    def redo(self, current: Any) -> Any:
        """Re-apply the most recently undone edit.

        Raises:
            IndexError: If there is nothing to redo.
        """
        if not self._future:
            raise IndexError("Nothing to redo")
        following = self._future.pop(0)
        self._past.append(copy.deepcopy(current))
        return following

    def clear(self):
        self._past.clear()
        self._future.clear()


class HistoryRegistry:
    """In-memory histories keyed by (user id, map id).

    At most ``max_maps`` histories are kept; the least recently used one is
    dropped when a new map starts recording. Access is guarded by a lock
    because route handlers run on a thread pool.
    """

    def __init__(self, max_depth: int = MAX_HISTORY, max_maps: int = MAX_TRACKED_HISTORIES):
        self.max_depth = max_depth
        self.max_maps = max_maps
        self._histories: "OrderedDict[Tuple[str, str], EditHistory]" = OrderedDict()
        self._lock = threading.Lock()

    def __contains__(self, key: Tuple[str, str]) -> bool:
        with self._lock:
            return key in self._histories

    def __len__(self) -> int:
        with self._lock:
            return len(self._histories)

    def get(self, user_id: str, map_id: str) -> EditHistory:
        key = (user_id, map_id)
        with self._lock:
            history = self._histories.get(key)
            if history is None:
                history = EditHistory(self.max_depth)
                self._histories[key] = history
                if len(self._histories) > self.max_maps:
                    self._histories.popitem(last=False)
            else:
                self._histories.move_to_end(key)
            return history

    def discard(self, user_id: str, map_id: str):
        with self._lock:
            self._histories.pop((user_id, map_id), None)

    def clear(self):
        with self._lock:
            self._histories.clear()


# Global instance
_registry: Optional[HistoryRegistry] = None


def get_history_registry() -> HistoryRegistry:
    """Get the global history registry instance.

    Returns:
        The global HistoryRegistry instance.
    """
    global _registry
    if _registry is None:
        _registry = HistoryRegistry()
    return _registry
