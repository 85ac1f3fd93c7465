"""
Scroll position memory for feed views
"""
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class ScrollPosition:
    x: float = 0.0
    y: float = 0.0


class ScrollPositionCache:
    """Last known scroll offset per view key

    Owned by the navigation layer and handed to each view; a view writes its
    position on teardown and reads it back on mount.
    """

    def __init__(self):
        self._positions: Dict[str, ScrollPosition] = {}

    def save(self, key: str, position: ScrollPosition) -> None:
        self._positions[key] = position

    def restore(self, key: str) -> Optional[ScrollPosition]:
        return self._positions.get(key)

    def clear(self, key: str) -> None:
        self._positions.pop(key, None)

    def clear_all(self) -> None:
        self._positions.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._positions

    def __len__(self) -> int:
        return len(self._positions)
