from __future__ import annotations

from typing import Dict, Optional


class TranspositionCache:
    """Position hash -> score memo for a single search call.

    Scores are from the perspective of the side the search runs for. There
    is no eviction and no collision detection: two placements with the same
    hash share one score.
    """

    def __init__(self) -> None:
        self._data: Dict[int, int] = {}
        self.probes = 0
        self.hits = 0
        self.stores = 0

    def get(self, key: int) -> Optional[int]:
        self.probes += 1
        score = self._data.get(key)
        if score is not None:
            self.hits += 1
        return score

    def set(self, key: int, score: int) -> None:
        self.stores += 1
        self._data[key] = score

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: int) -> bool:
        return key in self._data
