from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

SelectionStrategy = Literal["first", "last"]


@dataclass
class DialoguePolicies:
    selection_strategy: SelectionStrategy = "first"
    headline_pause_seconds: float = 0.8
    restart_debounce_seconds: float = 0.3
    toast_ms: int = 2000

    def pick(self, candidates: list[int]) -> int | None:
        if not candidates:
            return None
        return candidates[-1] if self.selection_strategy == "last" else candidates[0]


__all__ = ["DialoguePolicies", "SelectionStrategy"]
