"""Cursor for stepping through a recorded training trace."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from ..core.types import Step


class StepCursor:
    """Bidirectional position over an immutable step sequence.

    The cursor starts before the first step (``position == -1``).
    """

    def __init__(self, steps: Sequence[Step] = ()) -> None:
        self._steps: Tuple[Step, ...] = tuple(steps)
        self.position = -1

    def __len__(self) -> int:
        return len(self._steps)

    @property
    def at_end(self) -> bool:
        return self.position >= len(self._steps) - 1

    def current(self) -> Optional[Step]:
        if 0 <= self.position < len(self._steps):
            return self._steps[self.position]
        return None

    def next(self) -> Optional[Step]:
        if self.at_end:
            return None
        self.position += 1
        return self.current()

    def previous(self) -> Optional[Step]:
        if self.position <= 0:
            return None
        self.position -= 1
        return self.current()

    def reset(self, steps: Sequence[Step] | None = None) -> None:
        if steps is not None:
            self._steps = tuple(steps)
        self.position = -1


__all__ = ["StepCursor"]
