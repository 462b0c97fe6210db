"""Three-slot ring of weeks around the one being viewed."""
from __future__ import annotations

from typing import List, Optional

from deepwork.domain.week import Week

_PREVIOUS, _CURRENT, _NEXT = -1, 0, 1
_SLOTS = 3


class WeekWindow:
    """Previous, current and next week held in a fixed ring.

    Shifting moves the ring's origin instead of relinking weeks; the slot
    that falls out of range is overwritten with the week the caller passes
    in. Staleness after a task mutation is resolved by the caller through
    ``set_current``/``set_next``/``set_previous``.
    """

    def __init__(self, current: Week, previous: Optional[Week] = None, next: Optional[Week] = None) -> None:
        self._slots: List[Optional[Week]] = [None] * _SLOTS
        self._origin = 0
        self._slots[self._index(_PREVIOUS)] = previous
        self._slots[self._index(_CURRENT)] = current
        self._slots[self._index(_NEXT)] = next

    def _index(self, offset: int) -> int:
        return (self._origin + offset) % _SLOTS

    @property
    def current(self) -> Week:
        return self._slots[self._index(_CURRENT)]

    @property
    def previous(self) -> Optional[Week]:
        return self._slots[self._index(_PREVIOUS)]

    @property
    def next(self) -> Optional[Week]:
        return self._slots[self._index(_NEXT)]

    def has_previous(self) -> bool:
        return self.previous is not None

    def has_next(self) -> bool:
        return self.next is not None

    def shift_forward(self, new_next: Optional[Week]) -> Week:
        """Advance one week; the old previous week is dropped. Returns the new current."""
        self._origin = self._index(_NEXT)
        self._slots[self._index(_NEXT)] = new_next
        return self.current

    def shift_backward(self, new_previous: Optional[Week]) -> Week:
        """Step back one week; the old next week is dropped. Returns the new current."""
        self._origin = self._index(_PREVIOUS)
        self._slots[self._index(_PREVIOUS)] = new_previous
        return self.current

    def set_current(self, week: Week) -> None:
        self._slots[self._index(_CURRENT)] = week

    def set_previous(self, week: Optional[Week]) -> None:
        self._slots[self._index(_PREVIOUS)] = week

    def set_next(self, week: Optional[Week]) -> None:
        self._slots[self._index(_NEXT)] = week

    def weeks(self) -> List[Optional[Week]]:
        return [self.previous, self.current, self.next]
