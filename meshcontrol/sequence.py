"""
Composition of mesh controls into a round-robin sequence.
"""

import logging
from collections.abc import Iterator
from typing import NoReturn

from .action_info import NO_ACTION, ActionInfo
from .controls import MeshControl
from .mc_types import MeshProtocol


__all__ = ["MeshControlSequence"]

logger = logging.getLogger(__name__)


class MeshControlSequence(MeshControl):
    """
    Sequence of mesh controls applied in turn.

    Each apply() resumes after the control that ran last and returns the
    ActionInfo of the first control that does something, so one control
    cannot starve the others. A control returning AGAIN is re-entered on the
    next call. The sequence owns its controls and cannot be copied.
    """

    def __init__(self) -> None:
        super().__init__()
        self.step = -1
        self._sequence: list[MeshControl] = []

    def __copy__(self) -> NoReturn:
        raise TypeError("MeshControlSequence owns its controls and cannot be copied")

    def __deepcopy__(self, memo: dict) -> NoReturn:
        raise TypeError("MeshControlSequence owns its controls and cannot be copied")

    def __len__(self) -> int:
        return len(self._sequence)

    def __iter__(self) -> Iterator[MeshControl]:
        return iter(self._sequence)

    def append(self, control: MeshControl) -> None:
        """Add a control to the end of the sequence, taking ownership of it."""
        if control is self:
            raise ValueError("A control sequence cannot contain itself")
        self._sequence.append(control)

    def get_sequence(self) -> tuple[MeshControl, ...]:
        return tuple(self._sequence)

    def clear(self) -> None:
        """Drop every owned control."""
        self._sequence.clear()
        self.step = -1

    def reset(self) -> None:
        super().reset()
        for control in self._sequence:
            control.reset()
        self.step = -1

    def apply(self, mesh: MeshProtocol) -> ActionInfo:
        """Return the ActionInfo of the first control that acts, NONE if none does."""
        size = len(self._sequence)
        if size == 0:
            return NO_ACTION

        for _ in range(size):
            self.step = (self.step + 1) % size
            control = self._sequence[self.step]
            control.update(mesh)
            mod = control.get_action_info()

            if mod == NO_ACTION:
                continue

            logger.debug("Control %d (%s) returned %s", self.step, type(control).__name__, mod)
            if mod.is_again:
                self.step -= 1
            return mod

        return NO_ACTION
