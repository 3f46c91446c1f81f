"""
The two-part decision returned by every mesh control.

The action tells the caller what to do next, the info tells it what happened
to the mesh. Info is only meaningful when the caller has to update its
function spaces, i.e. for CONTINUE and AGAIN.
"""

from dataclasses import dataclass
from enum import IntEnum

from .exceptions import DataIntegrityError


__all__ = ["NO_ACTION", "STOP_ACTION", "Action", "ActionInfo", "Info"]


class Action(IntEnum):
    """What the caller must do after a control was applied."""

    NONE = 0  # mesh untouched, carry on computing
    CONTINUE = 1  # update spaces and grid functions, then carry on computing
    STOP = 2  # a stopping criterion was satisfied
    AGAIN = 3  # update spaces and grid functions, then call update() again


class Info(IntEnum):
    """What happened to the mesh."""

    REFINE = 4
    DEREFINE = 8
    REBALANCE = 12


_UPDATE_BIT = 1
_ACTION_MASK = 3
_INFO_MASK = ~3


@dataclass(frozen=True)
class ActionInfo:
    """Immutable action/info pair produced by MeshControl.apply()."""

    action: Action = Action.NONE
    info: Info | None = None

    def __post_init__(self) -> None:
        if self.info is not None and self.action in (Action.NONE, Action.STOP):
            raise DataIntegrityError(
                f"Info {self.info.name} cannot accompany action {self.action.name}",
                "ActionInfo construction",
            )

    @classmethod
    def from_code(cls, code: int) -> "ActionInfo":
        """Unpack the integer form produced by the code property."""
        action = Action(code & _ACTION_MASK)
        info_bits = code & _INFO_MASK
        try:
            info = Info(info_bits) if info_bits else None
        except ValueError as e:
            raise DataIntegrityError(
                f"Unknown info bits {info_bits} in action code {code}", "expected 4, 8 or 12"
            ) from e
        return cls(action, info)

    @property
    def code(self) -> int:
        """Packed integer form: action in the low two bits, info above them."""
        return int(self.action) | (int(self.info) if self.info is not None else 0)

    @property
    def needs_update(self) -> bool:
        """True if spaces and grid functions have to be rebuilt."""
        return bool(self.action & _UPDATE_BIT)

    @property
    def is_stop(self) -> bool:
        return self.action == Action.STOP

    @property
    def is_continue(self) -> bool:
        return self.action == Action.CONTINUE

    @property
    def is_again(self) -> bool:
        return self.action == Action.AGAIN

    @property
    def is_refine(self) -> bool:
        return self.info == Info.REFINE

    @property
    def is_derefine(self) -> bool:
        return self.info == Info.DEREFINE

    @property
    def is_rebalance(self) -> bool:
        return self.info == Info.REBALANCE

    def __str__(self) -> str:
        if self.info is None:
            return self.action.name
        return f"{self.action.name}+{self.info.name}"


NO_ACTION = ActionInfo(Action.NONE)
STOP_ACTION = ActionInfo(Action.STOP)
