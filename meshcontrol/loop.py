"""
Caller-side adaptation loop built on MeshControl.update().
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

import numpy as np

from .action_info import NO_ACTION, ActionInfo, Info
from .controls import MeshControl
from .input_validation import validate_positive_integer
from .mc_types import IntArray, MeshProtocol
from .utils.constants import DEFAULT_MAX_ADAPT_ITERATIONS


__all__ = ["AdaptationHistory", "AdaptationRecord", "apply_control", "run_adaptive_loop"]

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[ActionInfo], None]


@dataclass(frozen=True)
class AdaptationRecord:
    """One update() call: the decision and the mesh it left behind."""

    iteration: int
    sequence: int
    num_elements: int
    action_info: ActionInfo


@dataclass
class AdaptationHistory:
    """Chronological log of every control update in an adaptation run."""

    records: list[AdaptationRecord] = field(default_factory=list)
    iteration: int = 0

    def record(self, mesh: MeshProtocol, action_info: ActionInfo) -> None:
        self.records.append(
            AdaptationRecord(self.iteration, mesh.sequence, mesh.num_elements, action_info)
        )

    def __len__(self) -> int:
        return len(self.records)

    def _count(self, info: Info) -> int:
        return sum(1 for r in self.records if r.action_info.info == info)

    @property
    def num_refinements(self) -> int:
        return self._count(Info.REFINE)

    @property
    def num_derefinements(self) -> int:
        return self._count(Info.DEREFINE)

    @property
    def num_rebalances(self) -> int:
        return self._count(Info.REBALANCE)

    @property
    def stopped(self) -> bool:
        return bool(self.records) and self.records[-1].action_info.is_stop

    @property
    def final_action(self) -> ActionInfo:
        return self.records[-1].action_info if self.records else NO_ACTION

    def as_arrays(self) -> dict[str, IntArray]:
        """Column view of the history, keyed by field name."""
        return {
            "iteration": np.array([r.iteration for r in self.records], dtype=np.int_),
            "sequence": np.array([r.sequence for r in self.records], dtype=np.int_),
            "num_elements": np.array([r.num_elements for r in self.records], dtype=np.int_),
            "code": np.array([r.action_info.code for r in self.records], dtype=np.int_),
        }


def apply_control(
    control: MeshControl,
    mesh: MeshProtocol,
    on_update: UpdateCallback | None = None,
    history: AdaptationHistory | None = None,
) -> ActionInfo:
    """
    Run control.update() until the caller can resume its computations.

    Args:
        control: Control (or control sequence) to apply
        mesh: The mesh being adapted
        on_update: Called after every update that requires rebuilding spaces
        history: Optional history receiving one record per update() call

    Returns:
        ActionInfo of the last update() call
    """
    while True:
        needs_update = control.update(mesh)
        mod = control.get_action_info()
        if history is not None:
            history.record(mesh, mod)

        if not needs_update:
            return mod

        if on_update is not None:
            on_update(mod)
        if control.continue_():
            return mod


def run_adaptive_loop(
    control: MeshControl,
    mesh: MeshProtocol,
    compute: Callable[[], None],
    on_update: UpdateCallback | None = None,
    max_iterations: int = DEFAULT_MAX_ADAPT_ITERATIONS,
) -> AdaptationHistory:
    """
    Alternate computations and mesh adaptation until a control requests STOP.

    Args:
        control: Control (or control sequence) deciding each adaptation
        mesh: The mesh being adapted
        compute: Solve/estimate step run on the current mesh each iteration
        on_update: Rebuilds spaces and grid functions after a mesh change
        max_iterations: Upper bound on the number of outer iterations

    Returns:
        AdaptationHistory of every update() call
    """
    validate_positive_integer(max_iterations, "max_iterations")
    history = AdaptationHistory()

    for iteration in range(max_iterations):
        history.iteration = iteration
        compute()
        mod = apply_control(control, mesh, on_update, history)
        logger.debug(
            "Iteration %d: %s, %d elements", iteration, mod, mesh.num_elements
        )
        if mod.is_stop:
            logger.info("Adaptation stopped after %d iterations", iteration + 1)
            break
    else:
        logger.info("Adaptation reached max_iterations=%d", max_iterations)

    return history
