"""
Mesh controls: one adaptation strategy applied to the mesh per call.

The typical use in an AMR loop is::

    for ...:
        # computations ...
        while control.update(mesh):
            # update function spaces and grid functions
            if control.continue_():
                break
        if control.stop():
            break

See meshcontrol.loop for a ready-made version of this loop.
"""

import logging
from abc import ABC, abstractmethod
from enum import IntEnum

import numpy as np

from .action_info import NO_ACTION, STOP_ACTION, Action, ActionInfo, Info
from .exceptions import ConfigurationError
from .input_validation import (
    validate_error_vector,
    validate_non_negative_integer,
    validate_non_negative_number,
)
from .markers import MeshMarker
from .mc_types import ErrorEstimatorProtocol, FloatArray, MeshProtocol
from .parallel import global_max, global_sum
from .utils.constants import DEFAULT_DEREFINE_THRESHOLD, DEFAULT_NC_LIMIT


__all__ = [
    "DerefineOp",
    "MeshControl",
    "RebalanceControl",
    "RefinementControl",
    "RefinementMode",
    "ThresholdDerefineControl",
    "ThresholdDerefineControl2",
]

logger = logging.getLogger(__name__)


class MeshControl(ABC):
    """
    Base class for mesh adaptation strategies.

    The only state visible to the caller is the ActionInfo returned by the last
    apply() call, which the query methods read.
    """

    def __init__(self) -> None:
        self._mod: ActionInfo = NO_ACTION

    @abstractmethod
    def apply(self, mesh: MeshProtocol) -> ActionInfo:
        """Perform the mesh operation. Invoked by update()."""
        pass

    def update(self, mesh: MeshProtocol) -> bool:
        """Perform the mesh operation; True if spaces and grid functions need updating."""
        self._mod = self.apply(mesh)
        return self._mod.needs_update

    def reset(self) -> None:
        """Restore the state the control had right after construction."""
        self._mod = NO_ACTION

    def get_action_info(self) -> ActionInfo:
        """Return the ActionInfo generated by the last call to update()."""
        return self._mod

    def stop(self) -> bool:
        """Check if a stopping criterion was satisfied."""
        return self._mod.is_stop

    def again(self) -> bool:
        """Check if spaces need updating and update() must be called again."""
        return self._mod.is_again

    def continue_(self) -> bool:
        """Check if spaces need updating before computations continue on the new mesh."""
        return self._mod.is_continue

    def refined(self) -> bool:
        return self._mod.is_refine

    def derefined(self) -> bool:
        return self._mod.is_derefine

    def rebalanced(self) -> bool:
        return self._mod.is_rebalance


class RefinementMode(IntEnum):
    """Value of the nonconforming argument passed to the mesh refinement routine."""

    CONFORMING = -1  # conforming if the element types allow it
    NONCONFORMING = 1


class RefinementControl(MeshControl):
    """
    Refinement control using a MeshMarker.

    Asks the marker for the marked elements and hands them to the mesh's
    general refinement routine.
    """

    def __init__(self, marker: MeshMarker) -> None:
        super().__init__()
        self.marker = marker
        self.mode = RefinementMode.CONFORMING
        self.nc_limit = DEFAULT_NC_LIMIT

    def set_nonconforming_refinement(self, nc_limit: int = 0) -> None:
        """Use nonconforming refinement, if possible."""
        validate_non_negative_integer(nc_limit, "nc_limit")
        self.mode = RefinementMode.NONCONFORMING
        self.nc_limit = nc_limit

    def set_conforming_refinement(self, nc_limit: int = 0) -> None:
        """Use conforming refinement, if possible (this is the default)."""
        validate_non_negative_integer(nc_limit, "nc_limit")
        self.mode = RefinementMode.CONFORMING
        self.nc_limit = nc_limit

    def apply(self, mesh: MeshProtocol) -> ActionInfo:
        """STOP if a stopping criterion holds or nothing is marked, REFINE + CONTINUE otherwise."""
        marked_elements = self.marker.get_marked_elements()

        if self.marker.stopping_criterion_met():
            logger.debug("Refinement stopping criterion met")
            return STOP_ACTION

        if global_sum(mesh, len(marked_elements)) == 0:
            logger.debug("No elements marked for refinement")
            return STOP_ACTION

        mesh.general_refinement(marked_elements, int(self.mode), self.nc_limit)
        logger.info("Refined %d local elements", len(marked_elements))
        return ActionInfo(Action.CONTINUE, Info.REFINE)


class DerefineOp(IntEnum):
    """How the errors of sibling leaves are combined into their parent's error."""

    MIN = 0
    SUM = 1
    MAX = 2


_COMBINE_FUNCTIONS = {DerefineOp.MIN: np.min, DerefineOp.SUM: np.sum, DerefineOp.MAX: np.max}


class ThresholdDerefineControl(MeshControl):
    """
    De-refinement control using an error threshold.

    Groups of sibling leaves whose combined error is at most the threshold are
    merged back into their parent. Only nonconforming meshes keep the
    refinement hierarchy needed for this; on conforming meshes the control does
    nothing.
    """

    def __init__(self, estimator: ErrorEstimatorProtocol) -> None:
        super().__init__()
        self.estimator = estimator
        self.threshold = DEFAULT_DEREFINE_THRESHOLD
        self.nc_limit = DEFAULT_NC_LIMIT
        self.op = DerefineOp.SUM

    def set_threshold(self, threshold: float) -> None:
        validate_non_negative_number(threshold, "threshold")
        self.threshold = float(threshold)

    def set_op(self, op: int) -> None:
        try:
            self.op = DerefineOp(op)
        except ValueError as e:
            raise ConfigurationError(f"Invalid de-refinement op: {op}", "expected 0, 1 or 2") from e

    def set_nc_limit(self, nc_limit: int) -> None:
        validate_non_negative_integer(nc_limit, "nc_limit")
        self.nc_limit = nc_limit

    def _group_errors(self, mesh: MeshProtocol) -> FloatArray:
        local_errors = validate_error_vector(
            self.estimator.get_local_errors(), mesh.num_elements, type(self).__name__
        )
        combine = _COMBINE_FUNCTIONS[self.op]
        table = mesh.derefinement_table()
        return np.array(
            [combine(local_errors[list(group)]) for group in table],
            dtype=np.float64,
        )

    def _derefine(self, mesh: MeshProtocol, nc_limit: int) -> bool:
        """De-refine every group under the threshold; True if any worker changed its mesh."""
        group_errors = self._group_errors(mesh)
        local_marked = int(np.count_nonzero(group_errors <= self.threshold))

        if global_sum(mesh, local_marked) == 0:
            logger.debug("No groups under de-refinement threshold %.6e", self.threshold)
            return False

        changed = mesh.derefine_by_error(group_errors, self.threshold, nc_limit)
        derefined = bool(global_max(mesh, int(bool(changed))))
        if derefined:
            logger.info("De-refined up to %d local groups", local_marked)
        return derefined

    def apply(self, mesh: MeshProtocol) -> ActionInfo:
        """DEREFINE + CONTINUE if some elements were de-refined, NONE otherwise."""
        if not mesh.is_nonconforming:
            return NO_ACTION

        if self._derefine(mesh, self.nc_limit):
            return ActionInfo(Action.CONTINUE, Info.DEREFINE)
        return NO_ACTION


class ThresholdDerefineControl2(ThresholdDerefineControl):
    """
    De-refinement control that enforces the nc limit afterwards.

    Stage 0 performs every marked de-refinement ignoring the nc limit. If that
    leaves the mesh violating the limit, stage 1 refines the offending elements,
    one pass per call, until the limit holds again.
    """

    def __init__(self, estimator: ErrorEstimatorProtocol) -> None:
        super().__init__(estimator)
        self.stage = 0  # 0 - de-refine, 1 - limit NC level

    def reset(self) -> None:
        super().reset()
        self.stage = 0

    def _limit_violated(self, mesh: MeshProtocol) -> bool:
        if self.nc_limit <= 0:
            return False
        local_violations = len(mesh.nc_level_violations(self.nc_limit))
        return global_sum(mesh, local_violations) > 0

    def apply(self, mesh: MeshProtocol) -> ActionInfo:
        """AGAIN while the nc limit is being restored, DEREFINE + CONTINUE when done."""
        if not mesh.is_nonconforming:
            return NO_ACTION

        if self.stage == 0:
            if not self._derefine(mesh, 0):
                return NO_ACTION
            if self._limit_violated(mesh):
                self.stage = 1
                return ActionInfo(Action.AGAIN, Info.DEREFINE)
            return ActionInfo(Action.CONTINUE, Info.DEREFINE)

        violations = mesh.nc_level_violations(self.nc_limit)
        mesh.general_refinement(violations, int(RefinementMode.NONCONFORMING), 0)
        logger.info("Refined %d local elements to restore nc limit", len(violations))

        if self._limit_violated(mesh):
            return ActionInfo(Action.AGAIN, Info.REFINE)

        self.stage = 0
        return ActionInfo(Action.CONTINUE, Info.DEREFINE)


class RebalanceControl(MeshControl):
    """Rebalance a distributed mesh; do nothing on a serial one."""

    def apply(self, mesh: MeshProtocol) -> ActionInfo:
        """REBALANCE + CONTINUE on a distributed mesh, NONE otherwise."""
        if not mesh.is_distributed:
            return NO_ACTION

        mesh.rebalance()
        logger.info("Rebalanced distributed mesh")
        return ActionInfo(Action.CONTINUE, Info.REBALANCE)
