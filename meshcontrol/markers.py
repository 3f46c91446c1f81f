"""
Mesh markers: turn per-element error estimates into refinement marks.

A marker caches its marks against the mesh sequence. The marks stay valid until
the mesh is modified, at which point the next read recomputes them from a fresh
error vector.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from .input_validation import (
    validate_error_vector,
    validate_flag_vector,
    validate_fraction,
    validate_non_negative_number,
    validate_norm_exponent,
    validate_positive_integer,
)
from .mc_types import (
    AnisotropicErrorEstimatorProtocol,
    ErrorEstimatorProtocol,
    FloatArray,
    MeshProtocol,
)
from .parallel import global_max, global_sum
from .refinement import Refinement, RefinementType
from .utils.constants import (
    DEFAULT_LOCAL_ERROR_GOAL,
    DEFAULT_MAX_ELEMENTS,
    DEFAULT_TOTAL_ERROR_FRACTION,
    DEFAULT_TOTAL_ERROR_GOAL,
    DEFAULT_TOTAL_NORM_P,
)
from .utils.versioned_cache import VersionedCache


__all__ = ["MarkingResult", "MeshMarker", "ThresholdMarker", "compute_total_error"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkingResult:
    """Everything derived from one error vector by one marking pass."""

    marked_elements: tuple[Refinement, ...]
    threshold: float
    total_error: float
    num_elements: int
    num_marked: int


class MeshMarker(ABC):
    """Base class for markers producing a list of elements to refine."""

    def __init__(self, mesh: MeshProtocol) -> None:
        self.mesh = mesh
        self.num_marked_elements = 0
        self._cache: VersionedCache[MarkingResult] = VersionedCache(
            lambda: self.mesh.sequence, self._run_marking, name=type(self).__name__
        )

    @abstractmethod
    def _mark_elements(self) -> MarkingResult:
        """Compute the marks for the current mesh."""
        pass

    def _run_marking(self) -> MarkingResult:
        result = self._mark_elements()
        self.num_marked_elements += result.num_marked
        return result

    def get_marked_elements(self) -> tuple[Refinement, ...]:
        """Return the marks for the live mesh, recomputing them if the mesh changed."""
        return self._cache.get().marked_elements

    def stopping_criterion_met(self) -> bool:
        """Check whether the latest marking satisfied a stopping criterion."""
        return False

    def reset(self) -> None:
        """Discard cached marks so the next read recomputes on the same mesh."""
        self._cache.invalidate()

    @property
    def current_sequence(self) -> int:
        """Mesh sequence the cached marks were computed for."""
        return self._cache.version

    @property
    def num_recomputations(self) -> int:
        return self._cache.rebuild_count

    @property
    def marking(self) -> MarkingResult:
        """Return the full result of the marking pass for the live mesh."""
        return self._cache.get()


def compute_total_error(mesh: MeshProtocol, local_errors: FloatArray, norm_p: float) -> float:
    """
    Global discrete p-norm of the local errors; the maximum when p is infinite.

    Finite norms are taken over errors scaled by the global maximum, so large
    errors or large exponents do not overflow.
    """
    local_abs = np.abs(local_errors)
    local_max = float(np.max(local_abs)) if local_abs.size > 0 else 0.0
    max_error = float(global_max(mesh, local_max))
    if math.isinf(norm_p) or max_error == 0.0:
        return max_error

    local_sum = float(np.sum((local_abs / max_error) ** norm_p))
    return max_error * float(global_sum(mesh, local_sum)) ** (1.0 / norm_p)


class ThresholdMarker(MeshMarker):
    """
    Marker comparing each element error against a global threshold.

    All elements i with local_err_i > threshold are marked, where

        threshold = max(total_err * total_fraction * num_elements**(-1/p), local_err_goal)

    and total_err is the discrete p-norm of the local errors (the maximum error
    for p = inf, in which case the num_elements factor drops out).

    Args:
        mesh: The mesh whose elements are marked
        estimator: Source of the local error vector. If it also provides
            anisotropic flags, marks carry the suggested refinement direction.
        total_norm_p: Exponent p of the discrete norm, in (0, inf]
        total_error_goal: Stopping criterion, stop when total_err <= goal
        total_error_fraction: Weight of the global term in the threshold, in [0, 1]
        local_error_goal: Lower bound for the threshold
        max_elements: Stopping criterion, stop once the mesh has this many elements
    """

    def __init__(
        self,
        mesh: MeshProtocol,
        estimator: ErrorEstimatorProtocol,
        total_norm_p: float = DEFAULT_TOTAL_NORM_P,
        total_error_goal: float = DEFAULT_TOTAL_ERROR_GOAL,
        total_error_fraction: float = DEFAULT_TOTAL_ERROR_FRACTION,
        local_error_goal: float = DEFAULT_LOCAL_ERROR_GOAL,
        max_elements: int = DEFAULT_MAX_ELEMENTS,
    ) -> None:
        super().__init__(mesh)
        self.estimator = estimator
        self.aniso_estimator = (
            estimator if isinstance(estimator, AnisotropicErrorEstimatorProtocol) else None
        )

        self.set_total_error_norm_p(total_norm_p)
        self.set_total_error_goal(total_error_goal)
        self.set_total_error_fraction(total_error_fraction)
        self.set_local_error_goal(local_error_goal)
        self.set_max_elements(max_elements)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_total_error_norm_p(self, norm_p: float = DEFAULT_TOTAL_NORM_P) -> None:
        validate_norm_exponent(norm_p)
        self.total_norm_p = float(norm_p)
        self._cache.invalidate()

    def set_total_error_goal(self, err_goal: float) -> None:
        validate_non_negative_number(err_goal, "total_error_goal")
        self.total_error_goal = float(err_goal)
        self._cache.invalidate()

    def set_total_error_fraction(self, fraction: float) -> None:
        """Set the fraction; zero makes the threshold equal to the local error goal."""
        validate_fraction(fraction, "total_error_fraction")
        self.total_error_fraction = float(fraction)
        self._cache.invalidate()

    def set_local_error_goal(self, err_goal: float) -> None:
        validate_non_negative_number(err_goal, "local_error_goal")
        self.local_error_goal = float(err_goal)
        self._cache.invalidate()

    def set_max_elements(self, max_elements: int) -> None:
        validate_positive_integer(max_elements, "max_elements")
        self.max_elements = int(max_elements)
        self._cache.invalidate()

    # ------------------------------------------------------------------
    # Marking
    # ------------------------------------------------------------------

    def _compute_threshold(self, total_error: float, num_elements: int) -> float:
        if self.total_error_fraction == 0.0:
            return self.local_error_goal
        if math.isinf(self.total_norm_p):
            scaling = 1.0
        elif num_elements > 0:
            scaling = num_elements ** (-1.0 / self.total_norm_p)
        else:
            scaling = 0.0
        return max(total_error * self.total_error_fraction * scaling, self.local_error_goal)

    def _direction_flags(self, num_elements: int) -> np.ndarray | None:
        if self.aniso_estimator is None:
            return None
        flags = self.aniso_estimator.get_anisotropic_flags()
        if len(flags) == 0:
            return None
        return validate_flag_vector(flags, num_elements, "ThresholdMarker")

    def _mark_elements(self) -> MarkingResult:
        local_ne = self.mesh.num_elements
        local_errors = validate_error_vector(
            self.estimator.get_local_errors(), local_ne, "ThresholdMarker"
        )

        num_elements = int(global_sum(self.mesh, local_ne))
        total_error = compute_total_error(self.mesh, local_errors, self.total_norm_p)
        threshold = self._compute_threshold(total_error, num_elements)

        marked_indices = np.flatnonzero(local_errors > threshold)
        flags = self._direction_flags(local_ne)
        if flags is None:
            marked = tuple(Refinement(int(i)) for i in marked_indices)
        else:
            marked = tuple(
                Refinement(int(i), RefinementType(int(flags[i]))) for i in marked_indices
            )

        num_marked = int(global_sum(self.mesh, len(marked)))
        logger.debug(
            "Marked %d of %d elements: total_err=%.6e threshold=%.6e",
            num_marked,
            num_elements,
            total_error,
            threshold,
        )
        return MarkingResult(marked, threshold, total_error, num_elements, num_marked)

    def stopping_criterion_met(self) -> bool:
        """Check total error goal and element budget against the current marking."""
        result = self._cache.get()
        return (
            result.total_error <= self.total_error_goal
            or result.num_elements >= self.max_elements
        )

    def get_threshold(self) -> float:
        """Return the threshold used by the latest marking."""
        return self._cache.get().threshold

    def get_total_error(self) -> float:
        return self._cache.get().total_error
