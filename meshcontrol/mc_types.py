# meshcontrol/mc_types.py
"""
Core type definitions and collaborator protocols for meshcontrol.

The mesh and the error estimators are owned by the surrounding finite element
library. meshcontrol only talks to them through the protocols below.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias, runtime_checkable

import numpy as np
from numpy.typing import NDArray


if TYPE_CHECKING:
    from .refinement import Refinement


# --- NUMERICAL TYPES ---
FloatArray: TypeAlias = NDArray[np.float64]
IntArray: TypeAlias = NDArray[np.int_]
ErrorVectorLike: TypeAlias = NDArray[np.floating[Any]] | Sequence[float]

ElementGroup: TypeAlias = Sequence[int]
"""Indices of the sibling leaves that de-refine into one parent."""


# --- EXTERNAL INTERFACE PROTOCOLS ---
class CommunicatorProtocol(Protocol):
    """The part of an mpi4py communicator used for global reductions."""

    def allreduce(self, sendobj: Any, op: Any = ...) -> Any: ...

    def Get_size(self) -> int: ...


class MeshProtocol(Protocol):
    """Protocol defining the mesh operations consumed by markers and controls."""

    comm: CommunicatorProtocol | None
    """Communicator of a distributed mesh; None for a serial mesh."""

    @property
    def sequence(self) -> int:
        """Monotonic counter bumped by every refinement, de-refinement or rebalance."""
        ...

    @property
    def num_elements(self) -> int:
        """Number of elements owned by this worker."""
        ...

    @property
    def is_distributed(self) -> bool: ...

    @property
    def is_nonconforming(self) -> bool: ...

    def general_refinement(
        self, refinements: Sequence[Refinement], nonconforming: int = -1, nc_limit: int = 0
    ) -> None:
        """Refine the listed elements; nonconforming: -1 conforming if possible, 1 nonconforming."""
        ...

    def derefinement_table(self) -> Sequence[ElementGroup]:
        """Return the sibling leaf groups that can be merged into their parents."""
        ...

    def derefine_by_error(
        self, group_errors: FloatArray, threshold: float, nc_limit: int = 0
    ) -> bool:
        """De-refine groups whose combined error is below threshold; True if anything changed."""
        ...

    def nc_level_violations(self, nc_limit: int) -> list[Refinement]:
        """Return the elements that must be refined to restore the nonconforming limit."""
        ...

    def rebalance(self) -> None: ...


class ErrorEstimatorProtocol(Protocol):
    """Protocol for estimators producing one error per local element."""

    def get_local_errors(self) -> ErrorVectorLike: ...


@runtime_checkable
class AnisotropicErrorEstimatorProtocol(Protocol):
    """Estimator that also suggests a refinement direction per element."""

    def get_local_errors(self) -> ErrorVectorLike: ...

    def get_anisotropic_flags(self) -> Sequence[int]: ...
