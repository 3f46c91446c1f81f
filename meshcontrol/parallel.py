"""
Global reductions for meshes distributed across MPI workers.

Every worker runs the same sequence of marker and control calls. Decisions that
have to agree across workers are reduced here before they are compared.
"""

import logging
from typing import Any, TypeVar

from .mc_types import MeshProtocol


__all__ = ["global_max", "global_reduction", "global_sum"]

logger = logging.getLogger(__name__)

T = TypeVar("T", int, float)

_SUPPORTED_OPERATIONS = ("sum", "max", "min")


def _mpi_operation(operation: str) -> Any:
    from mpi4py import MPI

    return {"sum": MPI.SUM, "max": MPI.MAX, "min": MPI.MIN}[operation]


def global_reduction(mesh: MeshProtocol, local_value: T, operation: str = "sum") -> T:
    """Perform a global reduction over the workers sharing the mesh."""
    if operation not in _SUPPORTED_OPERATIONS:
        raise ValueError(f"Unsupported reduction operation: {operation}")

    comm = getattr(mesh, "comm", None)
    if comm is None:
        return local_value

    result = comm.allreduce(local_value, op=_mpi_operation(operation))
    logger.debug("global %s: local=%s global=%s", operation, local_value, result)
    return result


def global_sum(mesh: MeshProtocol, local_value: T) -> T:
    return global_reduction(mesh, local_value, "sum")


def global_max(mesh: MeshProtocol, local_value: T) -> T:
    return global_reduction(mesh, local_value, "max")
