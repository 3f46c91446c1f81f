"""
Refinement records passed from markers to the mesh refinement routine.
"""

from dataclasses import dataclass
from enum import IntFlag


__all__ = ["Refinement", "RefinementType"]


class RefinementType(IntFlag):
    """Directions in which an element is split."""

    X = 1
    Y = 2
    Z = 4
    XY = X | Y
    XZ = X | Z
    YZ = Y | Z
    XYZ = X | Y | Z  # undirected, i.e. isotropic


@dataclass(frozen=True)
class Refinement:
    """One element scheduled for refinement and the direction(s) to split it in."""

    index: int
    ref_type: RefinementType = RefinementType.XYZ

    @property
    def is_isotropic(self) -> bool:
        return self.ref_type == RefinementType.XYZ
