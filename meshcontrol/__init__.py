"""
meshcontrol: adaptive mesh refinement control

Decides, from per-element error estimates, whether to refine, de-refine or
rebalance a mesh, and tells the caller when function spaces and grid functions
have to be rebuilt.

Key Features:
    - Threshold marking from a global p-norm of the element errors
    - Controls for refinement, threshold de-refinement and rebalancing
    - Round-robin composition of controls into one sequence
    - Consistent decisions across MPI workers for distributed meshes

Quick Start:
    >>> import meshcontrol as mc
    >>> marker = mc.ThresholdMarker(mesh, estimator, total_error_fraction=0.7)
    >>> refiner = mc.RefinementControl(marker)
    >>> refiner.set_nonconforming_refinement()
    >>> control = mc.MeshControlSequence()
    >>> control.append(refiner)
    >>> control.append(mc.RebalanceControl())
    >>> while control.update(mesh):
    ...     space.update()
    ...     if control.continue_():
    ...         break

Logging:
    import logging
    logging.getLogger('meshcontrol').setLevel(logging.INFO)  # Mesh mutations
    logging.getLogger('meshcontrol').setLevel(logging.DEBUG)  # Thresholds and decisions
"""

from __future__ import annotations

import logging

# Import exceptions first - foundational error handling
from meshcontrol.exceptions import (
    ConfigurationError,
    DataIntegrityError,
    MeshControlBaseError,
    StaleMarkingError,
)

# Decisions and refinement records
from meshcontrol.action_info import NO_ACTION, STOP_ACTION, Action, ActionInfo, Info
from meshcontrol.refinement import Refinement, RefinementType

# Markers and controls
from meshcontrol.markers import MarkingResult, MeshMarker, ThresholdMarker
from meshcontrol.controls import (
    DerefineOp,
    MeshControl,
    RebalanceControl,
    RefinementControl,
    RefinementMode,
    ThresholdDerefineControl,
    ThresholdDerefineControl2,
)
from meshcontrol.sequence import MeshControlSequence

# Caller loop helpers
from meshcontrol.loop import AdaptationHistory, AdaptationRecord, apply_control, run_adaptive_loop


__version__ = "0.1.0"
__description__ = "Adaptive mesh refinement control"

__all__ = [
    "NO_ACTION",
    "STOP_ACTION",
    "Action",
    "ActionInfo",
    "AdaptationHistory",
    "AdaptationRecord",
    "ConfigurationError",
    "DataIntegrityError",
    "DerefineOp",
    "Info",
    "MarkingResult",
    "MeshControl",
    "MeshControlBaseError",
    "MeshControlSequence",
    "MeshMarker",
    "RebalanceControl",
    "Refinement",
    "RefinementControl",
    "RefinementMode",
    "RefinementType",
    "StaleMarkingError",
    "ThresholdDerefineControl",
    "ThresholdDerefineControl2",
    "ThresholdMarker",
    "apply_control",
    "run_adaptive_loop",
]

# Configure logging - no handlers, let user control output
logging.getLogger(__name__).addHandler(logging.NullHandler())
