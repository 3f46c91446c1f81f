import logging
import math
from typing import Any

import numpy as np

from .exceptions import ConfigurationError, DataIntegrityError
from .mc_types import ErrorVectorLike, FloatArray, IntArray


logger = logging.getLogger(__name__)


# ============================================================================
# CONFIGURATION VALIDATION - Used by marker and control setters
# ============================================================================


def _validate_real(value: Any, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int | float | np.floating | np.integer):
        raise ConfigurationError(f"{name} must be numeric, got {type(value)}")
    if math.isnan(value):
        raise ConfigurationError(f"{name} cannot be NaN")


def validate_non_negative_number(value: Any, name: str) -> None:
    """Validate a finite number >= 0."""
    _validate_real(value, name)
    if math.isinf(value):
        raise ConfigurationError(f"{name} cannot be infinite, got {value}")
    if value < 0:
        raise ConfigurationError(f"{name} must be non-negative, got {value}")


def validate_fraction(value: Any, name: str) -> None:
    """Validate a number in the closed interval [0, 1]."""
    _validate_real(value, name)
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be in [0, 1], got {value}")


def validate_norm_exponent(value: Any, name: str = "total_norm_p") -> None:
    """Validate a p-norm exponent in (0, inf]."""
    _validate_real(value, name)
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive or infinity, got {value}")


def validate_positive_integer(value: Any, name: str, min_value: int = 1) -> None:
    """Validate an integer >= min_value."""
    if isinstance(value, bool) or not isinstance(value, int | np.integer):
        raise ConfigurationError(f"{name} must be integer, got {type(value)}")
    if value < min_value:
        raise ConfigurationError(f"{name} must be >= {min_value}, got {value}")


def validate_non_negative_integer(value: Any, name: str) -> None:
    validate_positive_integer(value, name, min_value=0)


# ============================================================================
# DATA VALIDATION - Used when reading collaborator output
# ============================================================================


def validate_error_vector(
    errors: ErrorVectorLike, expected_size: int, context: str = "validation"
) -> FloatArray:
    """Convert an estimator's error vector to a float array and check its integrity."""
    error_array = np.asarray(errors, dtype=np.float64).reshape(-1)

    if error_array.size != expected_size:
        raise DataIntegrityError(
            f"Error vector has {error_array.size} entries, expected {expected_size}",
            f"Size mismatch in {context}",
        )
    if np.any(np.isnan(error_array)) or np.any(np.isinf(error_array)):
        raise DataIntegrityError(
            "Error vector contains NaN or Inf values", f"Numerical corruption in {context}"
        )

    return error_array


def validate_flag_vector(flags: Any, expected_size: int, context: str = "validation") -> IntArray:
    """Convert anisotropic refinement flags to an integer array of one entry per element."""
    flag_array = np.asarray(flags, dtype=np.int_).reshape(-1)

    if flag_array.size != expected_size:
        raise DataIntegrityError(
            f"Anisotropic flag vector has {flag_array.size} entries, expected {expected_size}",
            f"Size mismatch in {context}",
        )

    return flag_array
