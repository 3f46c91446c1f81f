import sys
from typing import TypeAlias


_Tolerance: TypeAlias = float
_Factor: TypeAlias = float

# Threshold marker defaults
DEFAULT_TOTAL_NORM_P: float = float("inf")
DEFAULT_TOTAL_ERROR_GOAL: _Tolerance = 0.0
DEFAULT_TOTAL_ERROR_FRACTION: _Factor = 0.5
DEFAULT_LOCAL_ERROR_GOAL: _Tolerance = 0.0
DEFAULT_MAX_ELEMENTS: int = sys.maxsize

# De-refinement defaults
DEFAULT_DEREFINE_THRESHOLD: _Tolerance = 0.0
DEFAULT_NC_LIMIT: int = 0  # 0 = no limit on the nonconforming level

# Version stamp that is older than any mesh sequence
UNSET_SEQUENCE: int = -1

# Caller loop defaults
DEFAULT_MAX_ADAPT_ITERATIONS: int = 100
