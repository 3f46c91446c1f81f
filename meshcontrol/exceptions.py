import logging


# Library logger - no configuration, user controls output
logger = logging.getLogger(__name__)


class MeshControlBaseError(Exception):
    """
    Base class for all meshcontrol-specific errors.

    All meshcontrol exceptions inherit from this class, allowing users to catch
    any adaptation-control error with a single except clause.

    Args:
        message: The error message describing what went wrong
        context: Optional additional context about where the error occurred
    """

    def __init__(self, message: str, context: str | None = None) -> None:
        self.message = message
        self.context = context

        # Library logs at DEBUG level - user can promote if needed
        logger.debug("meshcontrol exception: %s", self._format_message())
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with optional context."""
        if self.context:
            return f"{self.message} (Context: {self.context})"
        return self.message


class ConfigurationError(MeshControlBaseError):
    """
    Raised when a marker or control is given an invalid configuration.

    Configuration is validated when it is set, never when a control is
    applied to a mesh.

    Examples:
        - Norm exponent that is zero, negative or NaN
        - Negative error goals or thresholds
        - Total error fraction outside [0, 1]
        - Unknown de-refinement combine operation
    """

    pass


class DataIntegrityError(MeshControlBaseError):
    """
    Raised when internal data corruption or inconsistency is detected.

    Examples:
        - Error vector length does not match the element count
        - NaN or infinite values in the error vector
        - An action/info value carrying info bits on NONE or STOP
    """

    pass


class StaleMarkingError(DataIntegrityError):
    """
    Raised when the mesh sequence is older than a marker's cached stamp.

    The mesh was rolled back behind the marker's back, so the cached marks no
    longer describe any live mesh. This is fatal for the adaptation loop.
    """

    pass
