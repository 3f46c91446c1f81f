import logging
from collections.abc import Callable
from typing import Generic, TypeVar

from ..exceptions import StaleMarkingError
from .constants import UNSET_SEQUENCE


__all__ = ["VersionedCache"]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class VersionedCache(Generic[T]):
    """
    Lazily rebuilt value keyed by a monotonic version token.

    The cached value is valid for every version up to and including the stamp.
    Reading with a newer live version rebuilds first; reading with an older
    one means the version source went backwards and raises StaleMarkingError.
    """

    def __init__(
        self,
        version_source: Callable[[], int],
        builder_func: Callable[[], T],
        name: str = "cache",
    ) -> None:
        self._version_source = version_source
        self._builder_func = builder_func
        self._name = name
        self._value: T | None = None
        self._has_value = False
        self.version = UNSET_SEQUENCE
        self.rebuild_count = 0

    def get(self) -> T:
        """Return the cached value, rebuilding it if the live version moved on."""
        live_version = self._version_source()
        if live_version < self.version:
            raise StaleMarkingError(
                f"Live version {live_version} is older than cached version {self.version}",
                self._name,
            )
        if not self._has_value or live_version > self.version:
            self._value = self._builder_func()
            self._has_value = True
            self.version = live_version
            self.rebuild_count += 1
            logger.debug("%s rebuilt at version %d", self._name, live_version)
        return self._value  # type: ignore[return-value]

    def invalidate(self) -> None:
        """Force a rebuild on the next read."""
        self._has_value = False
        self.version = UNSET_SEQUENCE
