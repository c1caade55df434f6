"""Duplicate detection for new access-code submissions.

A submission is a likely duplicate when the same code text already exists
within :data:`DUPLICATE_RADIUS_METERS` of the submitted point.  The check
and the following insert are separate store calls, so two devices submitting
the same code at the same moment can both pass.
"""

from enum import StrEnum

from loguru import logger

from toilet_spotter.lib.store import DUPLICATE_RADIUS_METERS, BaseCodeStore, RemoteUnavailableError


class DuplicateCheckMode(StrEnum):
    """What to do when the store cannot answer the duplicate check."""

    # Treat the submission as unique and let the add go through.
    ADVISORY = "advisory"
    # Propagate the store failure so the add fails.
    STRICT = "strict"


class DuplicateGuard:
    """Checks candidate codes against nearby existing submissions."""

    def __init__(
        self,
        store: BaseCodeStore,
        mode: DuplicateCheckMode = DuplicateCheckMode.ADVISORY,
        radius_meters: float = DUPLICATE_RADIUS_METERS,
    ) -> None:
        self._store = store
        self._mode = DuplicateCheckMode(mode)
        self._radius_meters = radius_meters

    @property
    def mode(self) -> DuplicateCheckMode:
        return self._mode

    async def is_duplicate(self, code: str, latitude: float, longitude: float) -> bool:
        """Whether ``code`` already exists near the given point.

        Args:
            code: Candidate code text.
            latitude: Submission latitude.
            longitude: Submission longitude.

        Returns:
            True if an equivalent record exists within the duplicate radius.

        Raises:
            RemoteUnavailableError: In strict mode, when the store query fails.
        """
        try:
            return await self._store.find_duplicate_within_radius(code, latitude, longitude, self._radius_meters)
        except RemoteUnavailableError as e:
            if self._mode is DuplicateCheckMode.STRICT:
                raise
            logger.warning(f"Duplicate check failed, treating code as unique: {e}")
            return False
