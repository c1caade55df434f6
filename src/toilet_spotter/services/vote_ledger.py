"""Per-device voting on access codes.

Each (code, device) pair is in one of three states: no vote, upvoted or
downvoted.  A first vote inserts a row, a repeated vote is a no-op and an
opposite vote flips the stored value.  After any change the store rewrites
the code's score from the sum of its votes in a single operation.
"""

from loguru import logger

from toilet_spotter.lib.store import BaseCodeStore, RemoteUnavailableError, VoteRecord

VALID_VOTE_VALUES = (1, -1)


class SelfVoteError(Exception):
    """Raised when a device votes on a code it submitted itself."""

    def __init__(self, code_id: str) -> None:
        self.code_id = code_id
        super().__init__(f"Cannot vote on your own submission ({code_id})")


class VoteFailedError(Exception):
    """Raised when a vote could not be recorded for any store-side reason."""

    def __init__(self, code_id: str, message: str) -> None:
        self.code_id = code_id
        self.message = message
        super().__init__(f"Vote on {code_id} failed: {message}")


class VoteLedger:
    """Records votes against a code store, one per device and code."""

    def __init__(self, store: BaseCodeStore) -> None:
        self._store = store

    async def record_vote(self, code_id: str, device_id: str, value: int) -> int:
        """Apply a vote and return the score change it causes.

        Args:
            code_id: Target code identifier.
            device_id: Voting device identifier.
            value: 1 for an upvote, -1 for a downvote.

        Returns:
            The resulting change of the code's score: ``value`` for a first
            vote, ``2 * value`` for a flip and 0 for a repeated vote.

        Raises:
            ValueError: If ``value`` is not 1 or -1.
            SelfVoteError: If the device submitted the code.
            VoteFailedError: If the code does not exist or the store fails.
        """
        if value not in VALID_VOTE_VALUES:
            msg = f"vote value must be 1 or -1, got {value}"
            raise ValueError(msg)

        try:
            owner = await self._store.get_code_owner(code_id)
            if owner is None:
                raise VoteFailedError(code_id, "code not found")
            if owner == device_id:
                raise SelfVoteError(code_id)

            existing = await self._store.find_vote(code_id, device_id)
            if existing is None:
                await self._store.insert_vote(VoteRecord(code_id=code_id, device_id=device_id, value=value))
                delta = value
            elif existing.value == value:
                return 0
            else:
                await self._store.update_vote(existing.id, value)
                delta = value - existing.value

            await self._store.recompute_score(code_id)
        except RemoteUnavailableError as e:
            logger.warning(f"Vote on {code_id} failed: {e}")
            raise VoteFailedError(code_id, e.message) from e

        logger.debug(f"Device {device_id} voted {value:+d} on {code_id} (delta {delta:+d})")
        return delta

    async def cast_vote(self, code_id: str, device_id: str, value: int) -> bool:
        """Apply a vote; True on success, including a repeated identical vote.

        Raises:
            ValueError: If ``value`` is not 1 or -1.
            SelfVoteError: If the device submitted the code.
            VoteFailedError: If the code does not exist or the store fails.
        """
        await self.record_vote(code_id, device_id, value)
        return True
