from __future__ import annotations


class IndexerError(Exception):
    """Base class for errors raised by the indexing core."""


class EventDecodeError(IndexerError):
    """
    A log could not be decoded into a known event.

    Raised instead of skipping the log: the poll cycle is abandoned and the
    whole range is retried, so no event is silently lost.
    """


class CursorRegressionError(IndexerError):
    """An attempt was made to move the persisted cursor backwards."""

    def __init__(self, *, current: int, requested: int) -> None:
        super().__init__(
            f"Refusing to move indexer cursor backwards: current={current}, requested={requested}"
        )
        self.current = current
        self.requested = requested


class ChainIdMismatchError(IndexerError):
    """The RPC endpoint serves a different chain than the one configured."""

    def __init__(self, *, expected: int, actual: int) -> None:
        super().__init__(f"RPC endpoint is on chain_id={actual}, expected chain_id={expected}")
        self.expected = expected
        self.actual = actual
