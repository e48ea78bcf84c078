from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BlockRange:
    from_block: int
    to_block: int

    def validate(self) -> None:
        if self.from_block < 0 or self.to_block < 0:
            raise ValueError("Block numbers must be non-negative")
        if self.from_block > self.to_block:
            raise ValueError("from_block must be <= to_block")


def next_scan_range(*, last_block: int, head: int) -> BlockRange | None:
    """
    Range still to be indexed given the persisted cursor and the chain head.

    - head <= last_block -> None (chain has not advanced; nothing to do).
    - otherwise [last_block + 1, head], inclusive on both ends.
    """
    if last_block < 0:
        raise ValueError("last_block must be non-negative")
    if head <= last_block:
        return None

    block_range = BlockRange(from_block=last_block + 1, to_block=head)
    block_range.validate()
    return block_range
