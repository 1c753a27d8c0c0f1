"""A bipartite circular buffer handing out contiguous chunks in FIFO order."""

from __future__ import annotations

from typing import Optional


class BipBuffer:
    """A circular buffer that always yields contiguous byte chunks.

    Typical use: ``claim`` space, fill it, ``commit`` what was written,
    read chunks through ``head`` and release them with ``consume``.
    """

    def __init__(self, size: int) -> None:
        self._data = bytearray(size)
        self._head = 0
        self._tail = 0
        self._wrapped_head = 0
        self._wrapped_tail = 0
        self._claim_head = 0
        self._claim_tail = 0

    def prefault(self) -> None:
        """Touch every byte of the storage, zeroing it."""
        self._data[:] = bytes(len(self._data))

    def reset(self) -> None:
        """Forget all claimed and committed state."""
        self._head = 0
        self._tail = 0
        self._wrapped_head = 0
        self._wrapped_tail = 0
        self._claim_head = 0
        self._claim_tail = 0

    def wrapped(self) -> bool:
        return self._wrapped_tail - self._wrapped_head > 0

    def claim(self, n: int) -> Optional[memoryview]:
        """Claim up to ``n`` contiguous bytes; None if there is no room."""
        if self.wrapped():
            claim_head = self._wrapped_tail
            free_space = self._head - self._wrapped_tail
        else:
            space_before = self._head
            space_after = self.size() - self._tail
            if space_before <= space_after:
                claim_head = self._tail
                free_space = space_after
            else:
                claim_head = 0
                free_space = space_before
        if free_space == 0:
            return None
        claim_size = min(free_space, n)
        self._claim_head = claim_head
        self._claim_tail = claim_head + claim_size
        return memoryview(self._data)[self._claim_head : self._claim_tail]

    def commit(self, n: int) -> Optional[memoryview]:
        """Commit up to ``n`` claimed bytes and return the committed chunk."""
        if n == 0:
            self._claim_head = 0
            self._claim_tail = 0
            return None
        to_commit = min(self._claim_tail - self._claim_head, n)
        if self.committed() == 0:
            self._head = self._claim_head
            self._tail = self._claim_head + to_commit
            start, end = self._head, self._tail
        elif self._claim_head == self._tail:
            start = self._tail
            self._tail += to_commit
            end = self._tail
        else:
            start = self._wrapped_tail
            self._wrapped_tail += to_commit
            end = self._wrapped_tail
        self._claim_head = 0
        self._claim_tail = 0
        return memoryview(self._data)[start:end]

    def head(self) -> Optional[memoryview]:
        """The first contiguous committed chunk, or None if there is none."""
        if self._tail - self._head > 0:
            return memoryview(self._data)[self._head : self._tail]
        return None

    def consume(self, n: int) -> None:
        """Release ``n`` bytes from the front of the first chunk."""
        if n >= self._tail - self._head:
            self._head = self._wrapped_head
            self._tail = self._wrapped_tail
            self._wrapped_head = 0
            self._wrapped_tail = 0
        else:
            self._head += n

    def committed(self) -> int:
        return self._tail - self._head + self._wrapped_tail - self._wrapped_head

    def claimed(self) -> int:
        return self._claim_tail - self._claim_head

    def size(self) -> int:
        return len(self._data)

    def empty(self) -> bool:
        return self.claimed() == 0 and self.committed() == 0