"""A byte buffer split into save, read and write areas for networking code."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

AsyncCallback = Callable[[Optional[BaseException], int], None]

_DEFAULT_CAPACITY = 512


class NeedMoreError(Exception):
    """Raised when fewer bytes are buffered than an operation needs."""


@dataclass(frozen=True)
class Slot:
    """A region of the save area, as returned by ByteBuffer.save."""

    index: int = 0
    length: int = 0


def _read_into(reader: Any, view: memoryview) -> int:
    """Read from a socket or file-like object into ``view``."""
    if hasattr(reader, "recv_into"):
        return reader.recv_into(view)
    if hasattr(reader, "readinto"):
        n = reader.readinto(view)
    else:
        chunk = reader.read(len(view))
        if chunk is None:
            n = None
        else:
            n = len(chunk)
            view[:n] = chunk
    if n is None:
        raise BlockingIOError("read would block")
    return n


def _write_from(writer: Any, view: memoryview) -> int:
    """Write ``view`` to a socket or file-like object, returning bytes written."""
    if hasattr(writer, "send"):
        n = writer.send(view)
    else:
        n = writer.write(view)
    if n is None:
        raise BlockingIOError("write would block")
    return n


class ByteBuffer:
    """A buffer with three consecutive areas: save, read and write.

    Bytes are written into the write area, made readable with ``commit``,
    and then either consumed (discarded at once) or saved for later
    reference and discarded explicitly.
    """

    def __init__(self, capacity: int = _DEFAULT_CAPACITY) -> None:
        self._buf = bytearray(capacity)
        self._si = 0  # end of the save area
        self._ri = 0  # end of the read area
        self._wi = 0  # end of the write area

    def _grow_to(self, new_capacity: int) -> None:
        # A fresh bytearray keeps previously handed-out views valid.
        grown = bytearray(new_capacity)
        grown[: self._wi] = self._buf[: self._wi]
        self._buf = grown

    def _ensure_room(self, extra: int) -> None:
        needed = self._wi + extra
        if needed > len(self._buf):
            self._grow_to(max(needed, 2 * len(self._buf)))

    def reserve(self, n: int) -> None:
        """Make room for at least ``n`` more bytes in the write area."""
        need = n - (len(self._buf) - self._wi)
        if need > 0:
            self._grow_to(len(self._buf) + need)

    def reserved(self) -> int:
        """Number of bytes that can still be written without growing."""
        return len(self._buf) - self._wi

    def commit(self, n: int) -> None:
        """Move ``n`` bytes from the write area to the read area."""
        if n <= 0:
            return
        self._ri = min(self._ri + n, self._wi)

    def prefault(self) -> None:
        """Touch every byte of the underlying storage, zeroing it."""
        self._buf[:] = bytes(len(self._buf))

    def data(self) -> bytes:
        """The bytes in the read area."""
        return bytes(memoryview(self._buf)[self._si : self._ri])

    def save_len(self) -> int:
        return self._si

    def read_len(self) -> int:
        return self._ri - self._si

    def write_len(self) -> int:
        return self._wi - self._ri

    def __len__(self) -> int:
        return self._wi

    def capacity(self) -> int:
        return len(self._buf)

    def consume(self, n: int) -> None:
        """Drop the first ``n`` bytes of the read area."""
        if n <= 0:
            return
        n = min(n, self.read_len())
        if n > 0:
            remaining = self._wi - (self._si + n)
            self._buf[self._si : self._si + remaining] = self._buf[
                self._si + n : self._wi
            ]
            self._ri -= n
            self._wi -= n

    def save(self, n: int) -> Slot:
        """Move ``n`` bytes from the read area to the save area."""
        n = min(n, self.read_len())
        if n <= 0:
            return Slot()
        slot = Slot(index=self._si, length=n)
        self._si += n
        return slot

    def saved(self) -> bytes:
        """All bytes in the save area."""
        return bytes(memoryview(self._buf)[: self._si])

    def saved_slot(self, slot: Slot) -> bytes:
        """The bytes held by a previously saved slot."""
        return bytes(memoryview(self._buf)[slot.index : slot.index + slot.length])

    def discard(self, slot: Slot) -> int:
        """Remove a saved slot from the save area; returns its length."""
        if slot.length <= 0:
            return 0
        start = slot.index
        remaining = self._wi - (start + slot.length)
        self._buf[start : start + remaining] = self._buf[
            start + slot.length : self._wi
        ]
        self._si -= slot.length
        self._ri -= slot.length
        self._wi -= slot.length
        return slot.length

    def discard_all(self) -> None:
        """Empty the save area."""
        self.discard(Slot(index=0, length=self.save_len()))

    def reset(self) -> None:
        self._si = 0
        self._ri = 0
        self._wi = 0

    def readinto(self, dst: Any) -> int:
        """Copy bytes from the read area into ``dst`` and consume them."""
        target = memoryview(dst)
        if len(target) == 0:
            return 0
        if self._ri == 0:
            raise EOFError("no bytes to read")
        n = min(len(target), self.read_len())
        target[:n] = self._buf[self._si : self._si + n]
        self.consume(n)
        return n

    def read(self, size: int = -1) -> bytes:
        """Return and consume up to ``size`` bytes (all if negative)."""
        if size == 0:
            return b""
        if self._ri == 0:
            raise EOFError("no bytes to read")
        available = self.read_len()
        n = available if size < 0 else min(size, available)
        chunk = bytes(memoryview(self._buf)[self._si : self._si + n])
        self.consume(n)
        return chunk

    def read_byte(self) -> int:
        """Return and consume a single byte of the read area."""
        chunk = self.read(1)
        if not chunk:
            raise EOFError("no bytes to read")
        return chunk[0]

    def read_from(self, reader: Any) -> int:
        """Read once from ``reader`` into the write area without growing it."""
        view = memoryview(self._buf)[self._wi :]
        n = _read_into(reader, view)
        if n == 0 and len(view) > 0:
            raise EOFError("reader is exhausted")
        self._wi += n
        return n

    def unread_byte(self) -> None:
        """Drop the last byte of the write area."""
        if self.write_len() > 0:
            self._wi -= 1
            return
        raise EOFError("write area is empty")

    def async_read_from(self, reader: Any, callback: AsyncCallback) -> None:
        """Schedule a read from ``reader.async_read`` into the write area."""
        view = memoryview(self._buf)[self._wi :]

        def on_read(err: Optional[BaseException], n: int) -> None:
            if err is None:
                self._wi += n
            callback(err, n)

        reader.async_read(view, on_read)

    def write(self, data: Any) -> int:
        """Append ``data`` to the write area, growing if needed."""
        chunk = memoryview(data).cast("B")
        n = len(chunk)
        self._ensure_room(n)
        self._buf[self._wi : self._wi + n] = chunk
        self._wi += n
        return n

    def write_byte(self, value: int) -> None:
        self._ensure_room(1)
        self._buf[self._wi] = value
        self._wi += 1

    def write_string(self, text: str) -> int:
        """Append ``text`` encoded as UTF-8; returns the number of bytes."""
        return self.write(text.encode("utf-8"))

    def write_to(self, writer: Any) -> int:
        """Write the read area to ``writer`` and consume what was written."""
        written = 0
        try:
            while self._si + written < self._ri:
                view = memoryview(self._buf)[self._si + written : self._ri]
                written += _write_from(writer, view)
        finally:
            self.consume(written)
        return written

    def async_write_to(self, writer: Any, callback: AsyncCallback) -> None:
        """Write the read area through ``writer.async_write_all``."""
        view = memoryview(self._buf)[self._si : self._ri]

        def on_write(err: Optional[BaseException], n: int) -> None:
            if err is None:
                self.consume(n)
            callback(err, n)

        writer.async_write_all(view, on_write)

    def prepare_read(self, n: int) -> None:
        """Ensure ``n`` bytes are readable, committing from the write area."""
        need = n - self.read_len()
        if need > 0:
            if self.write_len() >= need:
                self.commit(need)
            else:
                raise NeedMoreError(f"need {need} more bytes")

    def claim(self, fn: Callable[[memoryview], int]) -> int:
        """Let ``fn`` write into the free space; it returns bytes written.

        A return value outside the free space is ignored. Returns the number
        of bytes added to the write area.
        """
        view = memoryview(self._buf)[self._wi :]
        n = fn(view)
        if n >= 0 and self._wi + n <= len(self._buf):
            self._wi += n
            return n
        return 0

    def claim_fixed(self, n: int) -> memoryview:
        """Grow the write area by ``n`` bytes and return them for writing.

        Returns an empty view if there is not enough free space.
        """
        end = self._wi + n
        if n >= 0 and end <= len(self._buf):
            claimed = memoryview(self._buf)[self._wi : end]
            self._wi = end
            return claimed
        return memoryview(bytearray())

    def shrink_by(self, n: int) -> int:
        """Shrink the write area by at most ``n`` bytes."""
        if n <= 0:
            return 0
        n = min(n, self.write_len())
        self._wi -= n
        return n

    def shrink_to(self, n: int) -> int:
        """Shrink the write area to hold at most ``n`` bytes."""
        return self.shrink_by(self.write_len() - n)