"""Encoding and decoding of items over a byte stream."""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Optional, TypeVar

from sonicbuf.byte_buffer import AsyncCallback, ByteBuffer, NeedMoreError

EncT = TypeVar("EncT")
DecT = TypeVar("DecT")

ReadCallback = Callable[[Optional[BaseException], Any], None]


class Encoder(ABC, Generic[EncT]):
    """Serializes items into a ByteBuffer."""

    @abstractmethod
    def encode(self, item: EncT, dst: ByteBuffer) -> None:
        """Write ``item`` into ``dst`` and commit it to the read area."""


class Decoder(ABC, Generic[DecT]):
    """Deserializes items from a ByteBuffer."""

    @abstractmethod
    def decode(self, src: ByteBuffer) -> DecT:
        """Decode one item from ``src``; raise NeedMoreError if incomplete."""


class Codec(Encoder[EncT], Decoder[DecT], ABC):
    """Both an encoder and a decoder, possibly keeping parser state."""


class _CodecConnBase(Generic[EncT, DecT]):
    """Shared machinery for codec connections."""

    def __init__(
        self,
        stream: Any,
        codec: Codec[EncT, DecT],
        src: ByteBuffer,
        dst: ByteBuffer,
    ) -> None:
        self._stream = stream
        self._codec = codec
        self._src = src
        self._dst = dst

    def _async_read_next(self, callback: ReadCallback) -> None:
        try:
            item = self._codec.decode(self._src)
        except NeedMoreError:
            self._schedule_read(callback)
            return
        except Exception as err:  # decoder failures go to the callback
            callback(err, None)
            return
        callback(None, item)

    def _schedule_read(self, callback: ReadCallback) -> None:
        def on_read(err: Optional[BaseException], _n: int) -> None:
            if err is not None:
                callback(err, None)
            else:
                self._async_read_next(callback)

        self._src.async_read_from(self._stream, on_read)

    def _read_next(self) -> DecT:
        while True:
            try:
                return self._codec.decode(self._src)
            except NeedMoreError:
                self._src.read_from(self._stream)

    def _write_next(self, item: EncT) -> int:
        self._codec.encode(item, self._dst)
        return self._dst.write_to(self._stream)

    def _async_write_next(self, item: EncT, callback: AsyncCallback) -> None:
        try:
            self._codec.encode(item, self._dst)
        except Exception as err:  # encoder failures go to the callback
            callback(err, 0)
            return
        self._dst.async_write_to(self._stream, callback)


class BlockingCodecConn(_CodecConnBase[EncT, DecT]):
    """A codec connection over a stream; works in blocking or nonblocking mode."""

    def __init__(
        self,
        stream: Any,
        codec: Codec[EncT, DecT],
        src: ByteBuffer,
        dst: ByteBuffer,
    ) -> None:
        super().__init__(stream, codec, src, dst)

    def async_read_next(self, callback: ReadCallback) -> None:
        """Decode the next item, reading from the stream as needed.

        ``callback(err, item)`` receives either an error or the item.
        """
        self._async_read_next(callback)

    def read_next(self) -> DecT:
        """Read from the stream until a full item can be decoded."""
        return self._read_next()

    def write_next(self, item: EncT) -> int:
        """Encode ``item`` and write it to the stream; returns bytes written."""
        return self._write_next(item)

    def async_write_next(self, item: EncT, callback: AsyncCallback) -> None:
        """Encode ``item`` and write it asynchronously to the stream."""
        self._async_write_next(item, callback)

    def next_layer(self) -> Any:
        """The underlying stream."""
        return self._stream

    def close(self) -> None:
        """Close the underlying stream."""
        self._stream.close()


def _is_nonblocking(stream: Any) -> bool:
    getblocking = getattr(stream, "getblocking", None)
    if callable(getblocking):
        return not getblocking()
    return not os.get_blocking(stream.fileno())


class NonblockingCodecConn(_CodecConnBase[EncT, DecT]):
    """A codec connection that requires a nonblocking stream."""

    def __init__(
        self,
        stream: Any,
        codec: Codec[EncT, DecT],
        src: ByteBuffer,
        dst: ByteBuffer,
    ) -> None:
        if not _is_nonblocking(stream):
            raise ValueError("the provided stream is blocking")
        super().__init__(stream, codec, src, dst)

    def async_read_next(self, callback: ReadCallback) -> None:
        """Decode the next item, reading from the stream as needed.

        ``callback(err, item)`` receives either an error or the item.
        """
        self._async_read_next(callback)

    def read_next(self) -> DecT:
        """Read from the stream until a full item can be decoded."""
        return self._read_next()

    def write_next(self, item: EncT) -> int:
        """Encode ``item`` and write it to the stream; returns bytes written."""
        return self._write_next(item)

    def async_write_next(self, item: EncT, callback: AsyncCallback) -> None:
        """Encode ``item`` and write it asynchronously to the stream."""
        self._async_write_next(item, callback)

    def next_layer(self) -> Any:
        """The underlying stream."""
        return self._stream

    def close(self) -> None:
        """Close the underlying stream."""
        self._stream.close()