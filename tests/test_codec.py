import socket

import pytest

from sonicbuf.byte_buffer import ByteBuffer, NeedMoreError
from sonicbuf.codec import BlockingCodecConn, Codec, NonblockingCodecConn

ITEM = bytes([1, 2, 3, 4, 5])


class FiveByteCodec(Codec):
    def encode(self, item, dst):
        n = dst.write(item)
        dst.commit(n)

    def decode(self, src):
        src.prepare_read(5)
        item = src.data()[:5]
        src.consume(5)
        return item


class FailingCodec(Codec):
    def encode(self, item, dst):
        raise ValueError("cannot encode")

    def decode(self, src):
        raise ValueError("cannot decode")


class ScriptedStream:
    """An asynchronous stream fed by hand."""

    def __init__(self):
        self.pending = None
        self.written = b""
        self.closed = False

    def getblocking(self):
        return False

    def async_read(self, view, callback):
        self.pending = (view, callback)

    def deliver(self, chunk):
        view, callback = self.pending
        self.pending = None
        view[: len(chunk)] = chunk
        callback(None, len(chunk))

    def fail(self, err):
        _, callback = self.pending
        self.pending = None
        callback(err, 0)

    def async_write_all(self, view, callback):
        self.written += bytes(view)
        callback(None, len(view))

    def close(self):
        self.closed = True


@pytest.fixture
def pair():
    local, peer = socket.socketpair()
    local.setblocking(False)
    yield local, peer
    local.close()
    peer.close()


def test_simple_codec():
    codec = FiveByteCodec()
    buf = ByteBuffer()
    buf.reserve(128)
    codec.encode(ITEM, buf)
    assert buf.write_len() == 0
    assert buf.read_len() == 5
    assert len(buf.data()) == 5
    assert len(buf) == 5
    assert codec.decode(buf) == ITEM


def test_decode_needs_more():
    buf = ByteBuffer()
    buf.write(b"\x01\x02")
    with pytest.raises(NeedMoreError):
        FiveByteCodec().decode(buf)


def test_nonblocking_read_next(pair):
    local, peer = pair
    src = ByteBuffer()
    conn = NonblockingCodecConn(local, FiveByteCodec(), src, ByteBuffer())

    with pytest.raises(BlockingIOError):
        conn.read_next()

    peer.sendall(bytes([1, 2, 3]))
    with pytest.raises(BlockingIOError):
        conn.read_next()

    peer.sendall(bytes([4, 5, 6]))
    assert conn.read_next() == ITEM
    assert src.write_len() == 1
    src.commit(1)
    assert src.data()[0] == 6


def test_nonblocking_async_read_next():
    stream = ScriptedStream()
    src = ByteBuffer()
    conn = NonblockingCodecConn(stream, FiveByteCodec(), src, ByteBuffer())
    results = []
    conn.async_read_next(lambda err, item: results.append((err, item)))
    assert results == []

    stream.deliver(bytes([1, 2, 3]))
    assert results == []
    assert stream.pending is not None

    stream.deliver(bytes([4, 5, 6]))
    assert results == [(None, ITEM)]
    assert src.write_len() == 1
    src.commit(1)
    assert src.data()[0] == 6


def test_async_read_next_reports_stream_error():
    stream = ScriptedStream()
    conn = BlockingCodecConn(stream, FiveByteCodec(), ByteBuffer(), ByteBuffer())
    results = []
    conn.async_read_next(lambda err, item: results.append((err, item)))
    failure = ConnectionResetError("reset")
    stream.fail(failure)
    assert results == [(failure, None)]


def test_async_read_next_already_buffered():
    src = ByteBuffer()
    src.write(ITEM + b"\x09")
    conn = BlockingCodecConn(ScriptedStream(), FiveByteCodec(), src, ByteBuffer())
    results = []
    conn.async_read_next(lambda err, item: results.append((err, item)))
    assert results == [(None, ITEM)]
    assert src.write_len() == 1


def test_decode_error_propagates():
    conn = BlockingCodecConn(ScriptedStream(), FailingCodec(), ByteBuffer(), ByteBuffer())
    with pytest.raises(ValueError):
        conn.read_next()
    results = []
    conn.async_read_next(lambda err, item: results.append((err, item)))
    assert isinstance(results[0][0], ValueError)
    assert results[0][1] is None


def test_nonblocking_write_next(pair):
    local, peer = pair
    conn = NonblockingCodecConn(local, FiveByteCodec(), ByteBuffer(), ByteBuffer())
    assert conn.write_next(ITEM) == 5
    assert peer.recv(16) == ITEM

    peer.close()
    with pytest.raises(OSError):
        for _ in range(1000):
            conn.write_next(ITEM)


def test_async_write_next():
    stream = ScriptedStream()
    dst = ByteBuffer()
    conn = NonblockingCodecConn(stream, FiveByteCodec(), ByteBuffer(), dst)
    results = []
    conn.async_write_next(ITEM, lambda err, n: results.append((err, n)))
    assert results == [(None, 5)]
    assert stream.written == ITEM
    assert dst.read_len() == 0


def test_encode_error_propagates():
    conn = BlockingCodecConn(ScriptedStream(), FailingCodec(), ByteBuffer(), ByteBuffer())
    with pytest.raises(ValueError):
        conn.write_next(ITEM)
    results = []
    conn.async_write_next(ITEM, lambda err, n: results.append((err, n)))
    assert isinstance(results[0][0], ValueError)
    assert results[0][1] == 0


def test_nonblocking_conn_rejects_blocking_stream():
    local, peer = socket.socketpair()
    try:
        with pytest.raises(ValueError):
            NonblockingCodecConn(local, FiveByteCodec(), ByteBuffer(), ByteBuffer())
    finally:
        local.close()
        peer.close()


def test_blocking_conn_on_blocking_socket():
    local, peer = socket.socketpair()
    try:
        conn = BlockingCodecConn(local, FiveByteCodec(), ByteBuffer(), ByteBuffer())
        peer.sendall(ITEM)
        assert conn.read_next() == ITEM
    finally:
        local.close()
        peer.close()


def test_next_layer_and_close():
    stream = ScriptedStream()
    conn = NonblockingCodecConn(stream, FiveByteCodec(), ByteBuffer(), ByteBuffer())
    assert conn.next_layer() is stream
    conn.close()
    assert stream.closed is True