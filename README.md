# sonicbuf

Byte containers for writing network protocols: buffers that hand out
bytes in first-in-first-out order, plus connections that run a codec
over a byte stream.

## Installation

```
pip install sonicbuf
```

Python 3.10 or newer is required. The package has no third-party
dependencies.

## What is inside

### `sonicbuf.byte_buffer.ByteBuffer`

A growable buffer (512 bytes of capacity by default) with three
consecutive areas:

- **save area**: bytes kept aside with `save()`, which returns a `Slot`,
  until they are freed with `discard()` or `discard_all()`
- **read area**: bytes moved over from the write area with `commit()`,
  seen through `data()` and dropped with `consume()`
- **write area**: bytes added with `write()`, `write_byte()`,
  `write_string()`, `read_from()` or `claim()`

```python
from sonicbuf.byte_buffer import ByteBuffer, NeedMoreError

buf = ByteBuffer()
buf.write(b"hello")
buf.commit(3)
assert buf.data() == b"hel"
buf.consume(1)
assert buf.data() == b"el"

try:
    buf.prepare_read(10)
except NeedMoreError:
    pass  # not enough bytes buffered yet
```

Other operations:

- `reserve(n)` makes room for at least `n` more bytes; `reserved()` and
  `capacity()` report the free space and the total storage.
- `claim(fn)` passes the free space to `fn`, which returns how many bytes
  it wrote; `claim_fixed(n)` grows the write area by exactly `n` bytes and
  returns them as a writable view, or an empty view if there is no room.
- `shrink_by(n)` and `shrink_to(n)` trim the write area; `unread_byte()`
  drops its last byte.
- `read(size)`, `readinto(dst)` and `read_byte()` return and consume bytes
  of the read area, raising `EOFError` when nothing has been committed.
- `read_from(reader)` reads once from a socket (`recv_into`) or a
  file-like object (`readinto` or `read`) into the free space, without
  growing the buffer.
- `write_to(writer)` writes the whole read area to a socket (`send`) or a
  file-like object (`write`) and consumes what was written.
- `async_read_from(reader, callback)` and `async_write_to(writer, callback)`
  hand the free space or the read area to `reader.async_read(view, cb)` or
  `writer.async_write_all(view, cb)`, and call `callback(err, n)` when that
  completes.

### `sonicbuf.bip_buffer.BipBuffer`

A fixed-size circular buffer that always hands out contiguous chunks.
It suits packet-based protocols:

```python
from sonicbuf.bip_buffer import BipBuffer

buf = BipBuffer(8)
chunk = buf.claim(4)
chunk[:4] = b"abcd"
buf.commit(4)
assert bytes(buf.head()) == b"abcd"
buf.consume(4)
assert buf.empty()
```

`claim()` returns `None` when there is no free space, and `head()` returns
`None` when nothing is committed. `wrapped()`, `committed()`, `claimed()`
and `size()` report the buffer's state; `reset()` forgets it.

### `sonicbuf.codec`

`Encoder`, `Decoder` and `Codec` are abstract classes describing how items
are turned into bytes in a `ByteBuffer` and back. A decoder raises
`NeedMoreError` when the buffered bytes do not yet hold a whole item.

`BlockingCodecConn` and `NonblockingCodecConn` tie a codec to a stream and
two buffers (one to decode from, one to encode into). They provide
`read_next()`, `write_next()`, their callback-based counterparts
`async_read_next()` and `async_write_next()`, `next_layer()` and `close()`.
`NonblockingCodecConn` raises `ValueError` if the stream is in blocking
mode.

```python
import socket

from sonicbuf.byte_buffer import ByteBuffer
from sonicbuf.codec import BlockingCodecConn, Codec


class FiveBytes(Codec[bytes, bytes]):
    def encode(self, item, dst):
        dst.commit(dst.write(item))

    def decode(self, src):
        src.prepare_read(5)
        item = src.data()[:5]
        src.consume(5)
        return item


left, right = socket.socketpair()
sender = BlockingCodecConn(left, FiveBytes(), ByteBuffer(), ByteBuffer())
receiver = BlockingCodecConn(right, FiveBytes(), ByteBuffer(), ByteBuffer())

assert sender.write_next(b"hello") == 5
assert receiver.read_next() == b"hello"
sender.close()
receiver.close()
```

## What the package does not do

There is no event loop and no socket type of its own. The `async_*`
methods only pass callbacks to the objects they are given; something else
has to provide `async_read` / `async_write_all` and drive them.

## Running the tests

```
pip install -e .[test]
pytest
```