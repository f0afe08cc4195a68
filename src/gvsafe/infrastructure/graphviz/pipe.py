"""OutputPipe — captures what the native renderer writes.

gvRender writes to a ``FILE *`` instead of returning a buffer. The pipe
splits an ``os.pipe()`` pair into two independently owned halves:

- :class:`WriteEnd` wraps the write fd in a libc stream via ``fdopen``.
  From then on the stream owns the fd; ``fclose`` flushes and closes both.
- :class:`ReadEnd` keeps the read fd. A collector thread empties it with
  ``os.read`` while the engine writes, so output larger than the kernel
  pipe buffer never stalls ``gvRender``.

INVARIANT: the write end is closed before the collected output is handed
out. The native stream buffers output until ``fclose``; end-of-stream only
arrives after it.

Both ``close`` operations are idempotent.
"""

from __future__ import annotations

import fcntl
import logging
import os
import threading
from typing import TYPE_CHECKING

from gvsafe.domain.errors import PipeError

if TYPE_CHECKING:
    from types import TracebackType

    from gvsafe.infrastructure.graphviz.library import Handle, NativeLibrary

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


class WriteEnd:
    """The half handed to the native engine as a ``FILE *``."""

    def __init__(self, native: NativeLibrary, stream: Handle) -> None:
        self._native = native
        self._stream: Handle | None = stream

    @property
    def closed(self) -> bool:
        return self._stream is None

    @property
    def stream(self) -> Handle:
        if self._stream is None:
            raise PipeError("pipe write end is already closed")
        return self._stream

    def close(self) -> bool:
        """Flush and close the stream. Returns False if the flush failed.

        No-op returning True when already closed.
        """
        if self._stream is None:
            return True
        stream, self._stream = self._stream, None
        return self._native.fclose(stream) == 0


class ReadEnd:
    """The half retained by the wrapper.

    Collection starts on construction and runs until end-of-stream, which
    only arrives once every write end is closed. Both :meth:`read_all` and
    :meth:`close` wait for it.
    """

    def __init__(self, fd: int) -> None:
        self._fd: int | None = fd
        self._chunks: list[bytes] = []
        self._error: OSError | None = None
        self._collector = threading.Thread(
            target=self._collect, args=(fd,), name=f"gvsafe-pipe-{fd}", daemon=True
        )
        self._collector.start()

    def _collect(self, fd: int) -> None:
        try:
            while True:
                chunk = os.read(fd, _READ_CHUNK)
                if not chunk:
                    return
                self._chunks.append(chunk)
        except OSError as exc:
            self._error = exc

    @property
    def closed(self) -> bool:
        return self._fd is None

    def read_all(self) -> bytes:
        """Wait for end-of-stream and return everything collected.

        Empty when already closed. Raises PipeError if reading failed.
        """
        if self._fd is None:
            return b""
        self._collector.join()
        if self._error is not None:
            raise PipeError(f"failed to read engine output: {self._error}") from self._error
        data = b"".join(self._chunks)
        self._chunks.clear()
        return data

    def close(self) -> None:
        if self._fd is None:
            return
        self._collector.join()
        fd, self._fd = self._fd, None
        self._chunks.clear()
        os.close(fd)


def _request_capacity(fd: int, capacity: int) -> None:
    """Ask the kernel for a larger pipe buffer (Linux only, best effort)."""
    op = getattr(fcntl, "F_SETPIPE_SZ", None)
    if capacity <= 0 or op is None:
        return
    try:
        fcntl.fcntl(fd, op, capacity)
    except OSError as exc:
        logger.debug("Pipe capacity %d not granted: %s", capacity, exc)


class OutputPipe:
    """A connected read/write pair used for one render call.

    Usage::

        with OutputPipe.acquire(native) as pipe:
            native.gv_render(gvc, graph, b"png", pipe.write.stream)
            data = pipe.drain_and_close()
    """

    def __init__(self, write: WriteEnd, read: ReadEnd) -> None:
        self.write = write
        self.read = read

    @classmethod
    def acquire(cls, native: NativeLibrary, *, capacity: int = 0) -> OutputPipe:
        """Create the pair. Raises PipeError when the OS cannot allocate it."""
        try:
            read_fd, write_fd = os.pipe()
        except OSError as exc:
            raise PipeError(f"failed to create output pipe: {exc}") from exc

        _request_capacity(write_fd, capacity)

        stream = native.fdopen(write_fd, b"wb")
        if not stream:
            os.close(write_fd)
            os.close(read_fd)
            raise PipeError("failed to open a stream on the pipe write end")

        logger.debug("Output pipe opened (read fd %d, write fd %d)", read_fd, write_fd)
        return cls(WriteEnd(native, stream), ReadEnd(read_fd))

    @property
    def closed(self) -> bool:
        return self.write.closed and self.read.closed

    def close_write(self) -> None:
        """Close the write end; raises PipeError if buffered output was lost."""
        if not self.write.close():
            raise PipeError("failed to flush engine output into the pipe")

    def drain_and_close(self) -> bytes:
        """Close the write end, collect everything, close the read end.

        The read end is closed even when flushing fails. Calling again
        returns ``b""``.
        """
        try:
            self.close_write()
            return self.read.read_all()
        finally:
            self.read.close()

    def close(self) -> None:
        """Release both ends without reading. Safe on any path."""
        if not self.write.close():
            logger.debug("Discarded unflushed output while closing pipe")
        self.read.close()

    def __enter__(self) -> OutputPipe:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
