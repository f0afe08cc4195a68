"""ctypes binding of the native Graphviz libraries.

Only the handful of entry points the wrapper needs are declared:

- ``libgvc``:    gvContext, gvFreeContext, gvLayout, gvFreeLayout, gvRender
- ``libcgraph``: agmemread, agclose
- ``libc``:      fdopen, fclose (gvRender writes to a ``FILE *``)

Native handles are plain integers (``c_void_p`` restype); a NULL return
comes back as ``None``. Ownership of every handle stays with the caller:
this module performs no implicit release.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
from dataclasses import dataclass
from functools import cache

from gvsafe.domain.errors import CStringError, LibraryNotFoundError

logger = logging.getLogger(__name__)

Handle = int


def to_cstring(value: str) -> bytes:
    """Encode *value* as UTF-8 for a ``const char *`` parameter.

    ctypes appends the terminator itself, so an embedded NUL would silently
    truncate the string on the native side. Raises CStringError instead.
    """
    if "\x00" in value:
        raise CStringError.from_value(value, "string contains an embedded NUL byte")
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise CStringError.from_value(value, str(exc)) from exc


@dataclass(frozen=True)
class LibraryPaths:
    """Explicit library names or paths; ``None`` means find_library lookup."""

    gvc: str | None = None
    cgraph: str | None = None
    libc: str | None = None


def _open(explicit: str | None, short_name: str) -> ctypes.CDLL:
    name = explicit or ctypes.util.find_library(short_name)
    if name is None:
        if short_name == "c":
            raise LibraryNotFoundError("could not locate the C runtime library")
        raise LibraryNotFoundError(f"could not locate lib{short_name}; is Graphviz installed?")
    try:
        lib = ctypes.CDLL(name)
    except OSError as exc:
        raise LibraryNotFoundError(f"failed to load {name}: {exc}") from exc
    logger.debug("Loaded native library %s", name)
    return lib


class NativeLibrary:
    """Typed facade over the native entry points.

    Methods mirror the C functions one-to-one and return raw results
    (handles or integer status codes). Tests substitute a fake with the
    same method names.
    """

    def __init__(self, gvc: ctypes.CDLL, cgraph: ctypes.CDLL, libc: ctypes.CDLL) -> None:
        self._gvc = gvc
        self._cgraph = cgraph
        self._libc = libc
        self._declare()

    @classmethod
    def load(cls, paths: LibraryPaths | None = None) -> NativeLibrary:
        paths = paths or LibraryPaths()
        return cls(
            _open(paths.gvc, "gvc"),
            _open(paths.cgraph, "cgraph"),
            _open(paths.libc, "c"),
        )

    def _declare(self) -> None:
        vp, cp, ci = ctypes.c_void_p, ctypes.c_char_p, ctypes.c_int

        self._gvc.gvContext.argtypes = []
        self._gvc.gvContext.restype = vp
        self._gvc.gvFreeContext.argtypes = [vp]
        self._gvc.gvFreeContext.restype = ci
        self._gvc.gvLayout.argtypes = [vp, vp, cp]
        self._gvc.gvLayout.restype = ci
        self._gvc.gvFreeLayout.argtypes = [vp, vp]
        self._gvc.gvFreeLayout.restype = ci
        self._gvc.gvRender.argtypes = [vp, vp, cp, vp]
        self._gvc.gvRender.restype = ci

        self._cgraph.agmemread.argtypes = [cp]
        self._cgraph.agmemread.restype = vp
        self._cgraph.agclose.argtypes = [vp]
        self._cgraph.agclose.restype = ci

        self._libc.fdopen.argtypes = [ci, cp]
        self._libc.fdopen.restype = vp
        self._libc.fclose.argtypes = [vp]
        self._libc.fclose.restype = ci

    # --- context ---

    def gv_context(self) -> Handle | None:
        return self._gvc.gvContext()

    def gv_free_context(self, gvc: Handle) -> int:
        return self._gvc.gvFreeContext(gvc)

    # --- graph ---

    def ag_memread(self, text: bytes) -> Handle | None:
        return self._cgraph.agmemread(text)

    def ag_close(self, graph: Handle) -> int:
        return self._cgraph.agclose(graph)

    # --- layout / render ---

    def gv_layout(self, gvc: Handle, graph: Handle, engine: bytes) -> int:
        return self._gvc.gvLayout(gvc, graph, engine)

    def gv_free_layout(self, gvc: Handle, graph: Handle) -> int:
        return self._gvc.gvFreeLayout(gvc, graph)

    def gv_render(self, gvc: Handle, graph: Handle, fmt: bytes, stream: Handle) -> int:
        return self._gvc.gvRender(gvc, graph, fmt, stream)

    # --- stdio ---

    def fdopen(self, fd: int, mode: bytes) -> Handle | None:
        """Wrap *fd* in a ``FILE *``; on success the stream owns the fd."""
        return self._libc.fdopen(fd, mode)

    def fclose(self, stream: Handle) -> int:
        """Flush and close *stream* and its underlying fd."""
        return self._libc.fclose(stream)


@cache
def load_native(paths: LibraryPaths | None = None) -> NativeLibrary:
    """Load (once per *paths*) and return the native library facade."""
    return NativeLibrary.load(paths)
