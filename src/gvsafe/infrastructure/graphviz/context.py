"""GraphvizContext — exclusive owner of one native ``GVC_t`` handle.

Lifecycle:

- ``__init__`` acquires the native context exactly once.
- Setters only update stored configuration.
- :meth:`render` borrows the context for one parse → layout → render cycle.
  Graph and layout structures never outlive the call.
- :meth:`close` (also ``__exit__`` and ``__del__``) releases the native
  context exactly once.

The native context is mutable shared state, so ``render`` holds a
per-instance lock: concurrent calls on one instance run one at a time.
Independent instances share nothing and may render in parallel.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from gvsafe.domain.errors import (
    ContextError,
    LayoutError,
    OutputWriteError,
    ParseError,
    RenderError,
)
from gvsafe.domain.types import (
    Engine,
    LocationKind,
    OutputFormat,
    OutputLocation,
    engine_token,
    format_token,
)
from gvsafe.infrastructure.graphviz.library import LibraryPaths, load_native, to_cstring
from gvsafe.infrastructure.graphviz.pipe import OutputPipe

if TYPE_CHECKING:
    from types import TracebackType

    from gvsafe.config.settings import GvSettings
    from gvsafe.infrastructure.graphviz.library import Handle, NativeLibrary

logger = logging.getLogger(__name__)

DEFAULT_PIPE_CAPACITY = 1024 * 1024


class GraphvizContext:
    """Owned handle to the native layout/rendering subsystem.

    Usage::

        with GraphvizContext(Engine.DOT, OutputFormat.PNG) as gvc:
            png = gvc.render("digraph { a -> b }\\n")
            svg = gvc.set_output_format(OutputFormat.SVG).render(text)
    """

    def __init__(
        self,
        engine: Engine,
        output_format: OutputFormat,
        *,
        native: NativeLibrary | None = None,
        pipe_capacity: int = DEFAULT_PIPE_CAPACITY,
        require_trailing_newline: bool = True,
    ) -> None:
        self._handle: Handle | None = None
        self._native = native if native is not None else load_native()
        self._engine = engine
        self._output_format: OutputFormat | None = output_format
        self._output_location: OutputLocation | None = None
        self._pipe_capacity = pipe_capacity
        self._require_trailing_newline = require_trailing_newline
        self._lock = threading.Lock()

        handle = self._native.gv_context()
        if not handle:
            raise ContextError("gvContext failed to allocate a native context")
        self._handle = handle
        logger.debug("Acquired native context (engine=%s, format=%s)", engine, output_format)

    @classmethod
    def from_settings(
        cls, settings: GvSettings, *, native: NativeLibrary | None = None
    ) -> GraphvizContext:
        """Build a context from the ``[render]``, ``[native]`` and ``[pipe]`` sections."""
        if native is None:
            native = load_native(
                LibraryPaths(
                    gvc=settings.native.gvc_library,
                    cgraph=settings.native.cgraph_library,
                    libc=settings.native.libc_library,
                )
            )
        return cls(
            Engine.parse(settings.render.engine),
            OutputFormat.parse(settings.render.format),
            native=native,
            pipe_capacity=settings.pipe.capacity,
            require_trailing_newline=settings.render.require_trailing_newline,
        )

    # --- configuration ---

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def output_format(self) -> OutputFormat | None:
        return self._output_format

    @property
    def output_location(self) -> OutputLocation:
        return self._output_location or OutputLocation.memory()

    @property
    def closed(self) -> bool:
        return self._handle is None

    def set_engine(self, engine: Engine) -> GraphvizContext:
        self._engine = engine
        return self

    def set_output_format(self, output_format: OutputFormat | None) -> GraphvizContext:
        self._output_format = output_format
        return self

    def set_output_location(self, location: OutputLocation) -> GraphvizContext:
        self._output_location = location
        return self

    # --- rendering ---

    def render(self, graph_text: str) -> bytes:
        """Parse, lay out and render *graph_text*; return the encoded bytes.

        Raises:
            CStringError: a token or *graph_text* contains a NUL byte.
            UnsupportedEngineError / UnsupportedFormatError: value outside the tables.
            PipeError: the output pipe could not be created.
            ParseError: the engine could not build a graph from the text.
            LayoutError / RenderError: the native step returned an error code.
            OutputWriteError: the file output location could not be written.
            ContextError: the context was already closed.
        """
        engine = to_cstring(engine_token(self._engine))
        fmt = to_cstring(format_token(self._output_format))
        text = to_cstring(graph_text)
        if self._require_trailing_newline and not graph_text.endswith("\n"):
            raise ParseError("graph text does not end with a newline")

        with self._lock:
            gvc = self._handle
            if gvc is None:
                raise ContextError("render called on a closed GraphvizContext")
            data = self._render_locked(gvc, text, engine, fmt)

        logger.debug(
            "Rendered %d bytes (engine=%s, format=%s)",
            len(data),
            engine.decode(),
            fmt.decode(),
        )
        self._deliver(data)
        return data

    def _render_locked(self, gvc: Handle, text: bytes, engine: bytes, fmt: bytes) -> bytes:
        native = self._native
        with OutputPipe.acquire(native, capacity=self._pipe_capacity) as pipe:
            graph = native.ag_memread(text)
            if not graph:
                raise ParseError()
            try:
                if native.gv_layout(gvc, graph, engine) == -1:
                    raise LayoutError(f"gvLayout failed (engine={engine.decode()})")
                try:
                    if native.gv_render(gvc, graph, fmt, pipe.write.stream) == -1:
                        raise RenderError(f"gvRender failed (format={fmt.decode()})")
                finally:
                    native.gv_free_layout(gvc, graph)
            finally:
                native.ag_close(graph)
            return pipe.drain_and_close()

    def _deliver(self, data: bytes) -> None:
        location = self.output_location
        if location.kind is not LocationKind.FILE:
            return
        path = location.path
        assert path is not None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise OutputWriteError(f"failed to write {path}: {exc}") from exc

    # --- teardown ---

    def close(self) -> None:
        """Release the native context. Idempotent."""
        with self._lock:
            handle, self._handle = self._handle, None
        if handle is None:
            return
        self._native.gv_free_context(handle)
        logger.debug("Released native context")

    def __enter__(self) -> GraphvizContext:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_handle", None) is not None:
            self.close()
