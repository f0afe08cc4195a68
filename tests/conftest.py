"""Shared pytest fixtures and test helpers for gvsafe tests."""

from __future__ import annotations

import ctypes.util
import itertools
import os
import threading
import time
from collections.abc import Iterator
from pathlib import Path
from typing import BinaryIO

import pytest
from click.testing import CliRunner

GRAPH = "digraph G {\n  a -> b;\n}\n"
OTHER_GRAPH = "digraph H {\n  x -> y;\n  y -> z;\n}\n"

HAS_GRAPHVIZ = (
    ctypes.util.find_library("gvc") is not None and ctypes.util.find_library("cgraph") is not None
)


class FakeNative:
    """In-process stand-in for NativeLibrary that records every native call.

    Tracks live contexts, graphs, layouts and streams so tests can assert
    that each render released everything it allocated, in the right order.
    Rendered output is ``b"<format>|<engine>|"`` followed by the graph text,
    then ``render_padding`` NUL bytes.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.violations: list[str] = []
        self.contexts: set[int] = set()
        self.graphs: dict[int, bytes] = {}
        self.layouts: dict[int, bytes] = {}
        self.streams: dict[int, BinaryIO] = {}
        self.context_available = True
        self.fdopen_available = True
        self.layout_status = 0
        self.render_status = 0
        self.fclose_status = 0
        self.layout_delay = 0.0
        self.render_padding = 0
        self._in_flight = 0
        self._guard = threading.Lock()
        self._ids = itertools.count(0x1000)

    @property
    def leaked(self) -> bool:
        return bool(self.graphs or self.layouts or self.streams)

    # --- context ---

    def gv_context(self) -> int | None:
        self.calls.append("gvContext")
        if not self.context_available:
            return None
        handle = next(self._ids)
        self.contexts.add(handle)
        return handle

    def gv_free_context(self, gvc: int) -> int:
        self.calls.append("gvFreeContext")
        if gvc not in self.contexts:
            self.violations.append(f"gvFreeContext on unknown context {gvc:#x}")
            return -1
        self.contexts.remove(gvc)
        return 0

    # --- graph ---

    def ag_memread(self, text: bytes) -> int | None:
        self.calls.append("agmemread")
        body = text.strip()
        if not body or b"{" not in body or body.count(b"{") != body.count(b"}"):
            return None
        handle = next(self._ids)
        self.graphs[handle] = text
        return handle

    def ag_close(self, graph: int) -> int:
        self.calls.append("agclose")
        if graph in self.layouts:
            self.violations.append("agclose before gvFreeLayout")
        if self.graphs.pop(graph, None) is None:
            self.violations.append(f"agclose on unknown graph {graph:#x}")
            return -1
        return 0

    # --- layout / render ---

    def gv_layout(self, gvc: int, graph: int, engine: bytes) -> int:
        self.calls.append("gvLayout")
        with self._guard:
            self._in_flight += 1
            if self._in_flight > 1:
                self.violations.append("concurrent gvLayout on one context")
        try:
            if self.layout_delay:
                time.sleep(self.layout_delay)
            if gvc not in self.contexts:
                self.violations.append("gvLayout on released context")
            if self.layout_status:
                return self.layout_status
            self.layouts[graph] = engine
            return 0
        finally:
            with self._guard:
                self._in_flight -= 1

    def gv_free_layout(self, gvc: int, graph: int) -> int:
        self.calls.append("gvFreeLayout")
        self.layouts.pop(graph, None)
        return 0

    def gv_render(self, gvc: int, graph: int, fmt: bytes, stream: int) -> int:
        self.calls.append("gvRender")
        if self.render_status:
            return self.render_status
        out = self.streams[stream]
        out.write(fmt + b"|" + self.layouts[graph] + b"|" + self.graphs[graph])
        if self.render_padding:
            out.write(b"\0" * self.render_padding)
        return 0

    # --- stdio ---

    def fdopen(self, fd: int, mode: bytes) -> int | None:
        self.calls.append("fdopen")
        if not self.fdopen_available:
            return None
        handle = next(self._ids)
        self.streams[handle] = os.fdopen(fd, "wb")
        return handle

    def fclose(self, stream: int) -> int:
        self.calls.append("fclose")
        out = self.streams.pop(stream, None)
        if out is None:
            self.violations.append(f"fclose on unknown stream {stream:#x}")
            return -1
        out.close()
        return self.fclose_status


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def fake_native() -> FakeNative:
    """Fresh recording fake of the native library."""
    return FakeNative()


@pytest.fixture
def patched_native(fake_native: FakeNative, monkeypatch: pytest.MonkeyPatch) -> FakeNative:
    """Make GraphvizContext load the fake instead of the real libraries."""
    monkeypatch.setattr(
        "gvsafe.infrastructure.graphviz.context.load_native",
        lambda *args, **kwargs: fake_native,
    )
    return fake_native


@pytest.fixture
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Run in an empty temp directory with no gvsafe config or env overrides."""
    for name in list(os.environ):
        if name.startswith("GVSAFE_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    yield tmp_path
