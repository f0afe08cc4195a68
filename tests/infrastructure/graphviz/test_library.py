"""Tests for the ctypes binding helpers."""

from __future__ import annotations

import ctypes.util

import pytest

from gvsafe.domain.errors import CStringError, LibraryNotFoundError
from gvsafe.infrastructure.graphviz import library
from gvsafe.infrastructure.graphviz.library import LibraryPaths, NativeLibrary, to_cstring


class TestToCString:
    def test_encodes_utf8(self) -> None:
        assert to_cstring("digraph { é }\n") == "digraph { é }\n".encode()

    def test_empty_string_is_allowed(self) -> None:
        assert to_cstring("") == b""

    def test_embedded_nul_rejected(self) -> None:
        with pytest.raises(CStringError, match="NUL"):
            to_cstring("digraph {\x00}\n")

    def test_unencodable_surrogate_rejected(self) -> None:
        with pytest.raises(CStringError) as info:
            to_cstring("bad \ud800 surrogate")
        assert isinstance(info.value.__cause__, UnicodeEncodeError)


class TestLoad:
    def test_missing_library_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(ctypes.util, "find_library", lambda name: None)
        with pytest.raises(LibraryNotFoundError, match="libgvc"):
            NativeLibrary.load()

    def test_missing_libc_message(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(ctypes.util, "find_library", lambda name: None)
        with pytest.raises(LibraryNotFoundError, match="C runtime"):
            library._open(None, "c")

    def test_unloadable_library_raises(self) -> None:
        with pytest.raises(LibraryNotFoundError, match="failed to load"):
            NativeLibrary.load(LibraryPaths(gvc="/nonexistent/libgvc.so.999"))

    def test_explicit_paths_are_hashable_cache_keys(self) -> None:
        assert hash(LibraryPaths(gvc="a")) == hash(LibraryPaths(gvc="a"))
