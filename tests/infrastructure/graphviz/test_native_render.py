"""Integration tests against the installed Graphviz libraries."""

from __future__ import annotations

from pathlib import Path

import pytest

from gvsafe.domain.errors import ParseError, RenderError
from gvsafe.domain.types import Engine, OutputFormat, OutputLocation
from gvsafe.infrastructure.graphviz.context import GraphvizContext
from tests.conftest import GRAPH, HAS_GRAPHVIZ, OTHER_GRAPH

pytestmark = [
    pytest.mark.native,
    pytest.mark.skipif(not HAS_GRAPHVIZ, reason="Graphviz shared libraries not installed"),
]

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def png_context() -> GraphvizContext:
    ctx = GraphvizContext(Engine.DOT, OutputFormat.PNG)
    yield ctx
    ctx.close()


class TestNativeRender:
    def test_png_has_magic_header(self, png_context: GraphvizContext) -> None:
        data = png_context.render(GRAPH)
        assert data.startswith(PNG_MAGIC)

    def test_missing_newline_is_parse_error(self, png_context: GraphvizContext) -> None:
        with pytest.raises(ParseError, match="newline"):
            png_context.render(GRAPH.rstrip("\n"))

    def test_malformed_graph_is_parse_error(self, png_context: GraphvizContext) -> None:
        with pytest.raises(ParseError):
            png_context.render("digraph { a -> }\n")

    def test_empty_text_is_parse_error(self, png_context: GraphvizContext) -> None:
        with pytest.raises(ParseError):
            png_context.render("\n")

    def test_repeated_failures_then_success(self, png_context: GraphvizContext) -> None:
        # Each failed call must release its pipe; leaking fds would exhaust
        # the process limit well before the final render.
        for _ in range(500):
            with pytest.raises(ParseError):
                png_context.render("digraph {\n")
        assert png_context.render(GRAPH).startswith(PNG_MAGIC)

    def test_sequential_renders_do_not_mix(self, png_context: GraphvizContext) -> None:
        png_context.set_output_format(OutputFormat.DOT)
        first = png_context.render(GRAPH)
        second = png_context.render(OTHER_GRAPH)
        assert b"a -> b" in first and b"x -> y" not in first
        assert b"x -> y" in second and b"a -> b" not in second

    def test_deterministic_output(self, png_context: GraphvizContext) -> None:
        png_context.set_output_format(OutputFormat.PLAIN)
        assert png_context.render(GRAPH) == png_context.render(GRAPH)

    def test_format_switch(self, png_context: GraphvizContext) -> None:
        png = png_context.render(GRAPH)
        svg = png_context.set_output_format(OutputFormat.SVG).render(GRAPH)
        assert png.startswith(PNG_MAGIC)
        assert b"<svg" in svg

    @pytest.mark.parametrize("engine", list(Engine))
    def test_every_engine_lays_out(self, engine: Engine) -> None:
        with GraphvizContext(engine, OutputFormat.PLAIN) as ctx:
            data = ctx.render(GRAPH)
        assert data.startswith(b"graph ")

    @pytest.mark.parametrize("fmt", list(OutputFormat))
    def test_every_format_renders(self, fmt: OutputFormat) -> None:
        with GraphvizContext(Engine.DOT, fmt) as ctx:
            try:
                data = ctx.render(GRAPH)
            except RenderError:
                pytest.skip(f"installed Graphviz has no {fmt} renderer plugin")
        assert data

    def test_large_output_completes(self, png_context: GraphvizContext) -> None:
        nodes = "".join(f"  n{i} -> n{i + 1} [label=\"edge {i}\"];\n" for i in range(3000))
        png_context.set_output_format(OutputFormat.SVG)
        data = png_context.render(f"digraph big {{\n{nodes}}}\n")
        assert len(data) > 1024 * 1024
        assert data.rstrip().endswith(b"</svg>")

    def test_file_location(self, png_context: GraphvizContext, tmp_path: Path) -> None:
        target = tmp_path / "graph.png"
        data = png_context.set_output_location(OutputLocation.file(target)).render(GRAPH)
        assert target.read_bytes() == data

    def test_close_without_render(self) -> None:
        GraphvizContext(Engine.DOT, OutputFormat.PNG).close()
