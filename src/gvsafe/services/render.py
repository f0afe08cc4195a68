"""RenderService — render graph text through a GraphvizContext.

Bridges the library's exception-based API to ServiceResult for the CLI.
One context is created per service and reused across calls; call
:meth:`RenderService.close` (or use it as a context manager) to release it.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from gvsafe.domain.errors import GraphvizError
from gvsafe.domain.types import Engine, OutputFormat, OutputLocation
from gvsafe.infrastructure.graphviz.context import GraphvizContext
from gvsafe.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

    from gvsafe.config.settings import GvSettings
    from gvsafe.infrastructure.graphviz.library import NativeLibrary

logger = logging.getLogger(__name__)

_OP = "render"


def _failure(exc: GraphvizError, **detail: str) -> ServiceResult:
    return ServiceResult(
        ok=False,
        op=_OP,
        error=ServiceError(code=exc.code, message=exc.message, detail=dict(detail)),
    )


class RenderService:
    """Render operations with settings-driven defaults."""

    def __init__(self, settings: GvSettings, *, native: NativeLibrary | None = None) -> None:
        self._settings = settings
        self._native = native
        self._context: GraphvizContext | None = None

    def _get_context(self) -> GraphvizContext:
        if self._context is None:
            self._context = GraphvizContext.from_settings(self._settings, native=self._native)
        return self._context

    def render(
        self,
        graph_text: str,
        *,
        engine: str | None = None,
        output_format: str | None = None,
        output: Path | None = None,
        source: str = "<text>",
    ) -> ServiceResult:
        """Render *graph_text*; *engine*/*output_format* override settings.

        With *output*, the bytes are also written to that file.
        """
        try:
            resolved_engine = Engine.parse(engine or self._settings.render.engine)
            resolved_format = OutputFormat.parse(output_format or self._settings.render.format)
            gvc = self._get_context()
            location = OutputLocation.file(output) if output else OutputLocation.memory()
            gvc.set_engine(resolved_engine)
            gvc.set_output_format(resolved_format)
            gvc.set_output_location(location)

            started = time.perf_counter()
            data = gvc.render(graph_text)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        except GraphvizError as exc:
            logger.debug("Render of %s failed: %s", source, exc.code)
            return _failure(exc, source=source)

        summary: dict[str, object] = {
            "source": source,
            "engine": resolved_engine.value,
            "format": resolved_format.value,
            "bytes": len(data),
        }
        if output is not None:
            summary["output"] = str(output)
        return ServiceResult(
            ok=True,
            op=_OP,
            data=summary,
            payload=data,
            meta={"duration_ms": elapsed_ms},
        )

    def close(self) -> None:
        if self._context is not None:
            self._context.close()
            self._context = None

    def __enter__(self) -> RenderService:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
