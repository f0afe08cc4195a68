"""ctypes bindings, output pipe, and the owned Graphviz context."""

from gvsafe.infrastructure.graphviz.context import GraphvizContext
from gvsafe.infrastructure.graphviz.library import NativeLibrary, load_native, to_cstring
from gvsafe.infrastructure.graphviz.pipe import OutputPipe

__all__ = ["GraphvizContext", "NativeLibrary", "OutputPipe", "load_native", "to_cstring"]
