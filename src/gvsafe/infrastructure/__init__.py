"""Infrastructure layer — the native Graphviz boundary.

This layer depends on the stdlib (ctypes, os) and the domain layer.
It must never import from services, commands, or output.
"""
