"""Domain layer — engine/format types and the error hierarchy.

This layer depends only on the stdlib.
It must never import from services, infrastructure, commands, or config.
"""
