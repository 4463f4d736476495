"""Infrastructure layer — storage, file walking, graph engine.

This layer depends on stdlib and third-party libs (NetworkX).
It may read domain value types but must never import from services,
commands, or output.
"""
