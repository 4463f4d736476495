"""Domain layer — types, rules, and models.

This layer depends only on the standard library.
It must never import from services, infrastructure, commands, or config.
"""
