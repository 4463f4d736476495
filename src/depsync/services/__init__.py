"""Service layer — pipeline stages and ServiceResult-returning services.

Services may import from domain, config, and infrastructure layers.
They must never import from commands or output.
"""
