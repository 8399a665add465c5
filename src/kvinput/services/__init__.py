"""Service layer — the editing model and the CLI-facing document service.

Services may import from the domain layer and plugins.
They must never import from commands or output.
"""
