"""Domain layer — values, row ordering, rows, and field descriptors.

This layer depends only on the standard library.
It must never import from services, plugins, commands, or config.
"""
