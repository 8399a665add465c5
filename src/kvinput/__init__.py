"""kvinput — ordered key/value editing model with a scriptable CLI."""

__version__ = "0.1.0"
