"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults are baked here, kvinput.toml only holds
overrides. An empty file (or none at all) is a valid configuration.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from kvinput.services._helpers import parse_keys

# --- kvinput.toml sections ---


class EditorConfig(BaseModel):
    """[editor] section — the model's own settings."""

    model_config = {"frozen": True}

    debounce_ms: int = Field(default=300, ge=0)
    use_types: bool = True
    keys: list[str] | None = None
    meta: dict[str, list[Any]] = Field(default_factory=dict)

    @field_validator("keys", mode="before")
    @classmethod
    def _split_keys(cls, value: Any) -> list[str] | None:
        """Accept a list or a comma-separated string; empty lifts the cap."""
        return parse_keys(value)


class DisplayConfig(BaseModel):
    """[display] section — presentation only."""

    model_config = {"frozen": True}

    title: str = ""
    key_title: str = ""
    value_title: str = ""


class KvConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    editor: EditorConfig = Field(default_factory=EditorConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
