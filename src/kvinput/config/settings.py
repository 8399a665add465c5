"""KvSettings: the merged view of flags, environment and kvinput.toml.

Sources, strongest first:

  1. keyword arguments (the root CLI group's flags)
  2. ``KVINPUT_*`` environment variables, ``__`` reaching into sections
     (``KVINPUT_EDITOR__DEBOUNCE_MS=0``)
  3. the TOML file picked by :func:`kvinput.config.discovery.find_config`
  4. the defaults baked into :mod:`kvinput.config.models`
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from kvinput.config.discovery import find_config, read_config_data
from kvinput.config.models import DisplayConfig, EditorConfig

if TYPE_CHECKING:
    from kvinput.output.formatters import OutputSettings

# pydantic-settings builds its sources in a classmethod, so the file chosen
# by from_cli() is handed over through this variable for one construction.
_toml_path: ContextVar[Path | None] = ContextVar("kvinput_toml_path", default=None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Top-level tables of a kvinput.toml, keyed by settings field name."""

    def __init__(self, settings_cls: type[BaseSettings], path: Path | None) -> None:
        super().__init__(settings_cls)
        self._tables = read_config_data(path) if path is not None and path.is_file() else {}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._tables.get(field_name), field_name, field_name in self._tables

    def __call__(self) -> dict[str, Any]:
        return self._tables


class KvSettings(BaseSettings):
    """Everything one CLI invocation needs to know, frozen at startup.

    ``config_path`` records which TOML file (if any) contributed.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "KVINPUT_",
        "env_nested_delimiter": "__",
    }

    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    editor: EditorConfig = Field(default_factory=EditorConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # No dotenv or secrets directory: kvinput.toml is the only file source.
        return init_settings, env_settings, TomlSettingsSource(settings_cls, _toml_path.get())

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        start: Path | None = None,
        **flags: Any,
    ) -> KvSettings:
        """Build settings for one invocation.

        An explicit *config_path* is used only if it names a file; it never
        falls back to discovery. Without one, kvinput.toml is searched for
        upward from *start*.
        """
        if config_path:
            explicit = Path(config_path)
            toml_path = explicit if explicit.is_file() else None
        else:
            toml_path = find_config(start)

        token = _toml_path.set(toml_path)
        try:
            return cls(config_path=toml_path, **flags)
        finally:
            _toml_path.reset(token)

    @property
    def output(self) -> OutputSettings:
        """The subset of flags the output layer reads."""
        from kvinput.output.formatters import OutputSettings

        return OutputSettings(json_output=self.json_output, quiet=self.quiet, verbose=self.verbose)
