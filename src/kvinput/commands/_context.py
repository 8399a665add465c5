"""AppContext — shared Click context for all commands.

Created once by the root CLI group and flows to all subcommands via
``@click.pass_obj``.  Provides lazy plugin loading and centralized
result emission (stdout/stderr routing + exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from kvinput.output.formatters import format_result

if TYPE_CHECKING:
    from kvinput.config.settings import KvSettings
    from kvinput.plugins.event_bus import EventBus
    from kvinput.services.document import DocumentService
    from kvinput.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Subcommands access it via ``@click.pass_obj``.  Plugins are loaded
    lazily on first use so ``--help`` and ``--version`` never touch
    entry points.
    """

    def __init__(self, settings: KvSettings) -> None:
        self.settings = settings
        self._event_bus: EventBus | None = None

        from kvinput.config.logging import configure_logging

        configure_logging(
            verbose=settings.verbose,
            quiet=settings.quiet,
            log_json=settings.log_json,
        )

        if settings.verbose:
            from kvinput.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def event_bus(self) -> EventBus:
        """The plugin event bus (created lazily on first access)."""
        if self._event_bus is None:
            from kvinput.plugins.event_bus import EventBus
            from kvinput.plugins.manager import PluginManager

            manager = PluginManager()
            manager.discover_and_load()
            self._event_bus = EventBus(manager)
        return self._event_bus

    def document_service(
        self,
        *,
        meta: str | None = None,
        keys: str | None = None,
        debounce: int | None = None,
        use_types: bool | None = None,
    ) -> DocumentService:
        """Build a DocumentService with per-invocation editor overrides."""
        from kvinput.services._helpers import parse_json_object, parse_keys
        from kvinput.services.document import DocumentService

        overrides: dict[str, Any] = {}
        if meta is not None:
            overrides["meta"] = parse_json_object(meta) or {}
        if keys is not None:
            overrides["keys"] = parse_keys(keys)
        if debounce is not None:
            overrides["debounce_ms"] = max(debounce, 0)
        if use_types is not None:
            overrides["use_types"] = use_types

        editor_config = self.settings.editor
        if overrides:
            editor_config = editor_config.model_copy(update=overrides)
        return DocumentService(editor_config, self.settings.display, event_bus=self.event_bus)

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success (``result.ok``): writes to stdout, returns normally.
          Warnings are emitted to stderr so they don't pollute piped output.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = self.settings.output
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(result.exit_code)
