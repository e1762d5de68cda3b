"""Choosing the renderers for a book and which preprocessors run for each of them."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from bookwright.preprocessing import (
    COMMAND_PREFIX,
    DEFAULT_PREPROCESSORS,
    Preprocessor,
    config_get,
)

__all__ = [
    "BUILTIN_RENDERERS",
    "RendererSpec",
    "determine_renderers",
    "preprocessor_should_run",
]

BUILTIN_RENDERERS: tuple[str, ...] = ("html", "markdown")


@dataclass(frozen=True)
class RendererSpec:
    """A renderer selected to run: a built-in one, or an external command."""

    name: str
    command: str | None = None

    @property
    def is_builtin(self) -> bool:
        """Whether this renderer is provided by the package itself."""
        return self.command is None


def _custom_renderer(key: str, table: Any) -> RendererSpec:
    command = table.get("command") if isinstance(table, Mapping) else None
    if not isinstance(command, str):
        command = f"{COMMAND_PREFIX}{key}"
    return RendererSpec(key, command)


def determine_renderers(config: Mapping[str, Any]) -> list[RendererSpec]:
    """Work out the renderers from the ``output`` table, defaulting to HTML."""
    output = config_get(config, "output")
    renderers: list[RendererSpec] = []
    if isinstance(output, Mapping):
        for key, table in output.items():
            if key in BUILTIN_RENDERERS:
                renderers.append(RendererSpec(key))
            else:
                renderers.append(_custom_renderer(key, table))
    return renderers or [RendererSpec("html")]


def _use_default_preprocessors(config: Mapping[str, Any]) -> bool:
    value = config_get(config, "build.use-default-preprocessors")
    return True if value is None else bool(value)


def preprocessor_should_run(
    preprocessor: Preprocessor, renderer_name: str, config: Mapping[str, Any]
) -> bool:
    """Whether ``preprocessor`` runs for ``renderer_name``.

    Default preprocessors run whenever they support the renderer (if defaults are
    enabled). Otherwise an explicit ``preprocessor.<name>.renderers`` list decides,
    falling back to the preprocessor's own ``supports_renderer``.
    """
    if _use_default_preprocessors(config) and preprocessor.name in DEFAULT_PREPROCESSORS:
        return preprocessor.supports_renderer(renderer_name)

    explicit = config_get(config, f"preprocessor.{preprocessor.name}.renderers")
    if isinstance(explicit, list):
        return any(isinstance(name, str) and name == renderer_name for name in explicit)

    return preprocessor.supports_renderer(renderer_name)