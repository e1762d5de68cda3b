"""Preprocessors and the logic deciding which ones run, and in what order."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass
from graphlib import CycleError, TopologicalSorter
from typing import Any, ClassVar

from bookwright.book import Book

__all__ = [
    "COMMAND_PREFIX",
    "DEFAULT_PREPROCESSORS",
    "NopPreprocessor",
    "Preprocessor",
    "PreprocessorConfigError",
    "PreprocessorSpec",
    "config_get",
    "determine_preprocessors",
    "get_custom_preprocessor_cmd",
]

log = logging.getLogger(__name__)

DEFAULT_PREPROCESSORS: tuple[str, ...] = ("links", "index")
COMMAND_PREFIX = "bookwright-"


class PreprocessorConfigError(ValueError):
    """Raised when the ``preprocessor`` configuration is invalid."""


class Preprocessor(ABC):
    """Something that transforms a book before it is rendered."""

    name: ClassVar[str]

    @abstractmethod
    def run(self, config: Mapping[str, Any], book: Book) -> Book:
        """Process ``book`` under ``config`` and return the result."""

    def supports_renderer(self, renderer: str) -> bool:
        """Whether this preprocessor should run for ``renderer``."""
        return True


class NopPreprocessor(Preprocessor):
    """A preprocessor that hands the book back unchanged."""

    name = "nop-preprocessor"

    def run(self, config: Mapping[str, Any], book: Book) -> Book:
        settings = config_get(config, f"preprocessor.{self.name}")
        if isinstance(settings, Mapping) and "blow-up" in settings:
            raise RuntimeError("Boom!!1!")
        return book

    def supports_renderer(self, renderer: str) -> bool:
        return renderer != "not-supported"


@dataclass(frozen=True)
class PreprocessorSpec:
    """A preprocessor selected to run: a built-in one, or an external command."""

    name: str
    command: str | None = None


def config_get(config: Mapping[str, Any], key: str) -> Any:
    """Look up a dotted ``key`` such as ``output.html.theme``; ``None`` if absent."""
    value: Any = config
    for part in key.split("."):
        if not isinstance(value, Mapping) or part not in value:
            return None
        value = value[part]
    return value


def _use_default_preprocessors(config: Mapping[str, Any]) -> bool:
    value = config_get(config, "build.use-default-preprocessors")
    return True if value is None else bool(value)


def get_custom_preprocessor_cmd(key: str, table: Any) -> str:
    """The command for a custom preprocessor, defaulting to a prefixed name."""
    if isinstance(table, Mapping):
        command = table.get("command")
        if isinstance(command, str):
            return command
    return f"{COMMAND_PREFIX}{key}"


def _string_list(table: Mapping[str, Any], name: str, field: str) -> list[str]:
    value = table.get(field)
    if value is None:
        return []
    if not isinstance(value, list):
        raise PreprocessorConfigError(f"Expected preprocessor.{name}.{field} to be an array")
    if not all(isinstance(entry, str) for entry in value):
        raise PreprocessorConfigError(
            f"Expected preprocessor.{name}.{field} to contain strings"
        )
    return value


def determine_preprocessors(config: Mapping[str, Any]) -> list[PreprocessorSpec]:
    """Work out which preprocessors to run and in which order."""
    use_defaults = _use_default_preprocessors(config)
    sorter: TopologicalSorter[str] = TopologicalSorter()

    if use_defaults:
        for name in DEFAULT_PREPROCESSORS:
            sorter.add(name)

    raw_table = config_get(config, "preprocessor")
    table: Mapping[str, Any] = raw_table if isinstance(raw_table, Mapping) else {}

    def exists(name: str) -> bool:
        return (use_defaults and name in DEFAULT_PREPROCESSORS) or name in table

    for name, settings in table.items():
        sorter.add(name)
        settings = settings if isinstance(settings, Mapping) else {}

        for later in _string_list(settings, name, "before"):
            if exists(later):
                sorter.add(later, name)
            else:
                log.warning(
                    'preprocessor.%s.after contains "%s", which was not found', name, later
                )

        for earlier in _string_list(settings, name, "after"):
            if exists(earlier):
                sorter.add(name, earlier)
            else:
                log.warning(
                    'preprocessor.%s.before contains "%s", which was not found', name, earlier
                )

    try:
        sorter.prepare()
    except CycleError as exc:
        raise PreprocessorConfigError("Cyclic dependency detected in preprocessors") from exc

    specs: list[PreprocessorSpec] = []
    while sorter.is_active():
        ready = sorted(sorter.get_ready())
        for name in ready:
            if name in DEFAULT_PREPROCESSORS:
                specs.append(PreprocessorSpec(name))
            else:
                specs.append(
                    PreprocessorSpec(name, get_custom_preprocessor_cmd(name, table[name]))
                )
        sorter.done(*ready)
    return specs