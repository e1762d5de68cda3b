"""The in-memory representation of a book and loading it from its source directory."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path, PurePath
from typing import TypeAlias

from bookwright.items import (
    Link,
    PartTitle,
    SectionNumber,
    Separator,
    Summary,
    SummaryItem,
)
from bookwright.summary import SummaryParseError, parse_summary

__all__ = [
    "Book",
    "BookError",
    "BookItem",
    "Chapter",
    "load_book",
    "load_book_from_disk",
    "load_chapter",
    "load_summary_item",
]

log = logging.getLogger(__name__)

_BOM = "\ufeff"


class BookError(Exception):
    """Raised when a book cannot be loaded from disk."""


@dataclass
class Chapter:
    """A chapter, usually backed by one markdown file, possibly with sub-chapters."""

    name: str
    content: str = ""
    number: SectionNumber | None = None
    sub_items: list[BookItem] = field(default_factory=list)
    path: PurePath | None = None
    source_path: PurePath | None = None
    parent_names: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.path is not None and not isinstance(self.path, PurePath):
            self.path = PurePath(self.path)
        if self.source_path is not None and not isinstance(self.source_path, PurePath):
            self.source_path = PurePath(self.source_path)
        if self.number is not None and not isinstance(self.number, SectionNumber):
            self.number = SectionNumber(self.number)

    @classmethod
    def new_draft(cls, name: str, parent_names: Iterable[str] = ()) -> Chapter:
        """Create a draft chapter: one with no source file and hence no content."""
        return cls(name=name, parent_names=list(parent_names))

    def is_draft_chapter(self) -> bool:
        """Whether the chapter has no source markdown file."""
        return self.path is None

    def __str__(self) -> str:
        if self.number is not None:
            return f"{self.number} {self.name}"
        return self.name


BookItem: TypeAlias = Chapter | Separator | PartTitle


@dataclass
class Book:
    """A tree of chapters, separators and part titles."""

    sections: list[BookItem] = field(default_factory=list)

    def __iter__(self) -> Iterator[BookItem]:
        """Iterate depth-first over every item, parents before their sub-items."""
        stack = list(reversed(self.sections))
        while stack:
            item = stack.pop()
            yield item
            if isinstance(item, Chapter):
                stack.extend(reversed(item.sub_items))

    def for_each(self, func: Callable[[BookItem], object]) -> None:
        """Apply ``func`` to every item, visiting sub-items before their parent."""
        _for_each(func, self.sections)

    def push_item(self, item: BookItem) -> Book:
        """Append an item to the book and return the book."""
        self.sections.append(item)
        return self


def _for_each(func: Callable[[BookItem], object], items: Iterable[BookItem]) -> None:
    for item in items:
        if isinstance(item, Chapter):
            _for_each(func, item.sub_items)
        func(item)


def _bracket_escape(text: str) -> str:
    return text.replace("[", "\\[").replace("]", "\\]")


def load_book(src_dir: str | PathLike[str], create_missing: bool = False) -> Book:
    """Load a book from its source directory, as laid out by its ``SUMMARY.md``."""
    src = Path(src_dir)
    summary_md = src / "SUMMARY.md"
    try:
        text = summary_md.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise BookError(f"Couldn't open SUMMARY.md in {str(src)!r} directory: {exc}") from exc

    try:
        summary = parse_summary(text)
    except SummaryParseError as exc:
        raise BookError(f"Summary parsing failed for file={str(summary_md)!r}: {exc}") from exc

    if create_missing:
        try:
            _create_missing(src, summary)
        except OSError as exc:
            raise BookError(f"Unable to create missing chapters: {exc}") from exc

    return load_book_from_disk(summary, src)


def _create_missing(src_dir: Path, summary: Summary) -> None:
    pending: list[SummaryItem] = list(summary.all_items())
    while pending:
        item = pending.pop()
        if not isinstance(item, Link):
            continue
        if item.location is not None:
            filename = src_dir / item.location
            if not filename.exists():
                filename.parent.mkdir(parents=True, exist_ok=True)
                log.debug("Creating missing file %s", filename)
                filename.write_text(f"# {_bracket_escape(item.name)}\n", encoding="utf-8")
        pending.extend(item.nested_items)


def load_book_from_disk(summary: Summary, src_dir: str | PathLike[str]) -> Book:
    """Load every chapter named by ``summary``, relative to ``src_dir``."""
    log.debug("Loading the book from disk")
    src = Path(src_dir)
    return Book([load_summary_item(item, src, []) for item in summary.all_items()])


def load_summary_item(
    item: SummaryItem, src_dir: str | PathLike[str], parent_names: Iterable[str] = ()
) -> BookItem:
    """Turn one summary entry into a book item, loading chapter files as needed."""
    match item:
        case Separator():
            return Separator()
        case PartTitle(title=title):
            return PartTitle(title)
        case Link():
            return load_chapter(item, src_dir, parent_names)
    raise TypeError(f"unexpected summary item: {item!r}")


def load_chapter(
    link: Link, src_dir: str | PathLike[str], parent_names: Iterable[str] = ()
) -> Chapter:
    """Load the chapter a link points at, together with its nested items."""
    src = Path(src_dir)
    parents = list(parent_names)

    if link.location is not None:
        log.debug("Loading %s (%s)", link.name, link.location)
        location = Path(link.location)
        if not location.is_absolute():
            location = src / location
        try:
            raw = location.read_bytes()
        except OSError as exc:
            raise BookError(f"Chapter file not found, {link.location}: {exc}") from exc
        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BookError(f'Unable to read "{link.name}" ({location}): {exc}') from exc
        content = content.removeprefix(_BOM)
        try:
            stripped = PurePath(location.relative_to(src))
        except ValueError as exc:
            raise BookError(f"Chapter {location} is not inside the book at {src}") from exc
        chapter = Chapter(
            name=link.name,
            content=content,
            path=stripped,
            source_path=stripped,
            parent_names=list(parents),
        )
    else:
        chapter = Chapter.new_draft(link.name, parents)

    chapter.number = link.number
    sub_parents = [*parents, link.name]
    chapter.sub_items = [
        load_summary_item(nested, src, sub_parents) for nested in link.nested_items
    ]
    return chapter