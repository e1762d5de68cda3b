"""Parser for ``SUMMARY.md`` files, describing the layout of a book."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import PurePath

from markdown_it import MarkdownIt
from markdown_it.token import Token

from bookwright.items import (
    Link,
    PartTitle,
    SectionNumber,
    Separator,
    Summary,
    SummaryItem,
)

__all__ = ["SummaryParseError", "SummaryParser", "parse_summary"]

log = logging.getLogger(__name__)


class SummaryParseError(ValueError):
    """Raised when a ``SUMMARY.md`` cannot be parsed."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        super().__init__(message)
        self.line = line
        self.column = column


class _Kind(Enum):
    START = auto()
    END = auto()
    TEXT = auto()
    CODE = auto()
    SOFT_BREAK = auto()
    HARD_BREAK = auto()
    RULE = auto()
    HTML = auto()


class _Tag(Enum):
    PARAGRAPH = auto()
    HEADING = auto()
    LIST = auto()
    ITEM = auto()
    BLOCKQUOTE = auto()
    CODE_BLOCK = auto()
    LINK = auto()
    IMAGE = auto()
    EMPHASIS = auto()
    STRONG = auto()
    STRIKETHROUGH = auto()


@dataclass(frozen=True)
class _Event:
    kind: _Kind
    tag: _Tag | None = None
    level: int = 0
    href: str = ""
    text: str = ""

    def is_start(self, tag: _Tag, level: int | None = None) -> bool:
        return (
            self.kind is _Kind.START
            and self.tag is tag
            and (level is None or self.level == level)
        )

    def is_end(self, tag: _Tag) -> bool:
        return self.kind is _Kind.END and self.tag is tag

    def closing(self) -> _Event:
        return _Event(_Kind.END, self.tag, self.level)


_TAGS = {
    "paragraph": _Tag.PARAGRAPH,
    "heading": _Tag.HEADING,
    "bullet_list": _Tag.LIST,
    "ordered_list": _Tag.LIST,
    "list_item": _Tag.ITEM,
    "blockquote": _Tag.BLOCKQUOTE,
    "link": _Tag.LINK,
    "em": _Tag.EMPHASIS,
    "strong": _Tag.STRONG,
    "s": _Tag.STRIKETHROUGH,
}


def _make_markdown() -> MarkdownIt:
    md = MarkdownIt("commonmark")
    # Keep link destinations exactly as written (apart from unescaping).
    md.validateLink = lambda url: True
    md.normalizeLink = lambda url: url
    return md


_MARKDOWN = _make_markdown()


def _tag_event(token: Token) -> _Event | None:
    if token.nesting == 0:
        return None
    base = token.type.removesuffix("_open").removesuffix("_close")
    tag = _TAGS.get(base)
    if tag is None:
        return None
    level = int(token.tag[1:]) if tag is _Tag.HEADING else 0
    if token.nesting < 0:
        return _Event(_Kind.END, tag, level)
    href = ""
    if tag is _Tag.LINK:
        value = token.attrGet("href")
        href = "" if value is None else str(value)
    return _Event(_Kind.START, tag, level, href=href)


def _inline_events(children: Iterable[Token]) -> Iterator[_Event]:
    for child in children:
        match child.type:
            case "text" | "text_special":
                yield _Event(_Kind.TEXT, text=child.content)
            case "code_inline":
                yield _Event(_Kind.CODE, text=child.content)
            case "softbreak":
                yield _Event(_Kind.SOFT_BREAK)
            case "hardbreak":
                yield _Event(_Kind.HARD_BREAK)
            case "html_inline":
                yield _Event(_Kind.HTML, text=child.content)
            case "image":
                yield _Event(_Kind.START, _Tag.IMAGE)
                yield from _inline_events(child.children or [])
                yield _Event(_Kind.END, _Tag.IMAGE)
            case _:
                event = _tag_event(child)
                if event is not None:
                    yield event


def _block_events(token: Token) -> Iterator[_Event]:
    if token.hidden:
        return
    match token.type:
        case "inline":
            yield from _inline_events(token.children or [])
        case "hr":
            yield _Event(_Kind.RULE)
        case "html_block":
            yield _Event(_Kind.HTML, text=token.content)
        case "code_block" | "fence":
            yield _Event(_Kind.START, _Tag.CODE_BLOCK)
            yield _Event(_Kind.TEXT, text=token.content)
            yield _Event(_Kind.END, _Tag.CODE_BLOCK)
        case _:
            event = _tag_event(token)
            if event is not None:
                yield event


def _event_stream(text: str) -> Iterator[tuple[_Event, int]]:
    """Yield markdown events paired with the offset of the line they start on."""
    line_starts = [0, *(match.end() for match in re.finditer("\n", text))]
    offset = 0
    for token in _MARKDOWN.parse(text):
        if token.map:
            offset = line_starts[min(token.map[0], len(line_starts) - 1)]
        for event in _block_events(token):
            yield event, offset


def _stringify(events: Iterable[_Event]) -> str:
    """Strip the styling from events, keeping just the plain text."""
    parts = []
    for event in events:
        if event.kind in (_Kind.TEXT, _Kind.CODE):
            parts.append(event.text)
        elif event.kind is _Kind.SOFT_BREAK:
            parts.append(" ")
    return "".join(parts)


def _update_section_numbers(items: Iterable[SummaryItem], level: int, by: int) -> None:
    for item in items:
        if isinstance(item, Link):
            if item.number is not None:
                number = item.number
                item.number = SectionNumber(
                    (*number[:level], number[level] + by, *number[level + 1 :])
                )
            _update_section_numbers(item.nested_items, level, by)


def _last_link(items: list[SummaryItem]) -> Link:
    for item in reversed(items):
        if isinstance(item, Link):
            return item
    raise SummaryParseError(
        "Unable to get last link because the list of SummaryItems doesn't contain any Links"
    )


@contextmanager
def _context(message: str) -> Iterator[None]:
    try:
        yield
    except SummaryParseError as exc:
        raise SummaryParseError(f"{message}: {exc}", exc.line, exc.column) from exc


class SummaryParser:
    """A recursive-descent parser turning ``SUMMARY.md`` text into a :class:`Summary`."""

    def __init__(self, text: str) -> None:
        self._src = text
        self._stream = _event_stream(text)
        self._offset = 0
        self._back: _Event | None = None

    def _next_event(self) -> _Event | None:
        if self._back is not None:
            event, self._back = self._back, None
            return event
        try:
            event, self._offset = next(self._stream)
        except StopIteration:
            return None
        return event

    def _push_back(self, event: _Event) -> None:
        assert self._back is None, "only one event can be pushed back"
        self._back = event

    def _collect_until(self, delimiter: _Event) -> list[_Event]:
        events = []
        for event, _offset in self._stream:
            if event == delimiter:
                break
            events.append(event)
        else:
            log.debug("Reached end of stream without finding %s", delimiter)
        return events

    def _current_location(self) -> tuple[int, int]:
        previous = self._src[: self._offset]
        line = previous.count("\n") + 1
        start_of_line = max(previous.rfind("\n"), 0)
        column = len(self._src[start_of_line : self._offset])
        return line, column

    def _parse_error(self, message: str) -> SummaryParseError:
        line, column = self._current_location()
        return SummaryParseError(
            f"failed to parse SUMMARY.md line {line}, column {column}: {message}",
            line,
            column,
        )

    def parse(self) -> Summary:
        """Parse the whole text into a :class:`Summary`."""
        title = self.parse_title()
        with _context("There was an error parsing the prefix chapters"):
            prefix = self.parse_affix(True)
        with _context("There was an error parsing the numbered chapters"):
            numbered = self.parse_parts()
        with _context("There was an error parsing the suffix chapters"):
            suffix = self.parse_affix(False)
        return Summary(title, prefix, numbered, suffix)

    def parse_title(self) -> str | None:
        """Parse a leading level-one heading, skipping HTML such as comments."""
        while (event := self._next_event()) is not None:
            if event.is_start(_Tag.HEADING, 1):
                return _stringify(self._collect_until(event.closing()))
            if event.kind is _Kind.HTML:
                continue
            self._push_back(event)
            return None
        return None

    def parse_affix(self, is_prefix: bool) -> list[SummaryItem]:
        """Parse the unnumbered chapters before (prefix) or after (suffix) the numbered ones."""
        items: list[SummaryItem] = []
        while (event := self._next_event()) is not None:
            if event.is_start(_Tag.LIST) or event.is_start(_Tag.HEADING, 1):
                if not is_prefix:
                    raise self._parse_error("Suffix chapters cannot be followed by a list")
                self._push_back(event)
                break
            if event.is_start(_Tag.LINK):
                items.append(self._parse_link(event.href))
            elif event.kind is _Kind.RULE:
                items.append(Separator())
        return items

    def parse_parts(self) -> list[SummaryItem]:
        """Parse the numbered chapters, optionally broken into titled parts."""
        parts: list[SummaryItem] = []
        root_number = SectionNumber()
        root_items = 0
        while (event := self._next_event()) is not None:
            if event.is_start(_Tag.PARAGRAPH):
                self._push_back(event)
                break
            title: str | None = None
            if event.is_start(_Tag.HEADING, 1):
                title = _stringify(self._collect_until(event.closing()))
            else:
                self._push_back(event)
            with _context("There was an error parsing the numbered chapters"):
                chapters = self.parse_numbered(root_items, root_number)
            root_items += sum(isinstance(item, Link) for item in chapters)
            if title is not None:
                parts.append(PartTitle(title))
            parts.extend(chapters)
        return parts

    def parse_numbered(
        self, root_items: int = 0, root_number: SectionNumber | None = None
    ) -> list[SummaryItem]:
        """Parse one part of numbered chapters, numbering roots after ``root_items``."""
        root_number = SectionNumber() if root_number is None else root_number
        items: list[SummaryItem] = []
        first = True
        while (event := self._next_event()) is not None:
            if event.is_start(_Tag.PARAGRAPH):
                if not first:
                    self._push_back(event)
                    break
            elif event.is_start(_Tag.HEADING, 1):
                self._push_back(event)
                break
            elif event.is_start(_Tag.LIST):
                self._push_back(event)
                bunch = self._parse_nested_numbered(root_number)
                # Roots after a separator or comment restart at 1; shift them on.
                _update_section_numbers(bunch, 0, root_items)
                root_items += len(bunch)
                items.extend(bunch)
            elif event.kind is _Kind.START:
                closing = event.closing()
                while (skipped := self._next_event()) is not None and skipped != closing:
                    pass
            elif event.kind is _Kind.RULE:
                items.append(Separator())
            first = False
        return items

    def _parse_nested_numbered(self, parent: SectionNumber) -> list[SummaryItem]:
        items: list[SummaryItem] = []
        while (event := self._next_event()) is not None:
            if event.is_start(_Tag.ITEM):
                items.append(self._parse_nested_item(parent, len(items)))
            elif event.is_start(_Tag.LIST):
                if not items:
                    continue
                last = _last_link(items)
                last.nested_items = self._parse_nested_numbered(last.number or SectionNumber())
            elif event.is_end(_Tag.LIST):
                break
        return items

    def _parse_nested_item(self, parent: SectionNumber, existing: int) -> Link:
        while True:
            event = self._next_event()
            if event is not None and event.is_start(_Tag.PARAGRAPH):
                continue
            if event is not None and event.is_start(_Tag.LINK):
                link = self._parse_link(event.href)
                link.number = parent.child(existing + 1)
                return link
            log.warning("Expected a start of a link, actually got %r", event)
            raise self._parse_error(
                "The link items for nested chapters must only contain a hyperlink"
            )

    def _parse_link(self, href: str) -> Link:
        href = href.replace("%20", " ")
        name = _stringify(self._collect_until(_Event(_Kind.END, _Tag.LINK)))
        return Link(name, PurePath(href) if href else None)


def parse_summary(text: str) -> Summary:
    """Parse the text of a ``SUMMARY.md`` file."""
    return SummaryParser(text).parse()