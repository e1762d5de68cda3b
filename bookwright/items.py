"""Building blocks of a parsed ``SUMMARY.md``: section numbers, links, separators and parts."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from itertools import chain
from pathlib import PurePath
from typing import TypeAlias


class SectionNumber(tuple[int, ...]):
    """A section number such as ``1.2.3``, stored as a tuple of integers."""

    __slots__ = ()

    def __new__(cls, parts: Iterable[int] = ()) -> SectionNumber:
        return super().__new__(cls, (int(part) for part in parts))

    def __str__(self) -> str:
        if not self:
            return "0"
        return "".join(f"{part}." for part in self)

    def __repr__(self) -> str:
        return f"SectionNumber({tuple(self)!r})"

    def child(self, index: int) -> SectionNumber:
        """Return the number of the ``index``-th child section (1-based)."""
        return SectionNumber((*self, index))


@dataclass
class Link:
    """An entry in ``SUMMARY.md`` such as ``[Some section](./path/to/file.md)``.

    A link without a location is a draft chapter.
    """

    name: str
    location: PurePath | None = None
    number: SectionNumber | None = None
    nested_items: list[SummaryItem] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.location is not None and not isinstance(self.location, PurePath):
            self.location = PurePath(self.location)
        if self.number is not None and not isinstance(self.number, SectionNumber):
            self.number = SectionNumber(self.number)


@dataclass(frozen=True)
class Separator:
    """A horizontal rule (``---``) separating chapters."""


@dataclass(frozen=True)
class PartTitle:
    """The title of a part grouping numbered chapters."""

    title: str


SummaryItem: TypeAlias = Link | Separator | PartTitle


@dataclass
class Summary:
    """A parsed ``SUMMARY.md``, describing how the book is laid out."""

    title: str | None = None
    prefix_chapters: list[SummaryItem] = field(default_factory=list)
    numbered_chapters: list[SummaryItem] = field(default_factory=list)
    suffix_chapters: list[SummaryItem] = field(default_factory=list)

    def all_items(self) -> Iterator[SummaryItem]:
        """Iterate over the top-level prefix, numbered and suffix items in order."""
        return chain(self.prefix_chapters, self.numbered_chapters, self.suffix_chapters)