"""A renderer-style tool counting the words in each chapter of a book."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from bookwright.book import Book, Chapter

__all__ = ["OddWordCountError", "WordcountConfig", "count_words", "word_counts"]


class OddWordCountError(Exception):
    """Raised when odd word counts are denied and a chapter has one."""

    def __init__(self, chapter: str, count: int) -> None:
        super().__init__(f"{chapter} has an odd number of words!")
        self.chapter = chapter
        self.count = count


@dataclass
class WordcountConfig:
    """Settings from the ``output.wordcount`` table."""

    ignores: list[str] = field(default_factory=list)
    deny_odds: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> WordcountConfig:
        """Build the settings from a table with kebab-case keys; missing keys default."""
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValueError("wordcount settings must be a table")
        ignores = data.get("ignores", [])
        if not isinstance(ignores, list) or not all(isinstance(i, str) for i in ignores):
            raise ValueError("ignores must be a list of strings")
        deny_odds = data.get("deny-odds", False)
        if not isinstance(deny_odds, bool):
            raise ValueError("deny-odds must be a boolean")
        return cls(ignores=list(ignores), deny_odds=deny_odds)


def count_words(chapter: Chapter) -> int:
    """The number of whitespace-separated words in a chapter's content."""
    return len(chapter.content.split())


def word_counts(book: Book, config: WordcountConfig | None = None) -> Iterator[tuple[str, int]]:
    """Yield ``(chapter name, word count)`` for each chapter not ignored, depth-first.

    With ``deny_odds`` set, :class:`OddWordCountError` is raised right after an odd
    count has been yielded.
    """
    config = config or WordcountConfig()
    for item in book:
        if not isinstance(item, Chapter) or item.name in config.ignores:
            continue
        count = count_words(item)
        yield item.name, count
        if config.deny_odds and count % 2 == 1:
            raise OddWordCountError(item.name, count)