from pathlib import Path, PurePath

import pytest

from bookwright.book import (
    Book,
    BookError,
    Chapter,
    load_book,
    load_book_from_disk,
    load_chapter,
    load_summary_item,
)
from bookwright.items import Link, PartTitle, SectionNumber, Separator, Summary

DUMMY_SRC = """
# Dummy Chapter

this is some dummy text.

And here is some more text.
"""


@pytest.fixture
def dummy_link(tmp_path: Path) -> Link:
    chapter_path = tmp_path / "chapter_1.md"
    chapter_path.write_bytes(DUMMY_SRC.encode("utf-8"))
    return Link("Chapter 1", chapter_path)


def _nested_root(tmp_path: Path, root: Link) -> Link:
    second_path = tmp_path / "second.md"
    second_path.write_bytes(b"Hello World!")
    root.nested_items.append(Link("Nested Chapter 1", second_path, SectionNumber((1, 2))))
    root.nested_items.append(Separator())
    root.nested_items.append(Link("Nested Chapter 1", second_path, SectionNumber((1, 2))))
    return root


def _file_chapter(name, content, path, parent_names=()):
    return Chapter(
        name=name,
        content=content,
        path=PurePath(path),
        source_path=PurePath(path),
        parent_names=list(parent_names),
    )


def _nested_book() -> Book:
    return Book(
        [
            Chapter(
                name="Chapter 1",
                content=DUMMY_SRC,
                path=PurePath("Chapter_1/index.md"),
                source_path=PurePath("Chapter_1/index.md"),
                sub_items=[
                    _file_chapter("Hello World", "", "Chapter_1/hello.md"),
                    Separator(),
                    _file_chapter("Goodbye World", "", "Chapter_1/goodbye.md"),
                ],
            ),
            Separator(),
        ]
    )


def test_load_a_single_chapter_from_disk(tmp_path, dummy_link):
    expected = _file_chapter("Chapter 1", DUMMY_SRC, "chapter_1.md")
    assert load_chapter(dummy_link, tmp_path, []) == expected


def test_load_a_single_chapter_with_utf8_bom_from_disk(tmp_path):
    chapter_path = tmp_path / "chapter_1.md"
    chapter_path.write_bytes(("\ufeff" + DUMMY_SRC).encode("utf-8"))
    link = Link("Chapter 1", chapter_path)
    expected = _file_chapter("Chapter 1", DUMMY_SRC, "chapter_1.md")
    assert load_chapter(link, tmp_path, []) == expected


def test_cant_load_a_nonexistent_chapter():
    link = Link("Chapter 1", "/foo/bar/baz.md")
    with pytest.raises(BookError):
        load_chapter(link, "", [])


def test_load_recursive_link_with_separators(tmp_path, dummy_link):
    root = _nested_root(tmp_path, dummy_link)
    nested = Chapter(
        name="Nested Chapter 1",
        content="Hello World!",
        number=SectionNumber((1, 2)),
        path=PurePath("second.md"),
        source_path=PurePath("second.md"),
        parent_names=["Chapter 1"],
    )
    expected = Chapter(
        name="Chapter 1",
        content=DUMMY_SRC,
        path=PurePath("chapter_1.md"),
        source_path=PurePath("chapter_1.md"),
        sub_items=[nested, Separator(), nested],
    )
    assert load_summary_item(root, tmp_path, []) == expected


def test_load_a_book_with_a_single_chapter(tmp_path, dummy_link):
    summary = Summary(numbered_chapters=[dummy_link])
    expected = Book([_file_chapter("Chapter 1", DUMMY_SRC, "chapter_1.md")])
    assert load_book_from_disk(summary, tmp_path) == expected


def test_book_iter_iterates_over_sequential_items():
    book = Book([Chapter(name="Chapter 1", content=DUMMY_SRC), Separator()])
    assert list(book) == book.sections


def test_iterate_over_nested_book_items():
    items = list(_nested_book())
    assert len(items) == 5
    names = [item.name for item in items if isinstance(item, Chapter)]
    assert names == ["Chapter 1", "Hello World", "Goodbye World"]


def test_for_each_visits_all_items():
    book = _nested_book()
    visited = []
    book.for_each(visited.append)
    assert len(visited) == len(list(book))


def test_for_each_visits_children_before_parent():
    book = _nested_book()
    names = []
    book.for_each(lambda item: names.append(item.name) if isinstance(item, Chapter) else None)
    assert names == ["Hello World", "Goodbye World", "Chapter 1"]


def test_for_each_can_mutate_chapters():
    book = _nested_book()

    def shout(item):
        if isinstance(item, Chapter):
            item.content = "changed"

    book.for_each(shout)
    assert [item.content for item in book if isinstance(item, Chapter)] == ["changed"] * 3


def test_cant_load_chapters_with_an_empty_path(tmp_path, dummy_link):
    summary = Summary(numbered_chapters=[Link("Empty", PurePath(""))])
    with pytest.raises(BookError):
        load_book_from_disk(summary, tmp_path)


def test_cant_load_chapters_when_the_link_is_a_directory(tmp_path, dummy_link):
    nested_dir = tmp_path / "nested"
    nested_dir.mkdir()
    summary = Summary(numbered_chapters=[Link("nested", nested_dir)])
    with pytest.raises(BookError):
        load_book_from_disk(summary, tmp_path)


def test_draft_chapter_has_no_path():
    chapter = Chapter.new_draft("Draft", ["Parent"])
    assert chapter.is_draft_chapter() is True
    assert chapter.content == ""
    assert chapter.parent_names == ["Parent"]
    assert chapter.source_path is None


def test_file_chapter_is_not_draft():
    assert _file_chapter("A", "", "a.md").is_draft_chapter() is False


def test_chapter_display_with_and_without_number():
    assert str(Chapter(name="Intro")) == "Intro"
    assert str(Chapter(name="Intro", number=SectionNumber((1, 2)))) == "1.2. Intro"


def test_push_item_appends_and_returns_book():
    book = Book()
    result = book.push_item(Chapter(name="One")).push_item(Separator())
    assert result is book
    assert book.sections == [Chapter(name="One"), Separator()]


def test_load_summary_item_keeps_separators_and_part_titles(tmp_path):
    assert load_summary_item(Separator(), tmp_path) == Separator()
    assert load_summary_item(PartTitle("Part"), tmp_path) == PartTitle("Part")


def test_load_chapter_relative_location(tmp_path):
    (tmp_path / "one.md").write_text("one", encoding="utf-8")
    link = Link("One", "one.md", SectionNumber((1,)))
    chapter = load_chapter(link, tmp_path, ["Root"])
    assert chapter.content == "one"
    assert chapter.path == PurePath("one.md")
    assert chapter.number == SectionNumber((1,))
    assert chapter.parent_names == ["Root"]


def test_load_book_reads_summary(tmp_path):
    (tmp_path / "SUMMARY.md").write_text(
        "# Summary\n\n- [One](one.md)\n- [Draft]()\n", encoding="utf-8"
    )
    (tmp_path / "one.md").write_text("# One\n", encoding="utf-8")
    book = load_book(tmp_path)
    chapters = [item for item in book if isinstance(item, Chapter)]
    assert [c.name for c in chapters] == ["One", "Draft"]
    assert chapters[0].content == "# One\n"
    assert chapters[1].is_draft_chapter() is True
    assert [str(c) for c in chapters] == ["1. One", "2. Draft"]


def test_load_book_without_summary_fails(tmp_path):
    with pytest.raises(BookError):
        load_book(tmp_path)


def test_load_book_with_missing_chapter_fails_without_create(tmp_path):
    (tmp_path / "SUMMARY.md").write_text("- [One](one.md)\n", encoding="utf-8")
    with pytest.raises(BookError):
        load_book(tmp_path)


def test_load_book_creates_missing_chapters(tmp_path):
    (tmp_path / "SUMMARY.md").write_text(
        "- [Chapter 1](./chapter_1.md)\n  - [Nested](sub/nested.md)\n", encoding="utf-8"
    )
    book = load_book(tmp_path, create_missing=True)
    assert (tmp_path / "chapter_1.md").read_text(encoding="utf-8") == "# Chapter 1\n"
    assert (tmp_path / "sub" / "nested.md").read_text(encoding="utf-8") == "# Nested\n"
    chapters = [item for item in book if isinstance(item, Chapter)]
    assert [c.name for c in chapters] == ["Chapter 1", "Nested"]
    assert chapters[1].parent_names == ["Chapter 1"]
    assert chapters[1].number == SectionNumber((1, 1))


def test_create_missing_does_not_overwrite_existing(tmp_path):
    (tmp_path / "SUMMARY.md").write_text("- [One](one.md)\n", encoding="utf-8")
    (tmp_path / "one.md").write_text("kept", encoding="utf-8")
    book = load_book(tmp_path, create_missing=True)
    assert book.sections[0].content == "kept"