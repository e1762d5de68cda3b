# bookwright

A small library for working with Markdown books whose structure is described
by a `SUMMARY.md` file.

It can:

- parse a `SUMMARY.md` into prefix, numbered and suffix chapters, with part
  titles, separators, draft chapters and nested section numbers
  (`bookwright.summary`, `bookwright.items`);
- load a book from its source directory into a tree of chapters, optionally
  creating chapter files that are missing (`bookwright.book`);
- work out which preprocessors and renderers a book configuration asks for,
  in dependency order, and whether a preprocessor should run for a renderer
  (`bookwright.preprocessing`, `bookwright.renderers`);
- count the words in each chapter of a book (`bookwright.wordcount`).

## Installation

```
pip install bookwright
```

## Summary format

```markdown
# Summary

[Introduction](./intro.md)

# Part One

- [First chapter](./first.md)
    - [A section](./first/section.md)
- [Draft chapter]()

---

[Appendix](./appendix.md)
```

An optional leading level-one heading is the summary's title. Links before the
first list are prefix chapters, list items are numbered chapters (`1.`, `1.1.`,
`2.` …, numbered on across separators and parts), further level-one headings
start new titled parts, and links after the lists are suffix chapters. An empty
link target marks a draft chapter that has no file; `%20` in a target is read
as a space. HTML comments are skipped. A malformed summary raises
`SummaryParseError`, which carries the `line` and `column` of the problem.

## Usage

Parse a summary:

```python
from bookwright.summary import parse_summary

with open("src/SUMMARY.md", encoding="utf-8") as fh:
    summary = parse_summary(fh.read())

print(summary.title)
for item in summary.all_items():
    print(item)
```

Items are `Link`, `Separator` or `PartTitle` objects from `bookwright.items`;
a `Link` has a `name`, a `location` (`None` for drafts), a `SectionNumber`
`number` and its `nested_items`.

Load a whole book and walk it depth-first:

```python
from bookwright.book import Chapter, load_book

book = load_book("src", create_missing=True)
for item in book:
    if isinstance(item, Chapter):
        print(item)            # e.g. "1.2. A section"
```

`load_book` raises `BookError` when `SUMMARY.md` or a chapter file cannot be
read or parsed. A leading UTF-8 byte-order mark is removed from chapter
content. `Book.for_each(func)` calls `func` on every item, sub-items before
their parent, and `Book.push_item(item)` appends an item.

Choose preprocessors and renderers from a configuration mapping (as read from
a TOML file):

```python
import tomllib
from bookwright.preprocessing import determine_preprocessors
from bookwright.renderers import determine_renderers

with open("book.toml", "rb") as fh:
    config = tomllib.load(fh)

for spec in determine_preprocessors(config):
    print(spec.name, spec.command)
for spec in determine_renderers(config):
    print(spec.name, spec.command)
```

The built-in preprocessors `links` and `index` are included unless
`build.use-default-preprocessors` is false. A `[preprocessor.<name>]` table
may carry `before`, `after`, `command` and `renderers` keys; ties are broken
alphabetically, and a `before`/`after` that is not a list of strings or an
ordering that forms a cycle raises `PreprocessorConfigError`. Custom
preprocessors and renderers without a `command` get `bookwright-<name>`.
Without an `output` table the only renderer is `html`.

`preprocessor_should_run(preprocessor, renderer_name, config)` decides
whether a `Preprocessor` runs for a renderer. `NopPreprocessor` returns the
book unchanged, raising `RuntimeError` if its configuration table contains a
`blow-up` key, and supports every renderer except `not-supported`.

Count words per chapter:

```python
from bookwright.wordcount import WordcountConfig, word_counts

cfg = WordcountConfig.from_dict({"ignores": ["Appendix"], "deny-odds": False})
for name, count in word_counts(book, cfg):
    print(f"{name}: {count}")
```

With `deny-odds` set, `OddWordCountError` is raised after the first chapter
with an odd word count.

## What it does not do

bookwright is a library only. It has no command-line tool, does not render
books to HTML or any other format, does not serve or watch a book, and does
not run external preprocessor or renderer commands: `PreprocessorSpec` and
`RendererSpec` only say which ones a configuration selects.

## Running the tests

```
pip install "bookwright[test]"
pytest
```