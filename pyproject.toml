[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bookwright"
version = "0.1.0"
description = "Parse SUMMARY.md files, load Markdown books and plan their preprocessors and renderers"
requires-python = ">=3.11"
dependencies = [
    "markdown-it-py",
]
keywords = ["markdown", "book", "documentation", "summary", "preprocessor", "wordcount"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Documentation",
    "Topic :: Text Processing :: Markup :: Markdown",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["bookwright"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
