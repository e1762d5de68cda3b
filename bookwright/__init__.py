"""Parse SUMMARY.md files, load Markdown books, plan their preprocessors and renderers, and count words."""

__version__ = "0.1.0"
__all__ = ["__version__"]