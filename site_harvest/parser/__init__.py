"""site_harvest.parser: HTML parsing layer."""

from .html_parser import Document, DocumentParser, parse_html

__all__ = ["Document", "DocumentParser", "parse_html"]
