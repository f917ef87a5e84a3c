"""
Raw order readers.
"""

from .spreadsheet_reader import SpreadsheetReader, normalize_header, normalize_headers

__all__ = [
    "SpreadsheetReader",
    "normalize_header",
    "normalize_headers",
]
