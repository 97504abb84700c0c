"""
app/parsers package marker.
"""

from app.parsers.file_reader import FileReadError, ImportSheet, read_import_file

__all__ = [
    "FileReadError",
    "ImportSheet",
    "read_import_file",
]
