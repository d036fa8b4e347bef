"""Record scanning and writing package."""

from finance_brain.records.scanner import RecordScanner
from finance_brain.records.writer import RecordWriter

__all__ = ["RecordScanner", "RecordWriter"]
