"""Storage for collected catalog records."""

from .base import OutputFile, OutputFileSequence, SaveResult
from .csv_storage import CSVExporter
from .json_storage import SizeBoundedWriter, atomic_write_json, read_json_array

__all__ = [
    "OutputFile",
    "OutputFileSequence",
    "SaveResult",
    "CSVExporter",
    "SizeBoundedWriter",
    "atomic_write_json",
    "read_json_array",
]
