"""Export layer — write rendered entries to an output directory."""

from papyre.export.writer import (
    WriteResult,
    WrittenFile,
    rename_entries,
    write_entries,
)

__all__ = ["WriteResult", "WrittenFile", "rename_entries", "write_entries"]
