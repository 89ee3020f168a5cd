"""Content layer — content files as entries.

Handles loading content files into entries, building the navigation tree,
and watching the content directory for changes.
"""

from papyre.content.entry import (
    Entry,
    is_entry,
    parse_entry,
    read_entries,
    read_entry,
    remove_entry,
    replace_or_append,
)
from papyre.content.tree import entries_to_tree, lookup
from papyre.content.watcher import ChangeEvent, ContentWatcher

__all__ = [
    "ChangeEvent",
    "ContentWatcher",
    "Entry",
    "entries_to_tree",
    "is_entry",
    "lookup",
    "parse_entry",
    "read_entries",
    "read_entry",
    "remove_entry",
    "replace_or_append",
]
