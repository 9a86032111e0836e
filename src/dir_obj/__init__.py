"""Dir Obj - mimic a directory structure in RAM."""

__version__ = "0.1.0"

# File constants
CONFIG_FILE = "dirobj.json"
SNAPSHOT_VERSION = 1

from .errors import (  # noqa: E402
    DirObjError,
    EntryExistsError,
    InvalidNameError,
    SnapshotError,
    UnsupportedEntryError,
)
from .tree import Dir, DumpStats, Entry, File, LoadStats, dump_entry, entry_kind  # noqa: E402

__all__ = [
    "CONFIG_FILE",
    "SNAPSHOT_VERSION",
    "Dir",
    "DirObjError",
    "DumpStats",
    "Entry",
    "EntryExistsError",
    "File",
    "InvalidNameError",
    "LoadStats",
    "SnapshotError",
    "UnsupportedEntryError",
    "dump_entry",
    "entry_kind",
]
