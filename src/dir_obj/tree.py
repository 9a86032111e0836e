"""In-memory directory trees that load from and dump to disk.

A ``Dir`` exclusively owns its children, each of which is either a ``File``
(the complete bytes of one regular file) or a nested ``Dir``. Children hold
no reference to their parent, so a tree can never contain a cycle.
"""

from __future__ import annotations

import fnmatch
import hashlib
import os
import stat
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path, PurePath
from types import MappingProxyType
from typing import Literal

from .config import DirObjConfig
from .errors import EntryExistsError, InvalidNameError, UnsupportedEntryError

StrPath = str | os.PathLike[str]


@dataclass
class LoadStats:
    """Statistics from loading a directory tree."""

    files_loaded: int = 0
    directories_loaded: int = 0
    bytes_read: int = 0

    @property
    def total_entries(self) -> int:
        # The root directory is not an entry of anything
        return self.files_loaded + max(self.directories_loaded - 1, 0)


@dataclass
class DumpStats:
    """Statistics from dumping a directory tree."""

    files_written: int = 0
    directories_created: int = 0
    bytes_written: int = 0


@dataclass(frozen=True)
class File:
    """The full contents of one regular file."""

    data: bytes = b""

    def __post_init__(self) -> None:
        # Accept any bytes-like input but always own an immutable copy
        if isinstance(self.data, (str, int)):
            raise TypeError(f"File data must be bytes-like, got {type(self.data).__name__}")
        if not isinstance(self.data, bytes):
            object.__setattr__(self, "data", bytes(self.data))

    def __bytes__(self) -> bytes:
        return self.data

    def __repr__(self) -> str:
        return f"File(<{len(self.data)} bytes>)"

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def load(cls, path: StrPath, stats: LoadStats | None = None) -> File:
        """Read the file at ``path`` to completion."""
        with open(path, "rb") as f:
            data = f.read()

        if stats is not None:
            stats.files_loaded += 1
            stats.bytes_read += len(data)
        return cls(data)

    def dump(
        self,
        path: StrPath,
        config: DirObjConfig | None = None,
        stats: DumpStats | None = None,
    ) -> None:
        """Write the contents to ``path``.

        In the default "truncate" mode an existing file at ``path`` is
        overwritten; in "exclusive" mode ``FileExistsError`` is raised instead.
        A partially written file is left behind if a write fails.
        """
        mode = "xb" if config is not None and config.file_write_mode == "exclusive" else "wb"
        with open(path, mode) as f:
            f.write(self.data)

        if stats is not None:
            stats.files_written += 1
            stats.bytes_written += len(self.data)

    def digest(self) -> str:
        """Compute SHA256 hash of the contents."""
        return hashlib.sha256(self.data).hexdigest()


class Dir:
    """A uniquely-named collection of files and directories."""

    def __init__(self, entries: Mapping[str | bytes, Entry] | None = None):
        self._entries: dict[str, Entry] = {}
        self._view = MappingProxyType(self._entries)
        if entries:
            for name, entry in entries.items():
                if isinstance(entry, Dir):
                    self.add_dir(name, entry)
                else:
                    self.add_file(name, entry)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dir):
            return NotImplemented
        return self._entries == other._entries

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Dir({dict(self._entries)!r})"

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._view)

    def __contains__(self, name: object) -> bool:
        if isinstance(name, bytes):
            name = os.fsdecode(name)
        return name in self._entries

    def __getitem__(self, name: str | bytes) -> Entry:
        if isinstance(name, bytes):
            name = os.fsdecode(name)
        return self._entries[name]

    def get(self, name: str | bytes, default: Entry | None = None) -> Entry | None:
        if isinstance(name, bytes):
            name = os.fsdecode(name)
        return self._entries.get(name, default)

    def add_file(self, name: str | bytes, file: File) -> None:
        """Insert ``file`` under ``name``.

        Raises:
            EntryExistsError: ``name`` is already taken; the Dir is unchanged.
            InvalidNameError: ``name`` is not a single path component.
        """
        if not isinstance(file, File):
            raise TypeError(f"Expected File, got {type(file).__name__}")
        self._add(name, file)

    def add_dir(self, name: str | bytes, directory: Dir) -> None:
        """Insert ``directory`` under ``name``. Same contract as ``add_file``."""
        if not isinstance(directory, Dir):
            raise TypeError(f"Expected Dir, got {type(directory).__name__}")
        if directory is self or directory._holds(self):
            raise ValueError("A Dir cannot contain itself")
        self._add(name, directory)

    def _holds(self, node: Dir) -> bool:
        for _, entry in self.entries():
            if isinstance(entry, Dir) and (entry is node or entry._holds(node)):
                return True
        return False

    def _add(self, name: str | bytes, entry: Entry) -> None:
        name = check_name(name)
        if name in self._entries:
            raise EntryExistsError(name)
        self._entries[name] = entry

    def entries(self) -> Iterator[tuple[str, Entry]]:
        """Iterate over (name, entry) pairs in unspecified order."""
        return iter(self._view.items())

    def names(self) -> list[str]:
        return sorted(self._entries)

    def walk(self) -> Iterator[tuple[PurePath, Entry]]:
        """Depth-first walk yielding (relative path, entry), sorted by name."""
        for name in sorted(self._entries):
            entry = self._entries[name]
            yield PurePath(name), entry
            if isinstance(entry, Dir):
                for sub_path, sub_entry in entry.walk():
                    yield PurePath(name) / sub_path, sub_entry

    def count(self) -> int:
        """Count every entry in the tree, nested ones included."""
        total = 0
        for _, entry in self.entries():
            total += 1
            if isinstance(entry, Dir):
                total += entry.count()
        return total

    def total_size(self) -> int:
        """Sum of the sizes of every file in the tree."""
        return sum(entry.size for _, entry in self.walk() if isinstance(entry, File))

    def digest(self) -> str:
        """Compute directory hash from sorted child name, kind and hash triples."""
        h = hashlib.sha256()
        for name in sorted(self._entries):
            entry = self._entries[name]
            h.update(os.fsencode(name))
            h.update(b"\0" + entry_kind(entry).encode() + b"\0")
            h.update(entry.digest().encode())
        return h.hexdigest()

    @classmethod
    def load(
        cls,
        path: StrPath,
        config: DirObjConfig | None = None,
        stats: LoadStats | None = None,
    ) -> Dir:
        """
        Build a Dir tree from the directory at ``path``.

        Args:
            path: Directory to read
            config: Optional policy; its exclude_patterns skip matching children
            stats: Optional statistics object to fill in

        Returns:
            A Dir mirroring the directory on disk

        Raises:
            UnsupportedEntryError: A child is a symlink, fifo, socket or device
            OSError: Any failure of the underlying filesystem calls
        """
        exclude_patterns = config.exclude_patterns if config is not None else []
        if stats is None:
            stats = LoadStats()
        return _load_dir(Path(path), exclude_patterns, stats)

    def dump(
        self,
        path: StrPath,
        config: DirObjConfig | None = None,
        stats: DumpStats | None = None,
    ) -> None:
        """
        Materialize this tree as a new directory at ``path``.

        Fails with ``FileExistsError`` if anything already exists at ``path``.
        The first failing child aborts the dump; whatever was written before
        it stays on disk.
        """
        if stats is None:
            stats = DumpStats()
        path = Path(path)
        os.mkdir(path)
        stats.directories_created += 1
        for name, entry in self.entries():
            dump_entry(entry, path / name, config, stats)


Entry = File | Dir


def entry_kind(entry: Entry) -> Literal["file", "directory"]:
    """Return the variant name of an entry."""
    if isinstance(entry, File):
        return "file"
    if isinstance(entry, Dir):
        return "directory"
    raise TypeError(f"Not a directory entry: {type(entry).__name__}")


def dump_entry(
    entry: Entry,
    path: StrPath,
    config: DirObjConfig | None = None,
    stats: DumpStats | None = None,
) -> None:
    """Dump a File or Dir to ``path``."""
    if isinstance(entry, File):
        entry.dump(path, config, stats)
    elif isinstance(entry, Dir):
        entry.dump(path, config, stats)
    else:
        raise TypeError(f"Not a directory entry: {type(entry).__name__}")


def check_name(name: str | bytes) -> str:
    """Validate a child name and return it as a str.

    Bytes names are decoded with the filesystem encoding, so names that are
    not valid text survive a round trip.
    """
    if isinstance(name, bytes):
        name = os.fsdecode(name)
    if not isinstance(name, str):
        raise TypeError(f"Entry names must be str or bytes, got {type(name).__name__}")

    if name in ("", ".", "..") or "\0" in name or "/" in name:
        raise InvalidNameError(name)
    if os.sep in name or (os.altsep and os.altsep in name):
        raise InvalidNameError(name)

    # Names must map back to filesystem bytes for dump and digest
    try:
        os.fsencode(name)
    except UnicodeEncodeError as e:
        raise InvalidNameError(name) from e
    return name


def should_exclude(name: str, exclude_patterns: list[str]) -> bool:
    """Check if a child name matches any exclusion pattern."""
    for pattern in exclude_patterns:
        if fnmatch.fnmatch(name, pattern):
            return True
    return False


def _describe_mode(mode: int) -> str:
    """Name the kind of a non-regular filesystem object."""
    if stat.S_ISLNK(mode):
        return "symlink"
    if stat.S_ISFIFO(mode):
        return "fifo"
    if stat.S_ISSOCK(mode):
        return "socket"
    if stat.S_ISCHR(mode):
        return "character device"
    if stat.S_ISBLK(mode):
        return "block device"
    return "unknown"


def _load_dir(path: Path, exclude_patterns: list[str], stats: LoadStats) -> Dir:
    """Recursively load a directory. Symlinks are never followed."""
    directory = Dir()
    stats.directories_loaded += 1

    with os.scandir(path) as it:
        for child in it:
            if should_exclude(child.name, exclude_patterns):
                continue

            child_path = path / child.name
            if child.is_dir(follow_symlinks=False):
                entry: Entry = _load_dir(child_path, exclude_patterns, stats)
            elif child.is_file(follow_symlinks=False):
                entry = File.load(child_path, stats)
            else:
                kind = _describe_mode(child.stat(follow_symlinks=False).st_mode)
                raise UnsupportedEntryError(child_path, kind)

            # The filesystem already guarantees unique names
            directory._entries[child.name] = entry

    return directory
