"""Exceptions raised by Dir Obj."""

import errno
from pathlib import Path


class DirObjError(Exception):
    """Base exception for dir-obj errors."""

    pass


class UnsupportedEntryError(DirObjError):
    """A directory child is neither a regular file nor a directory."""

    def __init__(self, path: Path, kind: str = "unknown"):
        self.path = path
        self.kind = kind
        super().__init__(f"Unsupported entry type ({kind}): {path}")


class EntryExistsError(DirObjError, FileExistsError):
    """A Dir already holds an entry under the requested name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(errno.EEXIST, "Entry already exists", name)


class InvalidNameError(DirObjError, ValueError):
    """A child name is not a single, encodable path component."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Invalid entry name: {name!r}")


class SnapshotError(DirObjError, ValueError):
    """A snapshot document is malformed or unsupported."""

    pass
