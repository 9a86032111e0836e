"""JSON snapshots of in-memory directory trees."""

import base64
import binascii
import json
import os
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from . import SNAPSHOT_VERSION
from .errors import DirObjError, SnapshotError
from .tree import Dir, File


class SnapshotStats(BaseModel):
    """Statistics about the captured tree."""

    total_files: int = 0
    total_directories: int = 0
    total_bytes: int = 0


class Snapshot(BaseModel):
    """A directory tree captured as a single JSON document."""

    version: int = SNAPSHOT_VERSION
    created_at: datetime
    tree: dict[str, Any]
    stats: SnapshotStats = Field(default_factory=SnapshotStats)

    def to_dir(self) -> Dir:
        """Rebuild the captured tree."""
        return tree_from_dict(self.tree)


def tree_to_dict(directory: Dir) -> dict[str, Any]:
    """Serialize a Dir tree to a JSON-compatible dictionary.

    Names that are not valid UTF-8 keep a lossy display form in ``name`` and
    their exact bytes in ``raw_name``.
    """
    children = []
    for name in directory.names():
        entry = directory[name]
        if isinstance(entry, File):
            node: dict[str, Any] = {
                "type": "file",
                "data": base64.b64encode(entry.data).decode("ascii"),
            }
        else:
            node = tree_to_dict(entry)
        children.append({**_encode_name(name), **node})
    return {"type": "directory", "children": children}


def tree_from_dict(data: dict[str, Any]) -> Dir:
    """Deserialize a Dir tree from a dictionary.

    Raises:
        SnapshotError: The dictionary does not describe a valid tree
    """
    if not isinstance(data, dict) or data.get("type") != "directory":
        raise SnapshotError("Snapshot root must be a directory node")

    directory = Dir()
    children = data.get("children", [])
    if not isinstance(children, list):
        raise SnapshotError("Directory children must be a list")

    for child in children:
        if not isinstance(child, dict):
            raise SnapshotError(f"Malformed snapshot node: {child!r}")
        name = _decode_name(child)
        node_type = child.get("type")
        try:
            if node_type == "file":
                raw = base64.b64decode(child.get("data", ""), validate=True)
                directory.add_file(name, File(raw))
            elif node_type == "directory":
                directory.add_dir(name, tree_from_dict(child))
            else:
                raise SnapshotError(f"Unknown node type for {name!r}: {node_type!r}")
        except (binascii.Error, TypeError) as e:
            raise SnapshotError(f"Invalid file data for {name!r}: {e}") from e
        except SnapshotError:
            raise
        except DirObjError as e:
            raise SnapshotError(str(e)) from e

    return directory


def create_snapshot(directory: Dir) -> Snapshot:
    """Capture a Dir tree in a new snapshot."""
    stats = SnapshotStats()
    for _, entry in directory.walk():
        if isinstance(entry, File):
            stats.total_files += 1
            stats.total_bytes += entry.size
        else:
            stats.total_directories += 1

    return Snapshot(
        created_at=datetime.now(UTC),
        tree=tree_to_dict(directory),
        stats=stats,
    )


def save_snapshot(snapshot: Snapshot, path: Path) -> None:
    """Save a snapshot to a JSON file."""
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        json.dump(snapshot.model_dump(mode="json"), f, indent=2)


def load_snapshot(path: Path) -> Snapshot:
    """Load a snapshot from a JSON file.

    Raises:
        FileNotFoundError: If the path does not exist.
        SnapshotError: If the file is not a valid snapshot.
    """
    with open(path) as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise SnapshotError(f"Invalid JSON in {path}: {e}") from e

    try:
        snapshot = Snapshot.model_validate(data)
    except ValidationError as e:
        raise SnapshotError(f"Invalid snapshot {path}: {e}") from e

    if snapshot.version > SNAPSHOT_VERSION:
        raise SnapshotError(
            f"Snapshot version {snapshot.version} is newer than supported ({SNAPSHOT_VERSION})"
        )
    return snapshot


def _encode_name(name: str) -> dict[str, str]:
    raw = os.fsencode(name)
    try:
        return {"name": raw.decode("utf-8")}
    except UnicodeDecodeError:
        return {
            "name": raw.decode("utf-8", errors="replace"),
            "raw_name": base64.b64encode(raw).decode("ascii"),
        }


def _decode_name(node: dict[str, Any]) -> str:
    if raw_name := node.get("raw_name"):
        try:
            return os.fsdecode(base64.b64decode(raw_name, validate=True))
        except (binascii.Error, TypeError) as e:
            raise SnapshotError(f"Invalid raw_name: {raw_name!r}") from e

    name = node.get("name")
    if not isinstance(name, str):
        raise SnapshotError(f"Snapshot node without a name: {node!r}")
    return name
