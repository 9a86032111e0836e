"""Tests for JSON snapshots of directory trees."""

import base64
import json
import os
import sys
from pathlib import Path

import pytest

from dir_obj import SNAPSHOT_VERSION, Dir, File, SnapshotError
from dir_obj.snapshot import (
    Snapshot,
    create_snapshot,
    load_snapshot,
    save_snapshot,
    tree_from_dict,
    tree_to_dict,
)


class TestTreeConversion:
    """Tests for tree_to_dict / tree_from_dict."""

    def test_dict_layout(self):
        directory = Dir({"a.txt": File(b"hi"), "sub": Dir()})

        assert tree_to_dict(directory) == {
            "type": "directory",
            "children": [
                {"name": "a.txt", "type": "file", "data": base64.b64encode(b"hi").decode()},
                {"name": "sub", "type": "directory", "children": []},
            ],
        }

    def test_conversion_preserves_tree(self, sample_tree: Dir):
        assert tree_from_dict(tree_to_dict(sample_tree)) == sample_tree

    def test_dict_is_json_compatible(self, sample_tree: Dir):
        text = json.dumps(tree_to_dict(sample_tree))
        assert tree_from_dict(json.loads(text)) == sample_tree

    @pytest.mark.skipif(sys.platform != "linux", reason="surrogate-escaped names are POSIX-only")
    def test_undecodable_name_keeps_raw_bytes(self):
        name = os.fsdecode(b"caf\xe9")
        directory = Dir({name: File(b"x")})

        data = tree_to_dict(directory)
        child = data["children"][0]
        assert child["raw_name"] == base64.b64encode(b"caf\xe9").decode()
        assert child["name"] == "caf\ufffd"

        # Survives JSON encoding as well
        assert tree_from_dict(json.loads(json.dumps(data))) == directory

    def test_root_must_be_directory(self):
        with pytest.raises(SnapshotError):
            tree_from_dict({"type": "file", "data": ""})

    def test_unknown_node_type(self):
        with pytest.raises(SnapshotError):
            tree_from_dict({"type": "directory", "children": [{"name": "x", "type": "symlink"}]})

    def test_missing_name(self):
        with pytest.raises(SnapshotError):
            tree_from_dict({"type": "directory", "children": [{"type": "file", "data": ""}]})

    def test_invalid_base64(self):
        with pytest.raises(SnapshotError):
            tree_from_dict(
                {"type": "directory", "children": [{"name": "x", "type": "file", "data": "***"}]}
            )

    @pytest.mark.parametrize("raw_name", [5, ["eA=="], "***"])
    def test_malformed_raw_name(self, raw_name):
        with pytest.raises(SnapshotError):
            tree_from_dict(
                {"type": "directory", "children": [{"raw_name": raw_name, "type": "file", "data": ""}]}
            )

    def test_duplicate_names_rejected(self):
        node = {"name": "x", "type": "file", "data": ""}
        with pytest.raises(SnapshotError):
            tree_from_dict({"type": "directory", "children": [node, node]})

    def test_path_traversal_names_rejected(self):
        with pytest.raises(SnapshotError):
            tree_from_dict(
                {"type": "directory", "children": [{"name": "../evil", "type": "file", "data": ""}]}
            )


class TestSnapshotFiles:
    """Tests for saving and loading snapshot files."""

    def test_create_snapshot_stats(self, sample_tree: Dir):
        snapshot = create_snapshot(sample_tree)

        assert snapshot.version == SNAPSHOT_VERSION
        assert snapshot.stats.total_files == 5
        assert snapshot.stats.total_directories == 3
        assert snapshot.stats.total_bytes == sample_tree.total_size()

    def test_roundtrip_file(self, sample_tree: Dir, tmp_path: Path):
        path = tmp_path / "snapshots" / "tree.json"
        snapshot = create_snapshot(sample_tree)

        save_snapshot(snapshot, path)
        loaded = load_snapshot(path)

        assert loaded.created_at == snapshot.created_at
        assert loaded.stats == snapshot.stats
        assert loaded.to_dir() == sample_tree

    def test_snapshot_restores_to_disk(self, data_dir: Path, tmp_path: Path):
        original = Dir.load(data_dir)
        path = tmp_path / "data.json"
        save_snapshot(create_snapshot(original), path)

        out = tmp_path / "restored"
        load_snapshot(path).to_dir().dump(out)
        assert Dir.load(out) == original

    def test_load_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_snapshot(tmp_path / "missing.json")

    def test_load_invalid_json(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        with pytest.raises(SnapshotError):
            load_snapshot(path)

    def test_load_invalid_document(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"version": 1}))

        with pytest.raises(SnapshotError):
            load_snapshot(path)

    def test_load_newer_version(self, sample_tree: Dir, tmp_path: Path):
        snapshot = create_snapshot(sample_tree)
        data = snapshot.model_dump(mode="json")
        data["version"] = SNAPSHOT_VERSION + 1
        path = tmp_path / "future.json"
        path.write_text(json.dumps(data))

        with pytest.raises(SnapshotError):
            load_snapshot(path)

    def test_model_validate(self, sample_tree: Dir):
        data = create_snapshot(sample_tree).model_dump(mode="json")
        assert Snapshot.model_validate(data).to_dir() == sample_tree
