"""Tests for sentinel_agent.data.store — JSON array files and atomic writes."""

from __future__ import annotations

import json
import os
from unittest.mock import patch

import pytest

from sentinel_agent.data.store import read_json_array, write_json_atomic


class TestReadJsonArray:
    def test_missing_file(self, tmp_path):
        assert read_json_array(tmp_path / "nope.json") == []

    def test_blank_file(self, tmp_path):
        path = tmp_path / "blank.json"
        path.write_text("  \n", encoding="utf-8")
        assert read_json_array(path) == []

    def test_drops_non_objects(self, tmp_path):
        path = tmp_path / "mixed.json"
        path.write_text('[{"id": "a"}, 3, "x", {"id": "b"}]', encoding="utf-8")
        assert read_json_array(path) == [{"id": "a"}, {"id": "b"}]

    def test_object_is_rejected(self, tmp_path):
        path = tmp_path / "obj.json"
        path.write_text('{"id": "a"}', encoding="utf-8")
        with pytest.raises(ValueError):
            read_json_array(path)


class TestWriteJsonAtomic:
    def test_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "deep" / "dir" / "data.json"
        write_json_atomic(path, [{"id": "a"}])
        assert json.loads(path.read_text(encoding="utf-8")) == [{"id": "a"}]

    def test_replaces_existing(self, tmp_path):
        path = tmp_path / "data.json"
        write_json_atomic(path, [1])
        write_json_atomic(path, [2])
        assert json.loads(path.read_text(encoding="utf-8")) == [2]

    def test_failed_write_keeps_old_file_and_no_temp(self, tmp_path):
        path = tmp_path / "data.json"
        write_json_atomic(path, [{"id": "old"}])
        with patch("sentinel_agent.data.store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                write_json_atomic(path, [{"id": "new"}])
        assert json.loads(path.read_text(encoding="utf-8")) == [{"id": "old"}]
        assert os.listdir(tmp_path) == ["data.json"]

    def test_unicode(self, tmp_path):
        path = tmp_path / "data.json"
        write_json_atomic(path, [{"msg": "Zahlung fehlgeschlagen ✗"}])
        assert "✗" in path.read_text(encoding="utf-8")
