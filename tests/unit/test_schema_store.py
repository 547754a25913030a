"""Unit tests for FileSchemaStore."""

import json
from pathlib import Path

import pytest

from schemarpc.core.errors import SchemaLoadError
from schemarpc.schema.store import FileSchemaStore, is_safe_method_name


class TestLoadSchema:
    """Tests for FileSchemaStore.load_schema()."""

    def test_loads_method_document(self, schema_root: Path):
        store = FileSchemaStore(schema_root)
        schema = store.load_schema("user.get")
        assert schema is not None
        assert schema["required"] == ["id"]

    def test_missing_document_is_none(self, schema_root: Path):
        """An absent document is NotFound, not an error."""
        assert FileSchemaStore(schema_root).load_schema("unknown.method") is None

    def test_missing_root_is_none(self, tmp_path: Path):
        assert FileSchemaStore(tmp_path / "nope").load_schema("a") is None

    def test_invalid_json_raises(self, tmp_path: Path):
        (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="invalid JSON") as exc_info:
            FileSchemaStore(tmp_path).load_schema("broken")
        assert exc_info.value.method == "broken"

    def test_non_object_raises(self, tmp_path: Path):
        (tmp_path / "list.json").write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="expected object"):
            FileSchemaStore(tmp_path).load_schema("list")

    def test_invalid_schema_raises(self, tmp_path: Path):
        """Documents that fail the meta-schema are rejected at load time."""
        (tmp_path / "bad.json").write_text(json.dumps({"type": 12}), encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="invalid JSON Schema"):
            FileSchemaStore(tmp_path).load_schema("bad")

    def test_empty_document_raises(self, tmp_path: Path):
        (tmp_path / "empty.json").write_text("", encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="invalid JSON in empty.json"):
            FileSchemaStore(tmp_path).load_schema("empty")

    def test_non_finite_constant_raises(self, tmp_path: Path):
        """Python's json accepts NaN; schema documents must be strict JSON."""
        (tmp_path / "nan.json").write_text('{"maximum": NaN}', encoding="utf-8")
        with pytest.raises(SchemaLoadError, match="NaN is not a JSON value"):
            FileSchemaStore(tmp_path).load_schema("nan")

    def test_utf8_bom_accepted(self, tmp_path: Path):
        (tmp_path / "bom.json").write_bytes(b"\xef\xbb\xbf" + b'{"type": "object"}')
        assert FileSchemaStore(tmp_path).load_schema("bom") == {"type": "object"}

    @pytest.mark.parametrize("method", ["../secret", "a/b", "..", ".hidden", "a\\b", ""])
    def test_unsafe_names_never_touch_disk(self, tmp_path: Path, method: str):
        """Names that could escape the root are reported as absent."""
        secret = tmp_path / "secret.json"
        secret.write_text('{"type": "object"}', encoding="utf-8")
        root = tmp_path / "schemas"
        root.mkdir()
        assert FileSchemaStore(root).load_schema(method) is None


class TestHelpers:
    """Tests for store helpers."""

    def test_path_for(self, tmp_path: Path):
        assert FileSchemaStore(tmp_path).path_for("user.get") == tmp_path / "user.get.json"

    def test_methods_lists_documents(self, schema_root: Path):
        (schema_root / "notes.txt").write_text("x", encoding="utf-8")
        methods = FileSchemaStore(schema_root).methods()
        assert "user.get" in methods
        assert "notes" not in methods
        assert methods == sorted(methods)

    def test_is_safe_method_name(self):
        assert is_safe_method_name("user.get")
        assert is_safe_method_name("user_get-v2")
        assert not is_safe_method_name("a..b")
        assert not is_safe_method_name("a b")
