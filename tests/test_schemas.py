"""Tests for manifest schemas and version checks."""

from __future__ import annotations

from pathlib import Path

import pytest

from marketplace_verify.schemas import (
    MARKETPLACE_ENTRY_SCHEMA,
    PLUGIN_MANIFEST_SCHEMA,
    is_semver,
    validate_json_schema,
)


class TestIsSemver:
    """Tests for is_semver function."""

    @pytest.mark.parametrize(
        "version",
        [
            "0.0.0",
            "1.0.0",
            "10.20.30",
            "1.0.0-alpha",
            "1.0.0-rc.1",
            "1.0.0+build.5",
            "1.2.3-beta+exp.sha.5114f85",
        ],
    )
    def test_accepts_semantic_versions(self, version: str) -> None:
        """Should accept MAJOR.MINOR.PATCH with optional pre-release and build."""
        assert is_semver(version)

    @pytest.mark.parametrize(
        "version", ["1", "1.0", "v1.0.0", "01.0.0", "1.0.0-", "1.0.0.0", "latest", ""]
    )
    def test_rejects_other_strings(self, version: str) -> None:
        """Should reject anything that isn't a full semantic version."""
        assert not is_semver(version)


class TestValidateJsonSchema:
    """Tests for validate_json_schema function."""

    def test_valid_data(self) -> None:
        """Should return no errors for conforming data."""
        data = {"name": "my-plugin", "version": "1.0.0", "keywords": ["a"]}
        assert validate_json_schema(data, PLUGIN_MANIFEST_SCHEMA, None) == []

    def test_name_must_be_kebab_case(self) -> None:
        """Should reject names with spaces or capitals."""
        errors = validate_json_schema({"name": "My Plugin"}, PLUGIN_MANIFEST_SCHEMA, None)
        assert len(errors) == 1
        assert errors[0].field == "name"

    def test_nested_field_path(self, tmp_path: Path) -> None:
        """Should report the dotted path to the offending value."""
        path = tmp_path / "plugin.json"
        errors = validate_json_schema({"keywords": ["ok", 3]}, PLUGIN_MANIFEST_SCHEMA, path)
        assert [e.field for e in errors] == ["keywords.1"]
        assert errors[0].path == path

    def test_context_prefix(self) -> None:
        """Should prefix field paths with the context."""
        errors = validate_json_schema(
            {"strict": "yes"}, MARKETPLACE_ENTRY_SCHEMA, None, context="plugins[3]"
        )
        assert [e.field for e in errors] == ["plugins[3].strict"]

    def test_root_errors(self) -> None:
        """Should name the root when the value itself is wrong."""
        errors = validate_json_schema([], PLUGIN_MANIFEST_SCHEMA, None)
        assert [e.field for e in errors] == ["root"]

    def test_errors_are_sorted(self) -> None:
        """Should report violations in a stable order."""
        data = {"version": 1, "license": 2, "description": 3}
        fields = [e.field for e in validate_json_schema(data, PLUGIN_MANIFEST_SCHEMA, None)]
        assert fields == sorted(fields)

    def test_invalid_schema_raises(self) -> None:
        """Should treat a broken schema as a programming error."""
        with pytest.raises(RuntimeError, match="Invalid schema"):
            validate_json_schema({}, {"type": "not-a-type"}, None)
