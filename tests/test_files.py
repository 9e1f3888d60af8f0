"""Tests for path resolution and JSON loading."""

from __future__ import annotations

from pathlib import Path

from marketplace_verify.errors import InvalidJsonError, PathEscapeError, SourceNotFoundError
from marketplace_verify.files import is_url, load_json_file, resolve_within


class TestIsUrl:
    """Tests for is_url function."""

    def test_remote_sources(self) -> None:
        """Should recognise fetchable sources."""
        assert is_url("https://github.com/acme/plugin.git")
        assert is_url("git@github.com:acme/plugin.git")

    def test_local_paths(self) -> None:
        """Should treat paths as local."""
        assert not is_url("./plugins/a")
        assert not is_url("/abs/plugins/a")


class TestResolveWithin:
    """Tests for resolve_within function."""

    def test_path_inside_base(self, tmp_path: Path) -> None:
        """Should resolve a path below the base directory."""
        resolved, error = resolve_within(tmp_path, "./plugins/a")
        assert error is None
        assert resolved == tmp_path.resolve() / "plugins" / "a"

    def test_traversal_that_stays_inside(self, tmp_path: Path) -> None:
        """Should allow .. segments that end up inside the base."""
        resolved, error = resolve_within(tmp_path, "./plugins/../other")
        assert error is None
        assert resolved == tmp_path.resolve() / "other"

    def test_path_escaping_base(self, tmp_path: Path) -> None:
        """Should report paths that leave the base directory."""
        context = tmp_path / "marketplace.json"
        resolved, error = resolve_within(tmp_path, "../elsewhere", context, field="source")
        assert resolved is None
        assert isinstance(error, PathEscapeError)
        assert error.path == context
        assert error.field == "source"
        assert "../elsewhere" in error.message


class TestLoadJsonFile:
    """Tests for load_json_file function."""

    def test_loads_valid_json(self, tmp_path: Path) -> None:
        """Should return parsed data and no errors."""
        path = tmp_path / "m.json"
        path.write_text('{"name": "m"}')
        assert load_json_file(path) == ({"name": "m"}, [])

    def test_missing_file(self, tmp_path: Path) -> None:
        """Should report a missing file."""
        data, errors = load_json_file(tmp_path / "nope.json")
        assert data is None
        assert len(errors) == 1
        assert isinstance(errors[0], SourceNotFoundError)

    def test_invalid_json(self, tmp_path: Path) -> None:
        """Should report the parse position."""
        path = tmp_path / "m.json"
        path.write_text('{\n  "name": \n}')
        data, errors = load_json_file(path)
        assert data is None
        assert isinstance(errors[0], InvalidJsonError)
        assert "line 3" in errors[0].message

    def test_deeply_nested_json(self, tmp_path: Path) -> None:
        """Should report excessive nesting instead of raising RecursionError."""
        path = tmp_path / "m.json"
        path.write_text("[" * 100_000 + "]" * 100_000)
        data, errors = load_json_file(path)
        assert data is None
        assert isinstance(errors[0], InvalidJsonError)
        assert "too deeply nested" in errors[0].message

    def test_binary_file(self, tmp_path: Path) -> None:
        """Should report non-UTF-8 content."""
        path = tmp_path / "m.json"
        path.write_bytes(b"\xff\xfe\xfa")
        _, errors = load_json_file(path)
        assert isinstance(errors[0], InvalidJsonError)
        assert "UTF-8" in errors[0].message
