"""Validation error taxonomy.

Every problem the verifier can find is a ``ValidationError`` subclass. The
validator collects them into reports instead of raising; only the header
parser raises (``MalformedHeaderError``), and the loader catches that per file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any


class ValidationError(Exception):
    """Base class for structural problems found while reading the corpus.

    Args:
        message: Human-readable description
        path: File or directory the problem was found in
        field: Manifest or header field the problem concerns
    """

    def __init__(self, message: str, *, path: Path | str | None = None, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        self.field = field

    def __str__(self) -> str:
        parts = [str(self.path)] if self.path is not None else []
        if self.field:
            parts.append(self.field)
        parts.append(self.message)
        return ": ".join(parts)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValidationError):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __lt__(self, other: ValidationError) -> bool:
        return self._key() < other._key()

    def _key(self) -> tuple[str, str, str, str]:
        return (
            type(self).__name__,
            str(self.path) if self.path is not None else "",
            self.field or "",
            self.message,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": type(self).__name__,
            "path": str(self.path) if self.path is not None else None,
            "field": self.field,
            "message": self.message,
        }


class MissingFieldError(ValidationError):
    """A required field is absent or empty."""

    def __init__(self, field: str, *, path: Path | str | None = None):
        super().__init__(f"Missing required field '{field}'", path=path, field=field)


class MalformedVersionError(ValidationError):
    """A version string is not MAJOR.MINOR.PATCH[-pre][+build]."""

    def __init__(self, version: str, *, path: Path | str | None = None, field: str = "version"):
        super().__init__(
            f"'{version}' is not a semantic version (MAJOR.MINOR.PATCH[-pre][+build])",
            path=path,
            field=field,
        )
        self.version = version


class NameMismatchError(ValidationError):
    """A marketplace entry's name differs from the package's own name."""

    def __init__(self, declared: str, actual: str, *, path: Path | str | None = None):
        super().__init__(
            f"Marketplace entry '{declared}' points at a plugin named '{actual}'",
            path=path,
            field="name",
        )
        self.declared = declared
        self.actual = actual


class MalformedHeaderError(ValidationError):
    """A markdown document's front matter header is missing or invalid."""


class SourceNotFoundError(ValidationError):
    """A referenced file or directory does not exist."""

    def __init__(
        self, source: str, *, path: Path | str | None = None, field: str | None = "source"
    ):
        super().__init__(f"Source not found: {source}", path=path, field=field)
        self.source = source


class InvalidJsonError(ValidationError):
    """A manifest file could not be read or parsed as JSON."""


class SchemaViolationError(ValidationError):
    """A manifest does not match its JSON schema."""


class DuplicateNameError(ValidationError):
    """Two entries or documents share a name within one namespace."""

    def __init__(self, name: str, kind: str, *, path: Path | str | None = None):
        super().__init__(f"Duplicate {kind} name '{name}'", path=path, field="name")
        self.name = name
        self.kind = kind


class EmptyMarketplaceError(ValidationError):
    """The marketplace lists no plugins."""


class PathEscapeError(ValidationError):
    """A relative path resolves outside the directory it must stay in."""


class ComponentError(ValidationError):
    """A plugin component (agents/, skills/, commands/) is misplaced or unusable."""


class ManifestConflictError(ValidationError):
    """A field differs between a marketplace entry and the plugin's own manifest."""
