"""Path resolution and JSON file loading."""

from __future__ import annotations

import json
import logging
import os.path
from pathlib import Path
from typing import Any

from marketplace_verify.errors import (
    InvalidJsonError,
    PathEscapeError,
    SourceNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_URL_PREFIXES = ("http://", "https://", "git://", "ssh://", "git@", "file://")


def is_url(source: str) -> bool:
    """Return True for sources the host fetches rather than reads locally."""
    return source.startswith(_URL_PREFIXES)


def resolve_within(
    base_dir: Path, relative_path: str, context: Path | None = None, *, field: str | None = None
) -> tuple[Path | None, PathEscapeError | None]:
    """Resolve a relative path and check it stays within base directory.

    Args:
        base_dir: Base directory (plugin or marketplace root)
        relative_path: Relative path string from a manifest
        context: File the path was declared in, for error messages
        field: Field the path was declared under

    Returns:
        Tuple of (resolved_path, error). If error, path is None.
    """
    base_resolved = base_dir.resolve()

    # normpath handles .. before the containment check; Path's / operator
    # would keep the traversal segments
    normalized = Path(os.path.normpath(os.path.join(str(base_resolved), relative_path)))

    try:
        normalized.relative_to(base_resolved)
    except ValueError:
        return None, PathEscapeError(
            f"Path escapes {base_resolved}: {relative_path}", path=context, field=field
        )
    return normalized, None


def load_json_file(file_path: Path) -> tuple[Any | None, list[ValidationError]]:
    """Load and parse a JSON manifest.

    Returns:
        Tuple of (parsed_json, errors). Exactly one of them is meaningful:
        on success errors is empty, on failure the value is None.
    """
    logger.debug("Reading %s", file_path)
    if not file_path.is_file():
        return None, [SourceNotFoundError(str(file_path), path=file_path, field=None)]

    try:
        with open(file_path, encoding="utf-8") as f:
            return json.load(f), []
    except PermissionError:
        error = InvalidJsonError("Permission denied reading file", path=file_path)
    except json.JSONDecodeError as e:
        error = InvalidJsonError(
            f"Invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}", path=file_path
        )
    except RecursionError:
        error = InvalidJsonError("Data structure too deeply nested", path=file_path)
    except UnicodeDecodeError:
        error = InvalidJsonError(
            "File is not valid UTF-8 (ensure file is text, not binary)", path=file_path
        )
    except OSError as e:
        error = InvalidJsonError(f"Cannot read file: {e.strerror or e}", path=file_path)
    return None, [error]
