"""YAML front matter parsing for agent, skill and command documents."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from marketplace_verify.errors import MalformedHeaderError

DELIMITER = "---"


def split_frontmatter(content: str, path: Path) -> tuple[str, str]:
    """Split a document into header text and body text.

    The first line must be ``---``; the header ends at the next line that is
    exactly ``---``. Everything after that line is the body, unmodified.
    """
    lines = content.splitlines(keepends=True)
    if not lines or lines[0].strip() != DELIMITER:
        raise MalformedHeaderError(
            f"Missing YAML frontmatter (must start with {DELIMITER})", path=path
        )

    for i, line in enumerate(lines[1:], start=1):
        if line.rstrip("\r\n").rstrip() == DELIMITER:
            return "".join(lines[1:i]), "".join(lines[i + 1 :])

    raise MalformedHeaderError(f"Malformed frontmatter (missing closing {DELIMITER})", path=path)


def parse_frontmatter(header_text: str, path: Path) -> dict[str, Any]:
    """Parse header text as a YAML mapping."""
    try:
        header = yaml.safe_load(header_text)
    except yaml.YAMLError as e:
        raise MalformedHeaderError(f"Invalid YAML in frontmatter: {e}", path=path) from e
    except RecursionError as e:
        raise MalformedHeaderError("Frontmatter too deeply nested", path=path) from e

    if header is None:
        return {}
    if not isinstance(header, dict):
        raise MalformedHeaderError(
            "Frontmatter must be a YAML mapping (key-value pairs), "
            f"got {type(header).__name__}",
            path=path,
        )
    return header


def read_document(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except PermissionError as e:
        raise MalformedHeaderError("Permission denied reading file", path=path) from e
    except UnicodeDecodeError as e:
        raise MalformedHeaderError(
            f"File is not valid UTF-8. Error at byte {e.start}: {e.reason}", path=path
        ) from e
    except OSError as e:
        raise MalformedHeaderError(f"Cannot read file: {e.strerror or e}", path=path) from e


def parse_document(path: Path, required_fields: tuple[str, ...]) -> tuple[dict[str, Any], str]:
    """Read a markdown document and return (header, body).

    Required fields must be present, non-empty strings.

    Raises:
        MalformedHeaderError: the file is unreadable, has no valid header, or a
            required field is missing
    """
    header_text, body = split_frontmatter(read_document(path), path)
    header = parse_frontmatter(header_text, path)

    for field in required_fields:
        if field not in header:
            raise MalformedHeaderError(
                f"Missing required field '{field}' in frontmatter", path=path, field=field
            )
        value = header[field]
        if not isinstance(value, str):
            if not value:
                raise MalformedHeaderError(
                    f"Required field '{field}' is empty or null", path=path, field=field
                )
            raise MalformedHeaderError(
                f"Field '{field}' must be a string, got {type(value).__name__}",
                path=path,
                field=field,
            )
        if not value.strip():
            raise MalformedHeaderError(
                f"Required field '{field}' is empty or null", path=path, field=field
            )

    model = header.get("model")
    if model is not None and not isinstance(model, str):
        raise MalformedHeaderError(
            f"Field 'model' must be a string, got {type(model).__name__}", path=path, field="model"
        )
    return header, body
