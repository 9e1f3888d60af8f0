"""JSON schemas for marketplace and plugin manifests.

Required fields and version strings are checked by the validator itself so it
can report ``MissingFieldError`` / ``MalformedVersionError``; the schemas here
only cover shape and types.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from jsonschema import Draft7Validator

from marketplace_verify.errors import SchemaViolationError

# https://semver.org/#is-there-a-suggested-regular-expression-regex-to-check-a-semver-string
SEMVER_PATTERN = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

KEBAB_CASE = "^[a-z0-9]+(-[a-z0-9]+)*$"

_PATHS = {"oneOf": [{"type": "string"}, {"type": "array", "items": {"type": "string"}}]}
_PATH_OR_CONFIG = {"oneOf": [{"type": "string"}, {"type": "object"}]}

AUTHOR_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "email": {"type": "string", "format": "email"},
        "url": {"type": "string", "format": "uri"},
    },
}

MARKETPLACE_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": True,  # Allow custom fields
    "properties": {
        "name": {
            "type": "string",
            "pattern": KEBAB_CASE,
            "description": "Marketplace identifier (kebab-case)",
        },
        "owner": AUTHOR_SCHEMA,
        "plugins": {"type": "array", "items": {"type": "object"}},
        "entries": {"type": "array", "items": {"type": "object"}},
        "metadata": {
            "type": "object",
            "properties": {
                "description": {"type": "string"},
                "version": {"type": "string"},
                "pluginRoot": {"type": "string"},
            },
        },
    },
}

MARKETPLACE_ENTRY_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": True,
    "properties": {
        "name": {"type": "string", "pattern": KEBAB_CASE},
        "source": {
            "oneOf": [
                {"type": "string"},  # Path or URL
                {
                    "type": "object",
                    "required": ["source"],
                    "properties": {
                        "source": {"type": "string"},
                        "repo": {"type": "string"},
                        "url": {"type": "string"},
                    },
                },
            ]
        },
        "strict": {"type": "boolean"},
        "version": {"type": "string"},
        "description": {"type": "string"},
        "author": AUTHOR_SCHEMA,
        "homepage": {"type": "string", "format": "uri"},
        "repository": {"type": "string", "format": "uri"},
        "license": {"type": "string"},
        "keywords": {"type": "array", "items": {"type": "string"}},
        "category": {"type": "string"},
        "tags": {"type": "array", "items": {"type": "string"}},
        "commands": _PATHS,
        "agents": _PATHS,
        "skills": _PATHS,
        "hooks": _PATH_OR_CONFIG,
        "mcpServers": _PATH_OR_CONFIG,
    },
}

PLUGIN_MANIFEST_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "name": {
            "type": "string",
            "pattern": KEBAB_CASE,
            "description": "Unique identifier (kebab-case, no spaces)",
        },
        "version": {"type": "string"},
        "description": {"type": "string"},
        "author": AUTHOR_SCHEMA,
        "homepage": {"type": "string", "format": "uri"},
        "repository": {"type": "string", "format": "uri"},
        "license": {"type": "string"},
        "keywords": {"type": "array", "items": {"type": "string"}},
        "commands": _PATHS,
        "agents": _PATHS,
        "skills": _PATHS,
        "outputStyles": _PATHS,
        "hooks": _PATH_OR_CONFIG,
        "mcpServers": _PATH_OR_CONFIG,
        "lspServers": _PATH_OR_CONFIG,
    },
}


def is_semver(version: str) -> bool:
    return SEMVER_PATTERN.match(version) is not None


def validate_json_schema(
    data: Any, schema: dict[str, Any], path: Path | None, context: str = ""
) -> list[SchemaViolationError]:
    """Validate JSON data against a Draft 7 schema.

    Args:
        data: Parsed JSON value to validate
        schema: JSON Schema dict (Draft 7 format)
        path: File the data was read from
        context: Prefix for the field path (e.g. "plugins[2]")

    Returns:
        Schema violations sorted by field path, so repeated runs agree
    """
    from jsonschema.exceptions import SchemaError, UnknownType
    from referencing.exceptions import Unresolvable

    try:
        validator = Draft7Validator(schema)
        Draft7Validator.check_schema(schema)
    except SchemaError as e:
        # A broken schema here is a bug in this package, not in the corpus
        raise RuntimeError(f"Invalid schema definition: {e.message}") from e

    errors: list[SchemaViolationError] = []
    try:
        found = sorted(validator.iter_errors(data), key=lambda e: (e.json_path, e.message))
    except RecursionError:
        return [
            SchemaViolationError(
                "Data structure too deeply nested", path=path, field=context or None
            )
        ]
    except (Unresolvable, UnknownType) as e:
        raise RuntimeError(f"Schema evaluation failed: {e}") from e

    for error in found:
        field = ".".join(str(p) for p in error.path)
        if context:
            field = f"{context}.{field}" if field else context
        errors.append(SchemaViolationError(error.message, path=path, field=field or "root"))
    return errors
