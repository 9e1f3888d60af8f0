"""Typed views of marketplace manifests, plugin manifests and documents.

These are built from raw manifest data alongside validation; ``from_dict``
constructors tolerate missing or mistyped fields and check nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from marketplace_verify.files import is_url


def _strings(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(v) for v in value)


@dataclass(frozen=True)
class Author:
    name: str
    email: str | None = None
    url: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Author | None:
        if not isinstance(data, dict) or not data.get("name"):
            return None
        return cls(name=str(data["name"]), email=data.get("email"), url=data.get("url"))


@dataclass(frozen=True)
class PluginReference:
    """One entry of a marketplace's plugin list."""

    name: str
    source: str | dict[str, Any]
    description: str | None = None
    version: str | None = None
    author: Author | None = None
    license: str | None = None
    keywords: tuple[str, ...] = ()
    category: str | None = None
    tags: tuple[str, ...] = ()
    strict: bool | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PluginReference:
        strict = data.get("strict")
        return cls(
            name=str(data.get("name") or ""),
            source=data.get("source", ""),
            description=data.get("description"),
            version=data.get("version"),
            author=Author.from_dict(data.get("author")),
            license=data.get("license"),
            keywords=_strings(data.get("keywords")),
            category=data.get("category"),
            tags=_strings(data.get("tags")),
            strict=strict if isinstance(strict, bool) else None,
            raw=dict(data),
        )

    @property
    def is_external(self) -> bool:
        """True when the source is fetched by the host (object or URL source)."""
        if isinstance(self.source, dict):
            return True
        return is_url(self.source)


@dataclass(frozen=True)
class MarketplaceManifest:
    name: str
    entries: tuple[PluginReference, ...]
    owner: Author | None = None
    description: str | None = None
    version: str | None = None
    plugin_root: str | None = None
    path: Path | None = None

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], entries_key: str = "plugins", path: Path | None = None
    ) -> MarketplaceManifest:
        metadata = data.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        entries = data.get(entries_key)
        if not isinstance(entries, list):
            entries = []
        return cls(
            name=str(data.get("name") or ""),
            entries=tuple(
                PluginReference.from_dict(e if isinstance(e, dict) else {})
                for e in entries
            ),
            owner=Author.from_dict(data.get("owner")),
            description=metadata.get("description"),
            version=metadata.get("version"),
            plugin_root=metadata.get("pluginRoot"),
            path=path,
        )


@dataclass(frozen=True)
class PluginManifest:
    """Contents of <plugin>/.claude-plugin/plugin.json."""

    name: str
    description: str
    version: str
    license: str
    author: Author | None = None
    homepage: str | None = None
    repository: str | None = None
    keywords: tuple[str, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PluginManifest:
        return cls(
            name=str(data.get("name") or ""),
            description=str(data.get("description", "")),
            version=str(data.get("version", "")),
            license=str(data.get("license", "")),
            author=Author.from_dict(data.get("author")),
            homepage=data.get("homepage"),
            repository=data.get("repository"),
            keywords=_strings(data.get("keywords")),
            raw=dict(data),
        )


@dataclass(frozen=True)
class Document:
    """A markdown document: parsed header plus opaque body text."""

    name: str
    description: str
    path: Path
    body: str
    model: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    kind = "document"
    required_fields = ("name", "description")


@dataclass(frozen=True)
class AgentDefinition(Document):
    kind = "agent"


@dataclass(frozen=True)
class SkillDefinition(Document):
    kind = "skill"


@dataclass(frozen=True)
class CommandDefinition(Document):
    """Slash command; only ``description`` is required, name defaults to the file stem."""

    kind = "command"
    required_fields = ("description",)
