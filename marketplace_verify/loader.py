"""Enumerate and parse the agent, skill and command documents of a plugin.

Listings are lazy and restartable: every iteration rescans the directory and
reads files one at a time. A document whose header cannot be parsed shows up
as its ``MalformedHeaderError`` in place of a definition; its siblings are
still produced.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Generic, TypeVar

from marketplace_verify.errors import MalformedHeaderError
from marketplace_verify.frontmatter import parse_document
from marketplace_verify.models import (
    AgentDefinition,
    CommandDefinition,
    Document,
    SkillDefinition,
)

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=Document)

AGENTS_DIR = "agents"
SKILLS_DIR = "skills"
COMMANDS_DIR = "commands"
SKILL_FILE = "SKILL.md"


def load_document(path: Path, kind: type[D]) -> D:
    """Parse one markdown file into a definition of the given kind.

    Raises:
        MalformedHeaderError: the header is missing, invalid or incomplete
    """
    header, body = parse_document(path, kind.required_fields)
    name = header.get("name") or path.stem
    return kind(
        name=str(name),
        description=header["description"],
        path=path,
        body=body,
        model=header.get("model"),
        metadata=header,
    )


class DocumentListing(Generic[D]):
    """Finite, restartable sequence of parsed documents of one kind."""

    def __init__(self, kind: type[D], find_files: Callable[[], list[Path]]):
        self.kind = kind
        self._find_files = find_files

    def __iter__(self) -> Iterator[D | MalformedHeaderError]:
        for path in self._find_files():
            try:
                yield load_document(path, self.kind)
            except MalformedHeaderError as e:
                logger.debug("Skipping %s %s: %s", self.kind.kind, path, e.message)
                yield e

    def definitions(self) -> list[D]:
        return [item for item in self if not isinstance(item, MalformedHeaderError)]

    def errors(self) -> list[MalformedHeaderError]:
        return [item for item in self if isinstance(item, MalformedHeaderError)]

    def split(self) -> tuple[list[D], list[MalformedHeaderError]]:
        """Return (definitions, errors) from a single pass."""
        definitions: list[D] = []
        errors: list[MalformedHeaderError] = []
        for item in self:
            if isinstance(item, MalformedHeaderError):
                errors.append(item)
            else:
                definitions.append(item)
        return definitions, errors


def _markdown_files(directory: Path) -> Callable[[], list[Path]]:
    def find() -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.glob("*.md") if p.is_file())

    return find


def _skill_files(directory: Path) -> Callable[[], list[Path]]:
    def find() -> list[Path]:
        if not directory.is_dir():
            return []
        files: list[Path] = []
        for child in sorted(directory.iterdir()):
            if child.is_dir():
                if (child / SKILL_FILE).is_file():
                    files.append(child / SKILL_FILE)
            elif child.suffix == ".md":
                files.append(child)
        return files

    return find


def list_agents(plugin_dir: Path) -> DocumentListing[AgentDefinition]:
    """One element per ``agents/*.md`` file, in file name order."""
    return DocumentListing(AgentDefinition, _markdown_files(Path(plugin_dir) / AGENTS_DIR))


def list_skills(plugin_dir: Path) -> DocumentListing[SkillDefinition]:
    """One element per ``skills/<skill>/SKILL.md`` or flat ``skills/*.md``.

    The skills directory is optional; without one the listing is empty.
    """
    return DocumentListing(SkillDefinition, _skill_files(Path(plugin_dir) / SKILLS_DIR))


def list_commands(plugin_dir: Path) -> DocumentListing[CommandDefinition]:
    return DocumentListing(CommandDefinition, _markdown_files(Path(plugin_dir) / COMMANDS_DIR))
